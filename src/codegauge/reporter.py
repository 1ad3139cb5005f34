"""Reporter fanning run lifecycle events and results out to formatters."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from codegauge.exceptions import FormatterFailure
from codegauge.formatters.base import Formatter
from codegauge.result import UnifiedResult

logger = structlog.get_logger()


class Reporter:
    """Forwards lifecycle hooks to formatters and renders the final result.

    Hooks (start/start_metric/finish_metric) are best-effort: a failing hook
    is logged and ignored. Rendering and display are isolated per formatter:
    a failure is recorded in ``failures`` and the remaining formatters still
    run.

    Example:
        >>> reporter = Reporter([YamlFormatter(paths=paths)])
        >>> reporter.start()
        >>> reporter.finish(result)
        >>> reporter.failures
        []
    """

    def __init__(self, formatters: Sequence[Formatter]) -> None:
        self.formatters = list(formatters)
        self.failures: list[FormatterFailure] = []

    def _notify(self, hook: str, call: Callable[[Formatter], None]) -> None:
        for formatter in self.formatters:
            try:
                call(formatter)
            except Exception as e:
                logger.warning(
                    "Formatter hook failed",
                    formatter=formatter.name,
                    hook=hook,
                    error=str(e),
                )

    def _isolated(self, phase: str, call: Callable[[Formatter], None]) -> None:
        for formatter in self.formatters:
            try:
                call(formatter)
            except Exception as e:
                logger.error(
                    "Formatter failed",
                    formatter=formatter.name,
                    phase=phase,
                    error=str(e),
                )
                self.failures.append(FormatterFailure(formatter.name, phase, e))

    def start(self) -> None:
        logger.info("Starting metrics run")
        self._notify("start", lambda f: f.start())

    def start_metric(self, metric: str) -> None:
        logger.info("Starting metric", metric=metric)
        self._notify("start_metric", lambda f: f.start_metric(metric))

    def finish_metric(self, metric: str) -> None:
        logger.info("Finished metric", metric=metric)
        self._notify("finish_metric", lambda f: f.finish_metric(metric))

    def finish(self, result: UnifiedResult) -> None:
        """Signal the end of measuring and render every formatter."""
        logger.info("Finished metrics run", metrics=result.names)
        self.render(result)

    def render(self, result: UnifiedResult) -> None:
        """Render ``result`` with every formatter, collecting failures."""
        self._isolated("render", lambda f: f.write(result))

    def display_results(self) -> None:
        """Ask every formatter to show its output, collecting failures."""
        self._isolated("display", lambda f: f.display())
