"""Run orchestrator: configure, measure, revert, display."""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from codegauge.config import CodeGaugeConfig
from codegauge.context import RunContext
from codegauge.exceptions import ConfigError, ReportRenderError, StateError
from codegauge.formatters.dispatch import FormatterSpec, build_formatters, resolve_formatters
from codegauge.infra.command import CommandRunner
from codegauge.metrics.registry import MetricDescriptor, MetricRegistry
from codegauge.reporter import Reporter
from codegauge.result import UnifiedResult
from codegauge.workspace.git_checkout import GitCheckout

logger = structlog.get_logger()


class RunState(str, Enum):
    """States of a single run."""

    IDLE = "idle"
    CONFIGURING = "configuring"
    MEASURING = "measuring"
    REVERTING = "reverting"
    DISPLAYING = "displaying"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RunOptions:
    """Inputs of one run.

    Attributes:
        metrics: Metric overrides: ``False`` disables, ``True`` enables, a
            mapping sets options.
        formats: ``(format, output)`` pairs replacing configured formatters.
        output: Path every resolved formatter writes under.
        githash: Revision to check out before measuring; also used as the
            output file name.
        open: Whether to open the rendered report afterwards.
    """

    metrics: Mapping[str, Any] = field(default_factory=dict)
    formats: tuple[tuple[str, Path | None], ...] = ()
    output: Path | None = None
    githash: str | None = None
    open: bool = False


class Runner:
    """Drives one metrics run end to end.

    A Runner is single use: ``run`` may be called once. Build a new runner
    (and context) for every run.

    Example:
        >>> runner = create_runner(Path("/project"))
        >>> result = runner.run(RunOptions(metrics={"churn": False}))
        >>> "churn" in result
        False
    """

    def __init__(
        self,
        context: RunContext,
        *,
        cmd: CommandRunner | None = None,
        git: GitCheckout | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            context: Configuration for this run.
            cmd: CommandRunner used for git.
            git: Git collaborator; created on demand when a githash is used.
        """
        self.context = context
        self.cmd = cmd or CommandRunner()
        self.git = git
        self.state = RunState.IDLE
        self.history: list[RunState] = [RunState.IDLE]
        self.result = UnifiedResult()
        self.formatter_specs: tuple[FormatterSpec, ...] = ()
        self.reporter = Reporter([])
        self._log = logger.bind(root=str(context.paths.root))

    @property
    def registry(self) -> MetricRegistry:
        return self.context.registry

    def _transition(self, state: RunState) -> None:
        self._log.debug("Run state change", previous=self.state.value, state=state.value)
        self.state = state
        self.history.append(state)

    def run(self, options: RunOptions | None = None) -> UnifiedResult:
        """Execute the run.

        Args:
            options: Run options; defaults to no overrides.

        Returns:
            The unified result.

        Raises:
            StateError: If this runner was already used.
            ConfigError: On unknown metrics, options or formats.
            GitError: If the revision cannot be checked out or the original
                branch cannot be restored.
            MetricError: If a metric fails; remaining metrics are skipped.
            ReportRenderError: If one or more formatters failed. Raised after
                every formatter had its chance and git was restored.
        """
        if self.state is not RunState.IDLE:
            msg = f"Runner already used (state: {self.state.value}); create a new runner per run"
            raise StateError(msg, current_state=self.state.value)

        options = options or RunOptions()
        try:
            self.configure(options)
            with ExitStack() as stack:
                if options.githash is not None:
                    self._enter_revision(stack, options.githash)
                self.measure()
            if options.open:
                self._transition(RunState.DISPLAYING)
                self.display_results()
            self._transition(RunState.DONE)
        except Exception:
            self._transition(RunState.FAILED)
            raise

        if self.reporter.failures:
            raise ReportRenderError(self.reporter.failures)
        return self.result

    def configure(self, options: RunOptions) -> None:
        """Apply metric overrides and resolve formatters."""
        self._transition(RunState.CONFIGURING)
        self.context.apply_metric_overrides(options.metrics)
        self._log.debug(
            "Active metrics",
            metrics=[d.name for d in self.registry.enabled_metrics()],
        )
        self.formatter_specs = resolve_formatters(self.context, options)
        self.reporter = Reporter(build_formatters(self.formatter_specs, self.context.paths))

    def _enter_revision(self, stack: ExitStack, githash: str) -> None:
        """Check out ``githash`` until ``stack`` closes.

        A failed checkout raises before anything is pushed, so no restore is
        attempted for it.
        """
        if self.git is None:
            self.git = GitCheckout(self.cmd, self.context.paths.root)
        self._log.info("Checking out githash", githash=githash)
        stack.enter_context(self.git.checked_out(githash))
        stack.callback(self._transition, RunState.REVERTING)

    def report_metrics(self) -> tuple[MetricDescriptor, ...]:
        """Metrics the measuring phase will run, in registry order."""
        return self.registry.enabled_metrics()

    def measure(self) -> UnifiedResult:
        """Run every enabled metric and render the result.

        The set of metrics is fixed when measuring starts. A failing metric
        propagates and the remaining metrics are not run.
        """
        self._transition(RunState.MEASURING)
        plan = self.report_metrics()

        self.reporter.start()
        for descriptor in plan:
            self.reporter.start_metric(descriptor.name)
            payload = descriptor.run()
            self.result.add(descriptor.name, payload)
            self.reporter.finish_metric(descriptor.name)
        self.reporter.finish(self.result)
        return self.result

    def display_results(self) -> None:
        self.reporter.display_results()


def load_config(config_path: Path | None) -> CodeGaugeConfig:
    """Load a configuration file, or the defaults when none is given.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if config_path is None:
        return CodeGaugeConfig.default()
    try:
        return CodeGaugeConfig.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise ConfigError(str(e), config_path=config_path) from e


def create_runner(
    root: Path,
    *,
    config: CodeGaugeConfig | None = None,
    config_path: Path | None = None,
    registry: MetricRegistry | None = None,
) -> Runner:
    """Create a Runner with a fresh context.

    Args:
        root: Project directory to measure.
        config: Optional CodeGaugeConfig instance.
        config_path: Optional path to a config file.
        registry: Optional registry replacing the built-in metrics.

    Returns:
        Configured Runner instance.
    """
    cfg = config if config is not None else load_config(config_path)
    cmd = CommandRunner()
    context = RunContext.from_config(
        cfg,
        root,
        cmd=cmd,
        registry=registry,
        config_path=config_path,
    )
    return Runner(context, cmd=cmd)
