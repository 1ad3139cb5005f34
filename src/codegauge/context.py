"""Per-run configuration context."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

from codegauge.config import CodeGaugeConfig
from codegauge.exceptions import ConfigError
from codegauge.formatters.dispatch import FormatterSpec, validate_format
from codegauge.infra.command import CommandRunner
from codegauge.metrics.registry import MetricRegistry, build_registry
from codegauge.paths import ReportPaths

logger = structlog.get_logger()


class RunContext:
    """Configuration for exactly one run.

    Holds the metric registry, the configured formatters and the report
    layout. A fresh context is built for every run, so formatters configured
    for one run never leak into the next.

    Example:
        >>> context = RunContext.from_config(CodeGaugeConfig.default(), Path("."))
        >>> with context.configure() as c:
        ...     c.configure_metric("complexity", {"min_rank": "C"})
        ...     c.configure_formatter("yaml")
    """

    def __init__(
        self,
        *,
        config: CodeGaugeConfig,
        paths: ReportPaths,
        registry: MetricRegistry,
    ) -> None:
        self.config = config
        self.paths = paths
        self.registry = registry
        self._formatters: list[FormatterSpec] = []

    @classmethod
    def from_config(
        cls,
        config: CodeGaugeConfig,
        root: Path,
        *,
        cmd: CommandRunner | None = None,
        registry: MetricRegistry | None = None,
        config_path: Path | None = None,
    ) -> RunContext:
        """Build a context from a loaded configuration file.

        Args:
            config: Parsed configuration.
            root: Project root being measured.
            cmd: CommandRunner for the built-in metrics.
            registry: Registry to use instead of the built-in metrics.
            config_path: Where the configuration came from, for error messages.

        Raises:
            ConfigError: If the configuration names unknown metrics, options
                or formats.
        """
        directories = config.directories
        paths = ReportPaths(
            root=root,
            base_directory=Path(directories.base_directory),
            output_directory=Path(directories.output_directory),
            data_directory=Path(directories.data_directory),
        )
        if registry is None:
            registry = build_registry(cmd or CommandRunner(), root)

        context = cls(config=config, paths=paths, registry=registry)
        try:
            context.apply_metric_overrides(config.metrics)
            for formatter in config.formatters:
                output = Path(formatter.output) if formatter.output else None
                context.configure_formatter(formatter.format, output)
            for formatter in config.default_formatters:
                validate_format(formatter.format)
        except ConfigError as e:
            if config_path is not None and e.config_path is None:
                e.config_path = config_path
            raise
        return context

    @property
    def formatters(self) -> tuple[FormatterSpec, ...]:
        """Configured formatters, in order."""
        return tuple(self._formatters)

    @property
    def default_formatters(self) -> list[tuple[str, Path | None]]:
        """The fallback formatter set used when nothing else is configured."""
        return [
            (f.format, Path(f.output) if f.output else None)
            for f in self.config.default_formatters
        ]

    def configure_metric(self, name: str, options: Mapping[str, Any]) -> None:
        """Apply option assignments to a metric.

        Raises:
            UnknownMetricError: If the metric is not registered.
            UnknownOptionError: If the metric has no such option.
            ConfigError: If a value does not validate.
        """
        descriptor = self.registry.get_metric(name)
        for option, value in options.items():
            logger.info("Setting metric option", metric=name, option=option, value=value)
            descriptor.set_option(option, value)

    def apply_metric_overrides(self, overrides: Mapping[str, Any]) -> None:
        """Apply a metric override mapping.

        ``False`` disables a metric, ``True`` enables it, a mapping configures
        its options. Metrics not mentioned keep their current state.

        Raises:
            UnknownMetricError: If an override names an unknown metric.
            ConfigError: If an override value has any other shape.
        """
        for name, value in overrides.items():
            descriptor = self.registry.get_metric(name)
            if value is False:
                logger.debug("Disabling metric", metric=name)
                descriptor.disable()
            elif value is True:
                descriptor.enable()
            elif isinstance(value, Mapping):
                logger.debug("Using metric", metric=name)
                descriptor.enable()
                self.configure_metric(name, value)
            else:
                msg = f"Invalid override for metric '{name}': expected false, true or a mapping, got {value!r}"
                raise ConfigError(msg, field=name)

    def configure_formatter(
        self,
        format: str,
        output: Path | None = None,
        filename: str | None = None,
    ) -> FormatterSpec:
        """Append a formatter.

        Args:
            format: Formatter name.
            output: Output path, or None for the formatter's default.
            filename: Replaces only the leaf file name of the output.

        Raises:
            ConfigError: If the format is unknown.
        """
        spec = FormatterSpec(format=validate_format(format), output=output, filename=filename)
        self._formatters.append(spec)
        return spec

    def clear(self) -> None:
        """Remove every configured formatter."""
        self._formatters.clear()

    @contextmanager
    def configure(self) -> Iterator[RunContext]:
        """Scoped configuration block.

        If the block raises, formatters and metric flags/options are restored
        to their state at block entry before the error propagates.
        """
        formatters = list(self._formatters)
        metric_state = [
            (descriptor, descriptor.enabled, descriptor.options.model_copy(deep=True))
            for descriptor in self.registry
        ]
        try:
            yield self
        except Exception:
            logger.debug("Configuration block failed, rolling back")
            self._formatters = formatters
            for descriptor, enabled, options in metric_state:
                descriptor.enabled = enabled
                descriptor.options = options
            raise
