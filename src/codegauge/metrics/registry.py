"""Metric registry tracking which metrics are enabled and how they are configured."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from codegauge.exceptions import ConfigError, UnknownMetricError, UnknownOptionError
from codegauge.infra.command import CommandRunner
from codegauge.metrics.base import BaseMetric, Metric, MetricOptions
from codegauge.metrics.churn import ChurnMetric
from codegauge.metrics.duplication import DuplicationMetric
from codegauge.metrics.radon import ComplexityMetric, MaintainabilityMetric, StatsMetric
from codegauge.metrics.style import StyleMetric

logger = structlog.get_logger()

# Registration order is execution order.
BUILTIN_METRICS: list[type[BaseMetric]] = [
    ChurnMetric,
    ComplexityMetric,
    MaintainabilityMetric,
    StatsMetric,
    StyleMetric,
    DuplicationMetric,
]


@dataclass
class MetricDescriptor:
    """A registered metric together with its run-time state.

    Attributes:
        metric: The metric implementation.
        enabled: Whether the metric takes part in the next run.
        activated: Whether the metric's tool has been verified.
        options: Typed options for this metric kind.
    """

    metric: Metric
    enabled: bool = True
    activated: bool = False
    options: MetricOptions = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.options is None:
            self.options = self.metric.options_model()

    @property
    def name(self) -> str:
        """Symbolic name of the metric."""
        return self.metric.name

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def set_option(self, option: str, value: Any) -> None:
        """Set one option, validating both the name and the value.

        Raises:
            UnknownOptionError: If the metric has no such option.
            ConfigError: If the value does not validate.
        """
        if option not in type(self.options).model_fields:
            raise UnknownOptionError(self.name, option)
        try:
            setattr(self.options, option, value)
        except ValidationError as e:
            msg = f"Invalid value for {self.name}.{option}: {value!r}"
            raise ConfigError(msg, field=f"{self.name}.{option}") from e

    def activate(self) -> None:
        """Activate the metric once; later calls are no-ops."""
        if not self.activated:
            self.metric.activate()
            self.activated = True

    def run(self) -> Any:
        """Activate the metric if needed and return its payload."""
        self.activate()
        logger.info("Running metric", metric=self.name)
        return self.metric.run_external(self.options)


class MetricRegistry:
    """Ordered catalog of metrics.

    Example:
        >>> registry = MetricRegistry([ChurnMetric(cmd=cmd, root=root)])
        >>> registry.disable("churn")
        >>> registry.enabled_metrics()
        ()
    """

    def __init__(self, metrics: list[Metric] | None = None) -> None:
        self._descriptors: dict[str, MetricDescriptor] = {}
        for metric in metrics or []:
            self.register(metric)

    def register(self, metric: Metric) -> MetricDescriptor:
        """Register a metric, enabled with default options.

        Raises:
            ValueError: If a metric with the same name is registered.
        """
        if metric.name in self._descriptors:
            msg = f"Metric '{metric.name}' is already registered"
            raise ValueError(msg)
        descriptor = MetricDescriptor(metric=metric)
        self._descriptors[metric.name] = descriptor
        return descriptor

    def names(self) -> list[str]:
        return list(self._descriptors)

    def get_metric(self, name: str) -> MetricDescriptor:
        """Look up a descriptor by name.

        Raises:
            UnknownMetricError: If the name is not registered.
        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownMetricError(name, known=self.names()) from None

    def enabled_metrics(self) -> tuple[MetricDescriptor, ...]:
        """Enabled descriptors in registration order."""
        return tuple(d for d in self._descriptors.values() if d.enabled)

    def enable(self, name: str) -> None:
        self.get_metric(name).enable()
        logger.debug("Enabled metric", metric=name)

    def disable(self, name: str) -> None:
        self.get_metric(name).disable()
        logger.debug("Disabled metric", metric=name)

    def __iter__(self) -> Iterator[MetricDescriptor]:
        return iter(self._descriptors.values())

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


def build_registry(cmd: CommandRunner, root: Path) -> MetricRegistry:
    """Create a registry holding every built-in metric."""
    return MetricRegistry([metric_cls(cmd=cmd, root=root) for metric_cls in BUILTIN_METRICS])
