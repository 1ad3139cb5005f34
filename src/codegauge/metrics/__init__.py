"""Metric plugins and the registry that tracks them."""

from codegauge.metrics.base import BaseMetric, Metric, MetricOptions
from codegauge.metrics.churn import ChurnMetric, ChurnOptions
from codegauge.metrics.duplication import DuplicationMetric, DuplicationOptions
from codegauge.metrics.radon import (
    ComplexityMetric,
    ComplexityOptions,
    MaintainabilityMetric,
    MaintainabilityOptions,
    StatsMetric,
    StatsOptions,
)
from codegauge.metrics.registry import (
    BUILTIN_METRICS,
    MetricDescriptor,
    MetricRegistry,
    build_registry,
)
from codegauge.metrics.style import StyleMetric, StyleOptions

__all__ = [
    # Base
    "BaseMetric",
    "Metric",
    "MetricOptions",
    # Registry
    "BUILTIN_METRICS",
    "MetricDescriptor",
    "MetricRegistry",
    "build_registry",
    # Metrics
    "ChurnMetric",
    "ChurnOptions",
    "ComplexityMetric",
    "ComplexityOptions",
    "DuplicationMetric",
    "DuplicationOptions",
    "MaintainabilityMetric",
    "MaintainabilityOptions",
    "StatsMetric",
    "StatsOptions",
    "StyleMetric",
    "StyleOptions",
]
