"""Churn metric: how often each file changed in the git history."""

from __future__ import annotations

import fnmatch
from collections import Counter

import structlog
from pydantic import Field

from codegauge.metrics.base import BaseMetric, MetricOptions

logger = structlog.get_logger()


class ChurnOptions(MetricOptions):
    """Options for the churn metric.

    Attributes:
        start_date: Passed to ``git log --since``.
        minimum_churn_count: Files changed fewer times are left out.
    """

    start_date: str = "1 year ago"
    minimum_churn_count: int = Field(default=10, ge=1)


class ChurnMetric(BaseMetric):
    """Counts commits touching each file since ``start_date``."""

    name = "churn"
    binary = "git"
    description = "Files that change most often (git log)"
    options_model = ChurnOptions

    def run_external(self, options: ChurnOptions) -> list[dict[str, object]]:
        args = [
            "log",
            "--no-merges",
            f"--since={options.start_date}",
            "--name-only",
            "--pretty=format:",
            "--",
            *options.paths,
        ]
        result = self._run_tool(args)
        if not result.ok:
            raise self._fail(result)

        counts: Counter[str] = Counter(
            line.strip() for line in result.stdout.splitlines() if line.strip()
        )
        churn = [
            {"file": name, "times_changed": count}
            for name, count in counts.items()
            if count >= options.minimum_churn_count
            and not any(fnmatch.fnmatch(name, pattern) for pattern in options.exclude)
        ]
        churn.sort(key=lambda entry: (-int(entry["times_changed"]), str(entry["file"])))

        logger.debug("Churn computed", files=len(churn))
        return churn
