"""Metrics backed by radon: complexity, maintainability and raw stats."""

from __future__ import annotations

import json
from typing import Any, Literal

import structlog

from codegauge.exceptions import MetricError
from codegauge.metrics.base import BaseMetric, MetricOptions

logger = structlog.get_logger()

Rank = Literal["A", "B", "C", "D", "E", "F"]


class ComplexityOptions(MetricOptions):
    """Options for the complexity metric.

    Attributes:
        min_rank: Only blocks ranked at least this bad are reported.
    """

    min_rank: Rank = "A"


class MaintainabilityOptions(MetricOptions):
    """Options for the maintainability metric."""

    min_rank: Literal["A", "B", "C"] = "A"


class StatsOptions(MetricOptions):
    """Options for the raw stats metric."""

    pass


class RadonMetric(BaseMetric):
    """Shared plumbing for radon subcommands."""

    binary = "radon"
    subcommand = ""

    def _radon_json(self, options: MetricOptions, extra: list[str]) -> dict[str, Any]:
        args = [self.subcommand, "--json", *extra]
        if options.exclude:
            args += ["--exclude", ",".join(options.exclude)]
        result = self._run_tool([*args, *options.paths])
        if not result.ok:
            raise self._fail(result)

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            msg = f"radon returned invalid JSON: {e}"
            raise MetricError(msg, metric=self.name) from e

        parsed: dict[str, Any] = {}
        for filename, entry in data.items():
            if isinstance(entry, dict) and "error" in entry:
                logger.warning(
                    "radon could not analyse file",
                    metric=self.name,
                    file=filename,
                    error=entry["error"],
                )
                continue
            parsed[self._relative(filename)] = entry
        return parsed


class ComplexityMetric(RadonMetric):
    """Cyclomatic complexity per function, method and class."""

    name = "complexity"
    subcommand = "cc"
    description = "Cyclomatic complexity per block (radon cc)"
    options_model = ComplexityOptions

    def run_external(self, options: ComplexityOptions) -> dict[str, Any]:
        data = self._radon_json(options, ["--min", options.min_rank])

        blocks = []
        for filename, entries in data.items():
            for block in entries:
                blocks.append(
                    {
                        "file": filename,
                        "name": block.get("name"),
                        "type": block.get("type"),
                        "lineno": block.get("lineno"),
                        "complexity": block.get("complexity"),
                        "rank": block.get("rank"),
                    }
                )
        blocks.sort(key=lambda b: (-(b["complexity"] or 0), b["file"], b["lineno"] or 0))

        average = 0.0
        if blocks:
            average = round(sum(b["complexity"] or 0 for b in blocks) / len(blocks), 2)
        return {"average": average, "blocks": blocks}


class MaintainabilityMetric(RadonMetric):
    """Maintainability index per module, worst first."""

    name = "maintainability"
    subcommand = "mi"
    description = "Maintainability index per module (radon mi)"
    options_model = MaintainabilityOptions

    def run_external(self, options: MaintainabilityOptions) -> list[dict[str, Any]]:
        data = self._radon_json(options, ["--min", options.min_rank])
        modules = [
            {"file": filename, "mi": round(entry.get("mi", 0.0), 2), "rank": entry.get("rank")}
            for filename, entry in data.items()
        ]
        modules.sort(key=lambda m: (m["mi"], m["file"]))
        return modules


class StatsMetric(RadonMetric):
    """Raw line counts (loc, sloc, comments, blank) per file and in total."""

    name = "stats"
    subcommand = "raw"
    description = "Raw line counts (radon raw)"
    options_model = StatsOptions

    fields = ("loc", "lloc", "sloc", "comments", "multi", "blank", "single_comments")

    def run_external(self, options: StatsOptions) -> dict[str, Any]:
        data = self._radon_json(options, [])
        totals = dict.fromkeys(self.fields, 0)
        files = []
        for filename, entry in sorted(data.items()):
            row: dict[str, Any] = {"file": filename}
            for field in self.fields:
                value = int(entry.get(field, 0))
                row[field] = value
                totals[field] += value
            files.append(row)
        return {"totals": totals, "files": files}
