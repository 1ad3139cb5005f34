"""Style metric: lint violations reported by ruff."""

from __future__ import annotations

import json
from collections import Counter
from typing import Any

from pydantic import Field

from codegauge.exceptions import MetricError
from codegauge.metrics.base import BaseMetric, MetricOptions


class StyleOptions(MetricOptions):
    """Options for the style metric.

    Attributes:
        select: Rule codes or prefixes to enable (ruff ``--select``).
        ignore: Rule codes or prefixes to skip (ruff ``--ignore``).
    """

    select: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)


class StyleMetric(BaseMetric):
    """Runs ``ruff check`` and groups violations by rule code."""

    name = "style"
    binary = "ruff"
    description = "Lint violations by rule (ruff check)"
    options_model = StyleOptions

    def run_external(self, options: StyleOptions) -> dict[str, Any]:
        args = ["check", "--output-format", "json", "--exit-zero", "--no-cache"]
        if options.select:
            args += ["--select", ",".join(options.select)]
        if options.ignore:
            args += ["--ignore", ",".join(options.ignore)]
        if options.exclude:
            args += ["--extend-exclude", ",".join(options.exclude)]

        result = self._run_tool([*args, *options.paths])
        if not result.ok:
            raise self._fail(result)

        try:
            diagnostics = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            msg = f"ruff returned invalid JSON: {e}"
            raise MetricError(msg, metric=self.name) from e

        violations = []
        for item in diagnostics:
            location = item.get("location") or {}
            violations.append(
                {
                    "file": self._relative(item.get("filename", "")),
                    "line": location.get("row"),
                    "column": location.get("column"),
                    "code": item.get("code") or "syntax",
                    "message": item.get("message", ""),
                }
            )

        by_code = Counter(v["code"] for v in violations)
        return {
            "total": len(violations),
            "by_code": dict(by_code.most_common()),
            "violations": violations,
        }
