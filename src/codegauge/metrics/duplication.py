"""Duplication metric: similar code blocks found by pylint."""

from __future__ import annotations

import json
from typing import Any

from pydantic import Field

from codegauge.exceptions import MetricError
from codegauge.metrics.base import BaseMetric, MetricOptions

# pylint exit status bits for fatal and usage errors
_PYLINT_FATAL = 1
_PYLINT_USAGE = 32


class DuplicationOptions(MetricOptions):
    """Options for the duplication metric.

    Attributes:
        min_similarity_lines: Minimum block size considered a duplicate.
    """

    min_similarity_lines: int = Field(default=4, ge=2)


class DuplicationMetric(BaseMetric):
    """Runs pylint's ``duplicate-code`` checker only."""

    name = "duplication"
    binary = "pylint"
    description = "Duplicated code blocks (pylint duplicate-code)"
    options_model = DuplicationOptions

    def run_external(self, options: DuplicationOptions) -> dict[str, Any]:
        args = [
            "--disable=all",
            "--enable=duplicate-code",
            "--output-format=json",
            "--score=n",
            f"--min-similarity-lines={options.min_similarity_lines}",
        ]
        if options.exclude:
            args.append(f"--ignore-patterns={','.join(options.exclude)}")

        result = self._run_tool([*args, *options.paths])
        if result.returncode & (_PYLINT_FATAL | _PYLINT_USAGE):
            raise self._fail(result)

        try:
            messages = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            msg = f"pylint returned invalid JSON: {e}"
            raise MetricError(msg, metric=self.name) from e

        duplicates = []
        for message in messages:
            if message.get("symbol") != "duplicate-code":
                continue
            lines = message.get("message", "").splitlines()
            locations = [line[2:].strip() for line in lines if line.startswith("==")]
            code_lines = [line for line in lines[1:] if not line.startswith("==")]
            duplicates.append(
                {
                    "locations": locations,
                    "lines": len(code_lines),
                    "summary": lines[0] if lines else "",
                }
            )

        duplicates.sort(key=lambda d: -d["lines"])
        return {"total": len(duplicates), "duplicates": duplicates}
