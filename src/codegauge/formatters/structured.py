"""Structured data formatters (YAML and JSON)."""

from __future__ import annotations

import json

from codegauge.formatters.base import FileFormatter
from codegauge.result import UnifiedResult


class YamlFormatter(FileFormatter):
    """Writes the unified result as a YAML summary (``report.yml``)."""

    name = "yaml"
    description = "YAML summary file"
    default_filename = "report.yml"

    def serialize(self, result: UnifiedResult) -> str:
        return result.to_yaml()


class JsonFormatter(FileFormatter):
    """Writes the unified result as JSON (``report.json``)."""

    name = "json"
    description = "JSON summary file"
    default_filename = "report.json"

    def serialize(self, result: UnifiedResult) -> str:
        return json.dumps(result.as_dict(), indent=2, default=str) + "\n"
