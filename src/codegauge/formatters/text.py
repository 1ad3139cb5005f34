"""Plain text summary formatter."""

from __future__ import annotations

import typer

from codegauge.formatters.base import FileFormatter, describe_payload
from codegauge.result import UnifiedResult


class TextFormatter(FileFormatter):
    """Prints a one-line summary per metric.

    Writes to stdout unless an output path is configured.
    """

    name = "text"
    description = "Plain text summary (stdout unless an output is given)"
    default_filename = "report.txt"

    def serialize(self, result: UnifiedResult) -> str:
        if not len(result):
            return "No metrics were run.\n"
        width = max(len(name) for name in result)
        lines = [f"{name.ljust(width)}  {describe_payload(payload)}" for name, payload in result.items()]
        return "\n".join(lines) + "\n"

    def write(self, result: UnifiedResult) -> None:
        if self.output is None and self.filename is None:
            typer.echo(self.serialize(result), nl=False)
            return
        super().write(result)
