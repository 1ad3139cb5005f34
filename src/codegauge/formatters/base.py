"""Base formatter types."""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar

import structlog

from codegauge.paths import ReportPaths
from codegauge.result import UnifiedResult

logger = structlog.get_logger()


def describe_payload(payload: Any) -> str:
    """One-line, metric-agnostic description of a payload.

    Example:
        >>> describe_payload({"total": 3, "violations": []})
        '3 total'
        >>> describe_payload([1, 2])
        '2 entries'
    """
    if payload is None or payload == "":
        return "no data"
    if isinstance(payload, dict):
        if "total" in payload:
            return f"{payload['total']} total"
        if "average" in payload:
            return f"average {payload['average']}"
        return f"{len(payload)} keys"
    if isinstance(payload, list | tuple):
        return f"{len(payload)} entries"
    return str(payload).splitlines()[0][:80]


class Formatter:
    """Base class for formatters.

    A formatter renders the UnifiedResult into one or more files. The
    lifecycle hooks are optional; ``write`` is required.
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""

    def __init__(
        self,
        *,
        paths: ReportPaths,
        output: Path | None = None,
        filename: str | None = None,
    ) -> None:
        """Initialize the formatter.

        Args:
            paths: Report directory layout.
            output: Output path; None selects the formatter's default.
            filename: Replaces the leaf file name of the output, if given.
        """
        self.paths = paths
        self.output = output
        self.filename = filename
        self.written: list[Path] = []

    def start(self) -> None:
        pass

    def start_metric(self, metric: str) -> None:
        pass

    def finish_metric(self, metric: str) -> None:
        pass

    def write(self, result: UnifiedResult) -> None:
        """Render ``result`` to this formatter's output."""
        raise NotImplementedError

    def display(self) -> None:
        """Show the rendered output to the user, if the format supports it."""
        pass


class FileFormatter(Formatter):
    """Formatter writing a single file.

    An output path with a suffix is used as the file itself; an output
    without a suffix is treated as a directory holding ``default_filename``.
    """

    default_filename: ClassVar[str] = ""

    @property
    def target(self) -> Path:
        """Resolved path of the file this formatter writes."""
        if self.output is None:
            path = self.paths.base_dir / self.default_filename
        else:
            path = self.paths.resolve(self.output)
            if not path.suffix:
                path = path / self.default_filename
        if self.filename:
            suffix = path.suffix or Path(self.default_filename).suffix
            path = path.with_name(f"{self.filename}{suffix}")
        return path

    def serialize(self, result: UnifiedResult) -> str:
        raise NotImplementedError

    def write(self, result: UnifiedResult) -> None:
        path = self.target
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.serialize(result))
        self.written.append(path)
        logger.info("Wrote report", formatter=self.name, path=str(path))
