"""Report directory layout management for codegauge."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


def snapshot_stamp(now: datetime | None = None) -> str:
    """Return the date stamp used for raw-data snapshot file names.

    Example:
        >>> snapshot_stamp(datetime(2024, 1, 31))
        '20240131'
    """
    return (now or datetime.now()).strftime("%Y%m%d")


@dataclass
class ReportPaths:
    """Directory layout for reports produced from one project.

    Attributes:
        root: Project directory that is being measured.
        base_directory: Directory holding all report output. Relative paths
            are resolved against ``root``.
        output_directory: Rendered HTML tree, relative to ``base_directory``.
        data_directory: Dated raw-data snapshots, relative to ``base_directory``.

    Example:
        >>> paths = ReportPaths(Path("/project"))
        >>> paths.report_yml
        PosixPath('/project/tmp/codegauge/report.yml')
    """

    root: Path
    base_directory: Path = Path("tmp/codegauge")
    output_directory: Path = Path("output")
    data_directory: Path = Path("_data")

    @property
    def base_dir(self) -> Path:
        """Absolute base directory for report output."""
        return self.root / self.base_directory

    @property
    def output_dir(self) -> Path:
        """Directory for the rendered HTML report tree."""
        return self.base_dir / self.output_directory

    @property
    def data_dir(self) -> Path:
        """Directory for dated raw-data snapshots."""
        return self.base_dir / self.data_directory

    @property
    def report_yml(self) -> Path:
        """Default path of the YAML summary file."""
        return self.base_dir / "report.yml"

    def snapshot_path(self, now: datetime | None = None) -> Path:
        """Path of the raw-data snapshot for the given (or current) day."""
        return self.data_dir / f"{snapshot_stamp(now)}.yml"

    def resolve(self, path: Path) -> Path:
        """Resolve a user supplied output path against the base directory."""
        if path.is_absolute():
            return path
        return self.base_dir / path

    def list_snapshots(self) -> list[Path]:
        """List existing raw-data snapshots, oldest first."""
        if not self.data_dir.exists():
            return []
        return sorted(self.data_dir.glob("*.yml"))
