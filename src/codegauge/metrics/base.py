"""Base metric protocol and option types."""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from codegauge.exceptions import CommandError, MetricError
from codegauge.infra.command import CommandResult, CommandRunner

logger = structlog.get_logger()


class MetricOptions(BaseModel):
    """Options shared by every metric.

    Subclasses add the options of one metric kind. Unknown keys are rejected
    and assignments are validated.

    Attributes:
        paths: Paths to analyse, relative to the project root.
        exclude: Glob patterns of files to leave out.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    paths: list[str] = Field(default_factory=lambda: ["."])
    exclude: list[str] = Field(default_factory=list)


@runtime_checkable
class Metric(Protocol):
    """Protocol for metric plugins.

    A metric wraps one external analysis tool and turns its output into a
    plain, YAML-serializable payload.
    """

    name: ClassVar[str]
    options_model: ClassVar[type[MetricOptions]]

    def activate(self) -> None:
        """Prepare the metric, failing if its tool is unavailable."""
        ...

    def run_external(self, options: MetricOptions) -> Any:
        """Run the analysis and return the payload."""
        ...


class BaseMetric:
    """Base class for metrics that shell out to a command line tool."""

    name: ClassVar[str] = ""
    binary: ClassVar[str] = ""
    description: ClassVar[str] = ""
    options_model: ClassVar[type[MetricOptions]] = MetricOptions

    def __init__(self, *, cmd: CommandRunner, root: Path) -> None:
        """Initialize the metric.

        Args:
            cmd: CommandRunner used to invoke the tool.
            root: Project root the tool runs in.
        """
        self.cmd = cmd
        self.root = root

    def activate(self) -> None:
        """Check that the tool binary is installed.

        Raises:
            MetricError: If the binary is not on PATH.
        """
        if self.cmd.which(self.binary) is None:
            msg = (
                f"Metric '{self.name}' requires '{self.binary}' on PATH; "
                f"install it or disable the metric with --disable {self.name}"
            )
            raise MetricError(msg, metric=self.name)

    def run_external(self, options: MetricOptions) -> Any:
        raise NotImplementedError

    def _run_tool(self, args: list[str]) -> CommandResult:
        """Run the metric's binary with ``args`` in the project root."""
        log = logger.bind(metric=self.name)
        try:
            result = self.cmd.run([self.binary, *args], cwd=self.root)
        except CommandError as e:
            raise MetricError(str(e), metric=self.name) from e
        log.debug("Tool finished", returncode=result.returncode)
        return result

    def _fail(self, result: CommandResult) -> MetricError:
        detail = result.stderr.strip() or result.stdout.strip()
        msg = f"{self.binary} exited with code {result.returncode}: {detail}"
        return MetricError(msg, metric=self.name, returncode=result.returncode)

    def _relative(self, filename: str) -> str:
        """Make a tool-reported file name relative to the project root."""
        path = Path(filename)
        if path.is_absolute():
            try:
                return path.relative_to(self.root).as_posix()
            except ValueError:
                return path.as_posix()
        return path.as_posix()
