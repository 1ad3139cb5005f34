"""Custom exceptions for codegauge."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class CodeGaugeError(Exception):
    """Base exception for all codegauge errors."""

    pass


class ConfigError(CodeGaugeError):
    """Raised when configuration or run overrides are invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Path | None = None,
        field: str = "",
    ) -> None:
        super().__init__(message)
        self.config_path = config_path
        self.field = field


class UnknownMetricError(ConfigError):
    """Raised when a metric name is not registered."""

    def __init__(self, metric: str, *, known: list[str] | None = None) -> None:
        message = f"Unknown metric: '{metric}'"
        if known:
            message += f" (known metrics: {', '.join(known)})"
        super().__init__(message, field=metric)
        self.metric = metric
        self.known = known or []


class UnknownOptionError(ConfigError):
    """Raised when a metric does not recognize an option name."""

    def __init__(self, metric: str, option: str) -> None:
        super().__init__(
            f"Metric '{metric}' has no option '{option}'",
            field=f"{metric}.{option}",
        )
        self.metric = metric
        self.option = option


class CommandError(CodeGaugeError):
    """Raised when a subprocess command fails."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        cwd: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.cwd = cwd


class GitError(CodeGaugeError):
    """Raised when switching revisions fails.

    ``phase`` is ``"checkout"`` when the target revision could not be checked
    out and ``"restore"`` when the original branch could not be restored.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: str = "",
        revision: str = "",
    ) -> None:
        super().__init__(message)
        self.phase = phase
        self.revision = revision


class GitUnavailableError(GitError):
    """Raised when git is not installed or the directory is not a repository."""

    pass


class MetricError(CodeGaugeError):
    """Raised when a metric cannot be activated or its tool fails."""

    def __init__(
        self,
        message: str,
        *,
        metric: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.metric = metric
        self.returncode = returncode


class DuplicateMetricError(CodeGaugeError):
    """Raised when a metric result is added twice in the same run."""

    def __init__(self, metric: str) -> None:
        super().__init__(f"Result for metric '{metric}' was already added")
        self.metric = metric


class StateError(CodeGaugeError):
    """Raised when a runner is used outside its lifecycle."""

    def __init__(self, message: str, *, current_state: str = "") -> None:
        super().__init__(message)
        self.current_state = current_state


@dataclass
class FormatterFailure:
    """A single formatter failure collected during report dispatch.

    Attributes:
        formatter: Name of the formatter that failed.
        phase: Which formatter step failed ("render" or "display").
        error: The exception raised.
    """

    formatter: str
    phase: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.formatter} ({self.phase}): {self.error}"


class ReportRenderError(CodeGaugeError):
    """Raised at the end of a run when one or more formatters failed."""

    def __init__(self, failures: list[FormatterFailure]) -> None:
        details = "; ".join(str(f) for f in failures)
        super().__init__(f"{len(failures)} formatter(s) failed: {details}")
        self.failures = failures
