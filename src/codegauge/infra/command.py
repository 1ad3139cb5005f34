"""Subprocess command runner with logging."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

from codegauge.exceptions import CommandError

logger = structlog.get_logger()


@dataclass
class CommandResult:
    """Result of a captured command execution.

    Attributes:
        returncode: Exit code of the process.
        stdout: Captured standard output.
        stderr: Captured standard error.
        command: The command that was run.
        cwd: Working directory where command ran.
    """

    returncode: int
    stdout: str
    stderr: str
    command: list[str]
    cwd: Path | None

    @property
    def ok(self) -> bool:
        """Check if the command exited with status 0."""
        return self.returncode == 0


class CommandRunner:
    """Runs subprocess commands with consistent logging.

    Every analysis tool and git call goes through this class. Calls block
    until the process exits; nothing runs in the background.

    Example:
        >>> runner = CommandRunner()
        >>> result = runner.run(["echo", "hello"], cwd=Path("/tmp"))
        >>> result.stdout
        'hello\\n'
    """

    @staticmethod
    def which(binary: str) -> str | None:
        """Locate a binary on PATH."""
        return shutil.which(binary)

    def run(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        check: bool = False,
    ) -> CommandResult:
        """Run a command and capture stdout/stderr in memory.

        Args:
            command: Command and arguments to run.
            cwd: Working directory for the command.
            check: If True, raise on non-zero exit code.

        Returns:
            CommandResult with exit code and captured output.

        Raises:
            CommandError: If the command cannot be started, or if check=True
                and the command fails.
        """
        log = logger.bind(command=command, cwd=str(cwd) if cwd else None)
        log.debug("Running command")

        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            log.error("Command not found", command=command[0])
            msg = f"Command not found: {command[0]}"
            raise CommandError(msg, command=command, cwd=cwd) from e

        log.debug("Command completed", returncode=completed.returncode)

        if check and completed.returncode != 0:
            msg = (
                f"Command failed with exit code {completed.returncode}: "
                f"{' '.join(command)}"
            )
            raise CommandError(
                msg,
                command=command,
                returncode=completed.returncode,
                cwd=cwd,
            )

        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            command=command,
            cwd=cwd,
        )

    def run_git(
        self,
        args: list[str],
        *,
        cwd: Path,
        check: bool = True,
    ) -> CommandResult:
        """Run a git command.

        Args:
            args: Git subcommand and arguments.
            cwd: Working directory (must be in a git repo).
            check: If True, raise on non-zero exit code.

        Returns:
            CommandResult of the git invocation.
        """
        return self.run(["git", *args], cwd=cwd, check=check)
