"""Git checkout management for measuring a specific revision."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

from codegauge.exceptions import CommandError, GitError, GitUnavailableError
from codegauge.infra.command import CommandRunner

logger = structlog.get_logger()


class GitCheckout:
    """Switches the working tree to a revision and back.

    The original branch is recorded on the first checkout only, so a single
    instance tracks at most one excursion. Nested or overlapping excursions
    are not supported.

    Example:
        >>> git = GitCheckout(CommandRunner(), Path("/project"))
        >>> with git.checked_out("abc123"):
        ...     measure()
    """

    def __init__(self, cmd: CommandRunner, repo_root: Path) -> None:
        """Initialize the checkout manager.

        Args:
            cmd: CommandRunner instance.
            repo_root: Root of the git repository.
        """
        self.cmd = cmd
        self.repo_root = repo_root
        self._original_ref: str | None = None

    @property
    def original_ref(self) -> str | None:
        """Branch (or SHA for a detached HEAD) recorded before the checkout."""
        return self._original_ref

    def ensure_available(self) -> None:
        """Verify that git is installed and repo_root is inside a work tree.

        Raises:
            GitUnavailableError: If git cannot be used here.
        """
        if self.cmd.which("git") is None:
            msg = "Cannot select git revision: git executable not found on PATH"
            raise GitUnavailableError(msg, phase="checkout")

        try:
            result = self.cmd.run_git(
                ["rev-parse", "--is-inside-work-tree"],
                cwd=self.repo_root,
                check=False,
            )
        except CommandError as e:
            msg = f"Cannot select git revision: {e}"
            raise GitUnavailableError(msg, phase="checkout") from e

        if not result.ok or result.stdout.strip() != "true":
            msg = f"Cannot select git revision: {self.repo_root} is not a git repository"
            raise GitUnavailableError(msg, phase="checkout")

    def current_branch(self) -> str:
        """Get the current branch name, or the HEAD SHA when detached.

        Raises:
            GitError: If HEAD cannot be resolved.
        """
        result = self.cmd.run_git(
            ["symbolic-ref", "--quiet", "--short", "HEAD"],
            cwd=self.repo_root,
            check=False,
        )
        if result.ok and result.stdout.strip():
            return result.stdout.strip()

        result = self.cmd.run_git(["rev-parse", "HEAD"], cwd=self.repo_root, check=False)
        if not result.ok:
            msg = f"Unable to determine current branch: {result.stderr.strip()}"
            raise GitError(msg, phase="checkout")
        return result.stdout.strip()

    def checkout(self, revision: str) -> None:
        """Check out a revision, recording the original branch first.

        Args:
            revision: Commit SHA, tag or branch to check out.

        Raises:
            GitUnavailableError: If git cannot be used.
            GitError: With phase "checkout" if the checkout fails.
        """
        log = logger.bind(revision=revision, repo=str(self.repo_root))
        self.ensure_available()

        if self._original_ref is None:
            self._original_ref = self.current_branch()

        log.info("Checking out revision", original=self._original_ref)
        result = self.cmd.run_git(
            ["checkout", "--quiet", revision],
            cwd=self.repo_root,
            check=False,
        )
        if not result.ok:
            log.error("Unable to checkout revision", stderr=result.stderr.strip())
            msg = f"Unable to checkout githash: {revision}: {result.stderr.strip()}"
            raise GitError(msg, phase="checkout", revision=revision)

    def restore(self) -> None:
        """Check out the branch recorded before the first checkout.

        Raises:
            GitError: With phase "restore" if the original branch cannot be
                checked out again.
        """
        if self._original_ref is None:
            return

        log = logger.bind(original=self._original_ref, repo=str(self.repo_root))
        log.info("Checking out original branch")
        result = self.cmd.run_git(
            ["checkout", "--quiet", self._original_ref],
            cwd=self.repo_root,
            check=False,
        )
        if not result.ok:
            log.error("Unable to restore original branch", stderr=result.stderr.strip())
            msg = (
                f"Unable to reset git status to branch '{self._original_ref}': "
                f"{result.stderr.strip()}"
            )
            raise GitError(msg, phase="restore", revision=self._original_ref)

    @contextmanager
    def checked_out(self, revision: str) -> Iterator[str]:
        """Check out ``revision`` for the duration of the block.

        The original branch is restored on every exit path once the checkout
        succeeded. A failed checkout raises before the block runs and no
        restore is attempted.

        Yields:
            The original branch name.
        """
        self.checkout(revision)
        try:
            yield self.original_ref or ""
        finally:
            self.restore()
