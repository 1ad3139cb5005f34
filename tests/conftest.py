"""Pytest fixtures for codegauge tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import pytest

from codegauge.config import CodeGaugeConfig
from codegauge.context import RunContext
from codegauge.infra.command import CommandRunner
from codegauge.metrics.base import MetricOptions
from codegauge.metrics.registry import MetricRegistry


class StubOptions(MetricOptions):
    """Options for StubMetric."""

    threshold: int = 1


class StubMetric:
    """Metric returning a canned payload without running any tool."""

    options_model = StubOptions

    def __init__(
        self,
        name: str,
        payload: Any = "",
        error: Exception | None = None,
        log: list[str] | None = None,
    ) -> None:
        self.name = name
        self.payload = payload
        self.error = error
        self.log = log if log is not None else []
        self.activations = 0
        self.calls = 0
        self.seen_options: list[StubOptions] = []

    def activate(self) -> None:
        self.activations += 1

    def run_external(self, options: StubOptions) -> Any:
        self.calls += 1
        self.seen_options.append(options)
        self.log.append(self.name)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def stub_registry() -> MetricRegistry:
    """Registry with three stub metrics: churn, complexity, style."""
    return MetricRegistry(
        [
            StubMetric("churn", payload=[{"file": "a.py", "times_changed": 12}]),
            StubMetric("complexity", payload={"average": 2.5, "blocks": []}),
            StubMetric("style", payload={"total": 0, "by_code": {}, "violations": []}),
        ]
    )


@pytest.fixture
def context(tmp_project: Path, stub_registry: MetricRegistry) -> RunContext:
    """RunContext over the stub registry with the default config."""
    return RunContext.from_config(
        CodeGaugeConfig.default(),
        tmp_project,
        registry=stub_registry,
    )


@pytest.fixture
def command_runner() -> CommandRunner:
    """Create a CommandRunner instance."""
    return CommandRunner()


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository.

    Creates a repo on branch main with two commits; the first is tagged
    ``v1``.
    """
    repo = tmp_path / "repo"
    repo.mkdir()

    def git(*args: str) -> None:
        subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)

    git("init")
    git("config", "user.email", "test@test.com")
    git("config", "user.name", "Test User")

    (repo / "app.py").write_text("def main():\n    return 1\n")
    git("add", "-A")
    git("commit", "-m", "Initial commit")
    git("branch", "-M", "main")
    git("tag", "v1")

    (repo / "app.py").write_text("def main():\n    return 2\n")
    git("commit", "-am", "Second commit")

    return repo
