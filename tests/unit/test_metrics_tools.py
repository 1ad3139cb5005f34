"""Unit tests for the built-in metrics with a mocked command runner."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from codegauge.exceptions import CommandError, MetricError
from codegauge.infra.command import CommandResult, CommandRunner
from codegauge.metrics.churn import ChurnMetric, ChurnOptions
from codegauge.metrics.duplication import DuplicationMetric, DuplicationOptions
from codegauge.metrics.radon import (
    ComplexityMetric,
    ComplexityOptions,
    MaintainabilityMetric,
    MaintainabilityOptions,
    StatsMetric,
    StatsOptions,
)
from codegauge.metrics.style import StyleMetric, StyleOptions


@pytest.fixture
def mock_cmd_runner() -> MagicMock:
    """Create a mock command runner."""
    return MagicMock(spec=CommandRunner)


def respond(mock: MagicMock, stdout: str, returncode: int = 0, stderr: str = "") -> None:
    mock.run.return_value = CommandResult(
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        command=[],
        cwd=None,
    )


class TestActivation:
    """Tests for tool availability checks."""

    def test_missing_binary(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        mock_cmd_runner.which.return_value = None
        metric = StyleMetric(cmd=mock_cmd_runner, root=tmp_path)

        with pytest.raises(MetricError, match="--disable style"):
            metric.activate()

    def test_binary_present(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        mock_cmd_runner.which.return_value = "/usr/bin/ruff"

        StyleMetric(cmd=mock_cmd_runner, root=tmp_path).activate()

        mock_cmd_runner.which.assert_called_once_with("ruff")

    def test_command_error_becomes_metric_error(
        self, mock_cmd_runner: MagicMock, tmp_path: Path
    ) -> None:
        mock_cmd_runner.run.side_effect = CommandError("Command not found: radon")

        with pytest.raises(MetricError) as exc_info:
            StatsMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(StatsOptions())

        assert exc_info.value.metric == "stats"


class TestChurnMetric:
    """Tests for ChurnMetric."""

    def test_counts_and_filters(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        log = "\n".join(["a.py", "b.py", "", "a.py", "vendor/x.py", "", "a.py", "vendor/x.py", "vendor/x.py"])
        respond(mock_cmd_runner, log)
        metric = ChurnMetric(cmd=mock_cmd_runner, root=tmp_path)

        payload = metric.run_external(
            ChurnOptions(minimum_churn_count=2, exclude=["vendor/*"], start_date="2 months ago")
        )

        assert payload == [{"file": "a.py", "times_changed": 3}]
        args = mock_cmd_runner.run.call_args.args[0]
        assert args[0] == "git"
        assert "--since=2 months ago" in args
        assert mock_cmd_runner.run.call_args.kwargs["cwd"] == tmp_path

    def test_sorted_by_count(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(mock_cmd_runner, "b.py\na.py\nb.py\n")

        payload = ChurnMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(
            ChurnOptions(minimum_churn_count=1)
        )

        assert [e["file"] for e in payload] == ["b.py", "a.py"]

    def test_git_failure(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(mock_cmd_runner, "", returncode=128, stderr="not a git repository")

        with pytest.raises(MetricError, match="not a git repository"):
            ChurnMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(ChurnOptions())


class TestRadonMetrics:
    """Tests for the radon-backed metrics."""

    def test_complexity(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        output = {
            str(tmp_path / "app.py"): [
                {"type": "function", "name": "small", "lineno": 1, "complexity": 2, "rank": "A"},
                {"type": "function", "name": "big", "lineno": 9, "complexity": 12, "rank": "C"},
            ],
            "broken.py": {"error": "invalid syntax"},
        }
        respond(mock_cmd_runner, json.dumps(output))

        payload = ComplexityMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(
            ComplexityOptions(min_rank="B", exclude=["tests/*"])
        )

        assert payload["average"] == 7.0
        assert [b["name"] for b in payload["blocks"]] == ["big", "small"]
        assert payload["blocks"][0]["file"] == "app.py"
        args = mock_cmd_runner.run.call_args.args[0]
        assert args[:3] == ["radon", "cc", "--json"]
        assert ["--min", "B"] == args[3:5]
        assert "--exclude" in args

    def test_complexity_empty(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(mock_cmd_runner, "{}")

        payload = ComplexityMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(
            ComplexityOptions()
        )

        assert payload == {"average": 0.0, "blocks": []}

    def test_maintainability(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(
            mock_cmd_runner,
            json.dumps({"a.py": {"mi": 80.123, "rank": "A"}, "b.py": {"mi": 12.5, "rank": "B"}}),
        )

        payload = MaintainabilityMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(
            MaintainabilityOptions()
        )

        assert payload == [
            {"file": "b.py", "mi": 12.5, "rank": "B"},
            {"file": "a.py", "mi": 80.12, "rank": "A"},
        ]

    def test_stats_totals(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        entry = {"loc": 10, "lloc": 6, "sloc": 8, "comments": 1, "multi": 0, "blank": 2, "single_comments": 1}
        respond(mock_cmd_runner, json.dumps({"a.py": entry, "b.py": entry}))

        payload = StatsMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(StatsOptions())

        assert payload["totals"]["loc"] == 20
        assert payload["totals"]["blank"] == 4
        assert [f["file"] for f in payload["files"]] == ["a.py", "b.py"]

    def test_invalid_json(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(mock_cmd_runner, "not json")

        with pytest.raises(MetricError, match="invalid JSON"):
            StatsMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(StatsOptions())


class TestStyleMetric:
    """Tests for StyleMetric."""

    def test_groups_by_code(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        diagnostics = [
            {"code": "E501", "message": "Line too long", "filename": str(tmp_path / "a.py"), "location": {"row": 3, "column": 89}},
            {"code": "F401", "message": "unused import", "filename": str(tmp_path / "b.py"), "location": {"row": 1, "column": 1}},
            {"code": "E501", "message": "Line too long", "filename": str(tmp_path / "b.py"), "location": {"row": 7, "column": 90}},
        ]
        respond(mock_cmd_runner, json.dumps(diagnostics))

        payload = StyleMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(
            StyleOptions(select=["E", "F"], ignore=["E402"])
        )

        assert payload["total"] == 3
        assert payload["by_code"] == {"E501": 2, "F401": 1}
        assert payload["violations"][0] == {
            "file": "a.py",
            "line": 3,
            "column": 89,
            "code": "E501",
            "message": "Line too long",
        }
        args = mock_cmd_runner.run.call_args.args[0]
        assert ["--select", "E,F"] == args[args.index("--select") : args.index("--select") + 2]

    def test_ruff_error(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(mock_cmd_runner, "", returncode=2, stderr="invalid config")

        with pytest.raises(MetricError, match="invalid config"):
            StyleMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(StyleOptions())


class TestDuplicationMetric:
    """Tests for DuplicationMetric."""

    def test_parses_similar_lines(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        messages = [
            {
                "symbol": "duplicate-code",
                "message": "Similar lines in 2 files\n==pkg.a:[1:6]\n==pkg.b:[10:15]\nx = 1\ny = 2\nz = 3\nw = 4\nv = 5",
            },
            {"symbol": "other", "message": "ignored"},
        ]
        # pylint sets bit 8 (refactor) when duplicate-code is reported
        respond(mock_cmd_runner, json.dumps(messages), returncode=8)

        payload = DuplicationMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(
            DuplicationOptions(min_similarity_lines=5)
        )

        assert payload["total"] == 1
        duplicate = payload["duplicates"][0]
        assert duplicate["locations"] == ["pkg.a:[1:6]", "pkg.b:[10:15]"]
        assert duplicate["lines"] == 5
        assert duplicate["summary"] == "Similar lines in 2 files"
        assert "--min-similarity-lines=5" in mock_cmd_runner.run.call_args.args[0]

    def test_fatal_exit(self, mock_cmd_runner: MagicMock, tmp_path: Path) -> None:
        respond(mock_cmd_runner, "", returncode=32, stderr="usage error")

        with pytest.raises(MetricError):
            DuplicationMetric(cmd=mock_cmd_runner, root=tmp_path).run_external(DuplicationOptions())
