"""Tests for the built-in formatters."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from codegauge.formatters.base import describe_payload
from codegauge.formatters.html import HtmlFormatter
from codegauge.formatters.structured import JsonFormatter, YamlFormatter
from codegauge.formatters.text import TextFormatter
from codegauge.paths import ReportPaths, snapshot_stamp
from codegauge.result import UnifiedResult


@pytest.fixture
def paths(tmp_path: Path) -> ReportPaths:
    return ReportPaths(root=tmp_path)


@pytest.fixture
def result() -> UnifiedResult:
    result = UnifiedResult()
    result.add("churn", [{"file": "a.py", "times_changed": 12}])
    result.add("style", {"total": 2, "by_code": {"E501": 2}, "violations": []})
    return result


class TestDescribePayload:
    """Tests for describe_payload."""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            (None, "no data"),
            ("", "no data"),
            ([1, 2, 3], "3 entries"),
            ({"total": 4}, "4 total"),
            ({"average": 1.5, "blocks": []}, "average 1.5"),
            ({"a": 1, "b": 2}, "2 keys"),
            ("first line\nsecond", "first line"),
        ],
    )
    def test_describe(self, payload: object, expected: str) -> None:
        assert describe_payload(payload) == expected


class TestYamlFormatter:
    """Tests for YamlFormatter output paths."""

    def test_default_path(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = YamlFormatter(paths=paths)

        formatter.write(result)

        assert paths.report_yml.exists()
        assert yaml.safe_load(paths.report_yml.read_text()) == result.as_dict()
        assert formatter.written == [paths.report_yml]

    def test_relative_file_output(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = YamlFormatter(paths=paths, output=Path("customreport.yml"))

        formatter.write(result)

        assert (paths.base_dir / "customreport.yml").exists()
        assert not paths.report_yml.exists()

    def test_directory_output(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = YamlFormatter(paths=paths, output=Path("customdir"))

        formatter.write(result)

        assert (paths.base_dir / "customdir" / "report.yml").exists()

    def test_absolute_output(self, tmp_path: Path, paths: ReportPaths, result: UnifiedResult) -> None:
        target = tmp_path / "elsewhere" / "out.yml"
        YamlFormatter(paths=paths, output=target).write(result)

        assert target.exists()

    def test_filename_only_changes_leaf(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = YamlFormatter(paths=paths, output=Path("customdir"), filename="abc123")

        formatter.write(result)

        assert formatter.target == paths.base_dir / "customdir" / "abc123.yml"
        assert formatter.target.exists()

    def test_filename_keeps_custom_suffix(self, paths: ReportPaths) -> None:
        formatter = YamlFormatter(paths=paths, output=Path("custom.yaml"), filename="v1")

        assert formatter.target == paths.base_dir / "v1.yaml"


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_writes_json(self, paths: ReportPaths, result: UnifiedResult) -> None:
        JsonFormatter(paths=paths).write(result)

        data = json.loads((paths.base_dir / "report.json").read_text())
        assert data["style"]["total"] == 2


class TestTextFormatter:
    """Tests for TextFormatter."""

    def test_prints_to_stdout(
        self, paths: ReportPaths, result: UnifiedResult, capsys: pytest.CaptureFixture[str]
    ) -> None:
        TextFormatter(paths=paths).write(result)

        out = capsys.readouterr().out
        assert "churn  1 entries" in out
        assert "style  2 total" in out

    def test_writes_file_when_output_given(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = TextFormatter(paths=paths, output=Path("summary.txt"))

        formatter.write(result)

        assert (paths.base_dir / "summary.txt").read_text().startswith("churn")

    def test_empty_result(self, paths: ReportPaths) -> None:
        assert TextFormatter(paths=paths).serialize(UnifiedResult()) == "No metrics were run.\n"


class TestHtmlFormatter:
    """Tests for HtmlFormatter."""

    def test_writes_snapshot_and_tree(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = HtmlFormatter(paths=paths)

        formatter.write(result)

        snapshot = paths.data_dir / f"{snapshot_stamp()}.yml"
        assert snapshot.exists()
        index = paths.output_dir / "index.html"
        assert index.exists()
        assert (paths.output_dir / "churn.html").exists()
        assert (paths.output_dir / "style.html").exists()
        content = index.read_text()
        assert 'href="churn.html"' in content
        assert "2 total" in content

    def test_custom_output_directory(self, paths: ReportPaths, result: UnifiedResult) -> None:
        HtmlFormatter(paths=paths, output=Path("customdir")).write(result)

        assert (paths.base_dir / "customdir" / "index.html").exists()
        assert not (paths.output_dir / "index.html").exists()

    def test_filename_renames_index(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = HtmlFormatter(paths=paths, filename="abc123")

        formatter.write(result)

        assert formatter.index_path == paths.output_dir / "abc123.html"
        assert formatter.index_path.exists()
        assert (paths.output_dir / "abc123-churn.html").exists()
        assert 'href="abc123-churn.html"' in formatter.index_path.read_text()

    def test_revisions_share_output_directory(self, paths: ReportPaths) -> None:
        first = UnifiedResult()
        first.add("churn", "first-revision")
        second = UnifiedResult()
        second.add("churn", "second-revision")

        HtmlFormatter(paths=paths, filename="rev1").write(first)
        HtmlFormatter(paths=paths, filename="rev2").write(second)

        assert "first-revision" in (paths.output_dir / "rev1-churn.html").read_text()
        assert "second-revision" in (paths.output_dir / "rev2-churn.html").read_text()
        assert 'href="rev1-churn.html"' in (paths.output_dir / "rev1.html").read_text()
        assert not (paths.output_dir / "churn.html").exists()

    def test_history_lists_previous_snapshots(
        self, paths: ReportPaths, result: UnifiedResult
    ) -> None:
        old = UnifiedResult()
        old.add("churn", [])
        old.save(paths.snapshot_path(datetime(2020, 5, 17)))

        HtmlFormatter(paths=paths).write(result)

        content = (paths.output_dir / "index.html").read_text()
        assert "20200517" in content
        assert "churn: 0 entries" in content

    def test_escapes_payload(self, paths: ReportPaths) -> None:
        result = UnifiedResult()
        result.add("style", "<script>alert(1)</script>")

        HtmlFormatter(paths=paths).write(result)

        page = (paths.output_dir / "style.html").read_text()
        assert "<script>" not in page

    def test_display_opens_index(self, paths: ReportPaths, result: UnifiedResult) -> None:
        formatter = HtmlFormatter(paths=paths)
        formatter.write(result)

        with patch("codegauge.formatters.html.webbrowser.open") as mock_open:
            formatter.display()

        mock_open.assert_called_once_with(formatter.index_path.as_uri())

    def test_display_without_render(self, paths: ReportPaths) -> None:
        with patch("codegauge.formatters.html.webbrowser.open") as mock_open:
            HtmlFormatter(paths=paths).display()

        mock_open.assert_not_called()
