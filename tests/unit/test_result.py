"""Tests for UnifiedResult."""

from __future__ import annotations

from pathlib import Path

import pytest

from codegauge.exceptions import DuplicateMetricError
from codegauge.result import UnifiedResult


def test_add_keeps_order() -> None:
    result = UnifiedResult()
    result.add("style", {"total": 1})
    result.add("churn", [])

    assert result.names == ["style", "churn"]
    assert len(result) == 2
    assert "churn" in result
    assert result["style"] == {"total": 1}


def test_add_duplicate_fails_without_overwriting() -> None:
    result = UnifiedResult()
    result.add("churn", "first")

    with pytest.raises(DuplicateMetricError) as exc_info:
        result.add("churn", "second")

    assert exc_info.value.metric == "churn"
    assert result["churn"] == "first"


def test_save_and_load(tmp_path: Path) -> None:
    result = UnifiedResult()
    result.add("churn", [{"file": "a.py", "times_changed": 11}])
    result.add("stats", {"totals": {"loc": 10}})

    path = result.save(tmp_path / "nested" / "report.yml")
    loaded = UnifiedResult.load(path)

    assert loaded.as_dict() == result.as_dict()
    assert loaded.names == ["churn", "stats"]


def test_from_yaml_empty_document() -> None:
    assert len(UnifiedResult.from_yaml("")) == 0


def test_from_yaml_rejects_non_mapping() -> None:
    with pytest.raises(ValueError, match="mapping"):
        UnifiedResult.from_yaml("- a\n- b\n")


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        UnifiedResult.load(tmp_path / "missing.yml")
