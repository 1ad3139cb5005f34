"""Unified result aggregating the payload of every executed metric."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog
import yaml

from codegauge.exceptions import DuplicateMetricError

logger = structlog.get_logger()


class UnifiedResult:
    """Ordered mapping of metric name to that metric's raw payload.

    A metric is present only once it finished successfully; a metric that
    raised is never partially recorded.

    Example:
        >>> result = UnifiedResult()
        >>> result.add("churn", [{"file": "a.py", "times_changed": 3}])
        >>> result.names
        ['churn']
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def add(self, name: str, payload: Any) -> None:
        """Record the payload of a metric.

        Raises:
            DuplicateMetricError: If ``name`` was already added.
        """
        if name in self._entries:
            raise DuplicateMetricError(name)
        self._entries[name] = payload
        logger.debug("Added metric result", metric=name)

    @property
    def names(self) -> list[str]:
        """Metric names in the order they were added."""
        return list(self._entries)

    def as_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the entries."""
        return dict(self._entries)

    def __getitem__(self, name: str) -> Any:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._entries.items())

    def to_yaml(self) -> str:
        """Serialize the entries to YAML."""
        return yaml.safe_dump(self._entries, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> Path:
        """Write the YAML representation to ``path``.

        Returns:
            The path written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_yaml())
        return path

    @classmethod
    def from_yaml(cls, content: str) -> UnifiedResult:
        """Parse a result from its YAML representation.

        Raises:
            ValueError: If the YAML is invalid or not a mapping.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML: {e}"
            raise ValueError(msg) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = "Result YAML must be a mapping"
            raise ValueError(msg)

        result = cls()
        for name, payload in data.items():
            result.add(str(name), payload)
        return result

    @classmethod
    def load(cls, path: Path) -> UnifiedResult:
        """Load a result previously written with :meth:`save`."""
        if not path.exists():
            msg = f"Result file not found: {path}"
            raise FileNotFoundError(msg)
        return cls.from_yaml(path.read_text())
