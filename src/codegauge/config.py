"""Configuration file schema for codegauge."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "codegauge.yaml"


class FormatterConfig(BaseModel):
    """A configured formatter.

    Attributes:
        format: Formatter name (html, yaml, json, text).
        output: Output path; relative paths resolve under the base directory.
            None means the formatter's default location.
    """

    format: str
    output: str | None = None


class DirectoriesConfig(BaseModel):
    """Report directory layout.

    Attributes:
        base_directory: Root of all report output, relative to the project.
        output_directory: HTML report tree, relative to base_directory.
        data_directory: Dated raw-data snapshots, relative to base_directory.
    """

    base_directory: str = "tmp/codegauge"
    output_directory: str = "output"
    data_directory: str = "_data"


class CodeGaugeConfig(BaseModel):
    """Complete codegauge configuration.

    Attributes:
        version: Config schema version.
        directories: Report directory layout.
        metrics: Per-metric overrides. ``false`` disables a metric, ``true``
            enables it, a mapping sets its options.
        formatters: Formatters used when none are given on the command line.
        default_formatters: Formatters used when neither the command line nor
            ``formatters`` name any.

    Example:
        >>> config = CodeGaugeConfig.from_yaml("metrics:\\n  churn: false\\n")
        >>> config.metrics["churn"]
        False
    """

    version: str = "1.0"
    directories: DirectoriesConfig = Field(default_factory=DirectoriesConfig)
    metrics: dict[str, bool | dict[str, Any]] = Field(default_factory=dict)
    formatters: list[FormatterConfig] = Field(default_factory=list)
    default_formatters: list[FormatterConfig] = Field(
        default_factory=lambda: [
            FormatterConfig(format="html"),
            FormatterConfig(format="yaml"),
        ]
    )

    @field_validator("default_formatters")
    @classmethod
    def validate_default_formatters(cls, v: list[FormatterConfig]) -> list[FormatterConfig]:
        """Ensure there is always a fallback formatter."""
        if not v:
            msg = "default_formatters must name at least one formatter"
            raise ValueError(msg)
        return v

    def to_yaml(self) -> str:
        """Serialize the config to YAML.

        Returns:
            YAML string representation.
        """
        data = self.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        """Save the config to a YAML file.

        Args:
            path: Path to save the file.
        """
        path.write_text(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_content: str) -> CodeGaugeConfig:
        """Parse config from YAML content.

        Args:
            yaml_content: YAML string to parse.

        Returns:
            Parsed CodeGaugeConfig instance.

        Raises:
            ValueError: If the YAML is invalid.
        """
        try:
            data: dict[str, Any] = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML: {e}"
            raise ValueError(msg) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = "Config YAML must be a mapping"
            raise ValueError(msg)

        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path) -> CodeGaugeConfig:
        """Load config from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the YAML is invalid.
        """
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        return cls.from_yaml(path.read_text())

    @classmethod
    def default(cls) -> CodeGaugeConfig:
        """Create a default configuration."""
        return cls()
