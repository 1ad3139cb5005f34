"""Formatters rendering the unified result to files."""

from codegauge.formatters.base import FileFormatter, Formatter, describe_payload
from codegauge.formatters.dispatch import (
    FORMATTERS,
    FormatterSpec,
    build_formatters,
    parse_format_option,
    resolve_formatters,
    validate_format,
)
from codegauge.formatters.html import HtmlFormatter
from codegauge.formatters.structured import JsonFormatter, YamlFormatter
from codegauge.formatters.text import TextFormatter

__all__ = [
    "FORMATTERS",
    "FileFormatter",
    "Formatter",
    "FormatterSpec",
    "HtmlFormatter",
    "JsonFormatter",
    "TextFormatter",
    "YamlFormatter",
    "build_formatters",
    "describe_payload",
    "parse_format_option",
    "resolve_formatters",
    "validate_format",
]
