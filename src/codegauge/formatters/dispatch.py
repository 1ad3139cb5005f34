"""Formatter resolution: which formatters a run renders to, and where."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from codegauge.exceptions import ConfigError
from codegauge.formatters.base import Formatter
from codegauge.formatters.html import HtmlFormatter
from codegauge.formatters.structured import JsonFormatter, YamlFormatter
from codegauge.formatters.text import TextFormatter
from codegauge.paths import ReportPaths

if TYPE_CHECKING:
    from codegauge.context import RunContext
    from codegauge.runner import RunOptions

logger = structlog.get_logger()

FORMATTERS: dict[str, type[Formatter]] = {
    formatter.name: formatter
    for formatter in (HtmlFormatter, YamlFormatter, JsonFormatter, TextFormatter)
}


@dataclass(frozen=True)
class FormatterSpec:
    """A formatter to render to.

    Attributes:
        format: Formatter name, a key of FORMATTERS.
        output: Output path, or None for the formatter's default.
        filename: Replacement leaf file name, or None.
    """

    format: str
    output: Path | None = None
    filename: str | None = None


def validate_format(name: str) -> str:
    """Return ``name`` if it is a known formatter.

    Raises:
        ConfigError: If no formatter has that name.
    """
    if name not in FORMATTERS:
        msg = f"Unknown format '{name}' (available: {', '.join(FORMATTERS)})"
        raise ConfigError(msg, field="format")
    return name


def parse_format_option(value: str) -> tuple[str, Path | None]:
    """Split a ``NAME[:PATH]`` command line value.

    Example:
        >>> parse_format_option("yaml:out/report.yml")
        ('yaml', PosixPath('out/report.yml'))
    """
    name, sep, path = value.partition(":")
    return validate_format(name.strip()), Path(path) if sep and path else None


def resolve_formatters(context: RunContext, options: RunOptions) -> tuple[FormatterSpec, ...]:
    """Resolve the formatters of a run and store them on the context.

    Command line formats replace the configured formatters entirely. If none
    remain, the configured default set is used. The ``--out`` path is then
    applied to every spec and the githash becomes every spec's filename.

    Args:
        context: Run context holding the configured formatters.
        options: Options of the run.

    Returns:
        The resolved specs, in order.
    """
    log = logger.bind(githash=options.githash)
    filename = options.githash

    if options.formats:
        log.debug("Command line formats replace configured formatters")
        context.clear()
        for name, output in options.formats:
            context.configure_formatter(name, output, filename)

    if not context.formatters:
        log.debug("No formatters configured, using defaults")
        for name, output in context.default_formatters:
            context.configure_formatter(name, output, filename)

    resolved = []
    for spec in context.formatters:
        if options.output is not None:
            output = options.output / spec.output if spec.output else options.output
            spec = replace(spec, output=output)
        if filename is not None:
            spec = replace(spec, filename=filename)
        resolved.append(spec)

    context.clear()
    for spec in resolved:
        context.configure_formatter(spec.format, spec.output, spec.filename)

    log.info("Resolved formatters", formats=[s.format for s in resolved])
    return tuple(resolved)


def build_formatters(specs: Sequence[FormatterSpec], paths: ReportPaths) -> list[Formatter]:
    """Instantiate a formatter for every spec."""
    return [
        FORMATTERS[validate_format(spec.format)](
            paths=paths,
            output=spec.output,
            filename=spec.filename,
        )
        for spec in specs
    ]
