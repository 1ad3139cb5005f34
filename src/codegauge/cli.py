"""CLI interface for codegauge."""

from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import Annotated, Any

import structlog
import typer
import yaml
from typer._click.exceptions import NoSuchOption
from typer.core import TyperCommand, TyperGroup

from codegauge import __version__
from codegauge.config import CONFIG_FILENAME, CodeGaugeConfig
from codegauge.exceptions import CodeGaugeError, GitError, ReportRenderError
from codegauge.formatters.dispatch import FORMATTERS, parse_format_option
from codegauge.runner import RunOptions, create_runner


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for CLI output on stderr."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
    )


configure_logging()

logger = structlog.get_logger()


class _InvalidOptionMixin:
    """Reports unknown flags as ``invalid option``."""

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)  # type: ignore[misc]
        except NoSuchOption as e:
            raise NoSuchOption(
                e.option_name,
                message=f"invalid option: {e.option_name}",
                possibilities=e.possibilities,
                ctx=ctx,
            ) from e


class CodeGaugeGroup(_InvalidOptionMixin, TyperGroup):
    pass


class CodeGaugeCommand(_InvalidOptionMixin, TyperCommand):
    pass


app = typer.Typer(
    name="codegauge",
    help="Aggregate static-analysis metrics into unified reports",
    no_args_is_help=True,
    cls=CodeGaugeGroup,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"codegauge version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug output."),
    ] = False,
) -> None:
    """codegauge - metrics aggregation for Python projects."""
    if verbose:
        configure_logging(verbose=True)


def parse_metric_overrides(
    settings: list[str],
    enable: list[str],
    disable: list[str],
) -> dict[str, Any]:
    """Build the metric override mapping from command line values.

    ``--set metric.option=value`` values are parsed as YAML, so numbers,
    booleans and lists work. ``--disable`` wins over ``--enable``.

    Raises:
        typer.BadParameter: If a ``--set`` value is malformed.
    """
    overrides: dict[str, Any] = {}
    for setting in settings:
        key, sep, raw = setting.partition("=")
        metric, dot, option = key.partition(".")
        if not sep or not dot or not metric or not option:
            msg = f"expected METRIC.OPTION=VALUE, got '{setting}'"
            raise typer.BadParameter(msg, param_hint="--set")
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            msg = f"invalid value in '{setting}': {e}"
            raise typer.BadParameter(msg, param_hint="--set") from e
        entry = overrides.setdefault(metric.strip(), {})
        entry[option.strip()] = value

    for name in enable:
        if not isinstance(overrides.get(name), dict):
            overrides[name] = True
    for name in disable:
        overrides[name] = False
    return overrides


def _find_config(base_dir: Path, config: Path | None) -> Path | None:
    if config is not None:
        return config
    default_config = base_dir / CONFIG_FILENAME
    return default_config if default_config.exists() else None


@app.command(cls=CodeGaugeCommand)
def run(
    base_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Project directory to measure",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path.cwd(),
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help=f"Path to {CONFIG_FILENAME} config file",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    formats: Annotated[
        list[str] | None,
        typer.Option(
            "--format",
            "-f",
            help="Formatter as NAME[:PATH]; repeatable; replaces configured formatters",
        ),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option(
            "--out",
            "-o",
            help="Output path for every formatter (relative to the base directory)",
        ),
    ] = None,
    githash: Annotated[
        str | None,
        typer.Option(
            "--githash",
            help="Check out this revision before measuring and name outputs after it",
        ),
    ] = None,
    open_report: Annotated[
        bool,
        typer.Option("--open/--no-open", help="Open the report when done"),
    ] = True,
    disable: Annotated[
        list[str] | None,
        typer.Option("--disable", help="Disable a metric; repeatable"),
    ] = None,
    enable: Annotated[
        list[str] | None,
        typer.Option("--enable", help="Enable a metric; repeatable"),
    ] = None,
    settings: Annotated[
        list[str] | None,
        typer.Option("--set", help="Metric option as METRIC.OPTION=VALUE; repeatable"),
    ] = None,
) -> None:
    """Run every enabled metric and render the reports."""
    log = logger.bind(command="run")
    log.info("Starting codegauge run", base_dir=str(base_dir))

    try:
        format_pairs = tuple(parse_format_option(value) for value in formats or [])
    except CodeGaugeError as e:
        raise typer.BadParameter(str(e), param_hint="--format") from e

    options = RunOptions(
        metrics=parse_metric_overrides(settings or [], enable or [], disable or []),
        formats=format_pairs,
        output=out,
        githash=githash,
        open=open_report,
    )

    try:
        runner = create_runner(
            base_dir,
            config_path=_find_config(base_dir, config),
        )
        result = runner.run(options)
    except ReportRenderError as e:
        log.error("Report rendering failed", failures=len(e.failures))
        for failure in e.failures:
            typer.echo(f"Error: formatter {failure}", err=True)
        raise typer.Exit(1) from e
    except GitError as e:
        log.error("Git operation failed", phase=e.phase, error=str(e))
        typer.echo(f"Error ({e.phase or 'git'}): {e}", err=True)
        raise typer.Exit(1) from e
    except CodeGaugeError as e:
        log.error("Run failed", error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    except Exception as e:
        traceback_str = traceback.format_exc()
        log.error("Run failed", error=str(e), traceback=traceback_str)
        typer.echo(f"Error: {e}", err=True)
        typer.echo("\nFull traceback:", err=True)
        typer.echo(traceback_str, err=True)
        raise typer.Exit(1) from e

    typer.echo(f"Measured {len(result)} metric(s): {', '.join(result.names) or 'none'}")
    for formatter in runner.reporter.formatters:
        for path in formatter.written:
            typer.echo(f"{formatter.name}: {path}")


@app.command("metrics", cls=CodeGaugeCommand)
def list_metrics(
    base_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Project directory",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path.cwd(),
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help=f"Path to {CONFIG_FILENAME} config file",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """List available metrics, whether they are enabled, and their options."""
    try:
        runner = create_runner(base_dir, config_path=_find_config(base_dir, config))
    except CodeGaugeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    for descriptor in runner.registry:
        status = "enabled" if descriptor.enabled else "disabled"
        description = getattr(descriptor.metric, "description", "")
        typer.echo(f"{descriptor.name} ({status}) - {description}")
        for option, value in descriptor.options.model_dump().items():
            typer.echo(f"    {option}: {value!r}")


@app.command("formats", cls=CodeGaugeCommand)
def list_formats() -> None:
    """List available formatters."""
    for name, formatter in FORMATTERS.items():
        typer.echo(f"{name} - {formatter.description}")


@app.command(cls=CodeGaugeCommand)
def init(
    base_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Project directory",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path.cwd(),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file"),
    ] = False,
) -> None:
    """Write a default config file."""
    config_path = base_dir / CONFIG_FILENAME
    if config_path.exists() and not force:
        typer.echo(f"Config file already exists: {config_path}", err=True)
        raise typer.Exit(1)

    CodeGaugeConfig.default().save(config_path)
    typer.echo(f"Created {config_path}")


if __name__ == "__main__":
    app()
