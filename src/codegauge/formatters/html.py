"""HTML report formatter using Jinja2."""

from __future__ import annotations

import webbrowser
from pathlib import Path
from typing import Any

import jinja2
import structlog
import yaml

from codegauge.formatters.base import Formatter, describe_payload
from codegauge.result import UnifiedResult

logger = structlog.get_logger()

# Template directory is relative to this module
TEMPLATES_DIR = Path(__file__).parent / "templates"


class HtmlFormatter(Formatter):
    """Renders an HTML report tree.

    Before rendering, the raw result is saved as the dated data snapshot so
    the report can show how each metric moved over time.

    Files written:
    - <data_directory>/<YYYYMMDD>.yml - raw-data snapshot for today
    - <output>/index.html - overview and history
    - <output>/<metric>.html - one page per metric

    With a filename the index becomes <filename>.html and metric pages
    <filename>-<metric>.html, so several revisions can share one directory.
    """

    name = "html"
    description = "HTML report tree with a dated data snapshot"

    def __init__(self, *args: Any, templates_dir: Path | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )
        self.env.filters["describe"] = describe_payload
        self.env.filters["to_yaml"] = lambda value: yaml.safe_dump(
            value, default_flow_style=False, sort_keys=False
        )

    @property
    def output_dir(self) -> Path:
        """Directory receiving the rendered tree."""
        if self.output is None:
            return self.paths.output_dir
        return self.paths.resolve(self.output)

    @property
    def index_path(self) -> Path:
        """Path of the overview page."""
        leaf = f"{self.filename}.html" if self.filename else "index.html"
        return self.output_dir / leaf

    def page_name(self, metric: str) -> str:
        """File name of the page for one metric."""
        return f"{self.filename}-{metric}.html" if self.filename else f"{metric}.html"

    def _history(self) -> list[dict[str, Any]]:
        """Summaries of every saved snapshot, oldest first."""
        history = []
        for snapshot in self.paths.list_snapshots():
            try:
                data = yaml.safe_load(snapshot.read_text()) or {}
            except yaml.YAMLError as e:
                logger.warning("Skipping unreadable snapshot", path=str(snapshot), error=str(e))
                continue
            if not isinstance(data, dict):
                continue
            history.append(
                {
                    "date": snapshot.stem,
                    "metrics": {name: describe_payload(payload) for name, payload in data.items()},
                }
            )
        return history

    def _render(self, template_name: str, out_path: Path, **context: Any) -> None:
        template = self.env.get_template(template_name)
        out_path.write_text(template.render(**context))
        self.written.append(out_path)

    def write(self, result: UnifiedResult) -> None:
        log = logger.bind(formatter=self.name, output=str(self.output_dir))

        snapshot = result.save(self.paths.snapshot_path())
        self.written.append(snapshot)
        log.info("Saved report data snapshot", path=str(snapshot))

        self.output_dir.mkdir(parents=True, exist_ok=True)
        metrics = result.items()
        self._render(
            "index.html.j2",
            self.index_path,
            metrics=[(name, payload, self.page_name(name)) for name, payload in metrics],
            history=self._history(),
        )
        for name, payload in metrics:
            self._render(
                "metric.html.j2",
                self.output_dir / self.page_name(name),
                name=name,
                payload=payload,
                index=self.index_path.name,
            )

        log.info("Rendered HTML report", index=str(self.index_path))

    def display(self) -> None:
        """Open the overview page in the default browser."""
        if not self.index_path.exists():
            logger.warning("HTML report not rendered, nothing to open")
            return
        logger.info("Opening report", path=str(self.index_path))
        webbrowser.open(self.index_path.as_uri())
