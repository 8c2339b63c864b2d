"""Jinja2 rendering for end-of-run crawl reports."""

from pathlib import Path
from typing import Any

import structlog
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from .models import CrawlSummary

logger = structlog.get_logger(__name__)

SUMMARY_TEMPLATE = "run_summary.md"
MAX_ERROR_LENGTH = 120


def shorten(value: Any, limit: int = MAX_ERROR_LENGTH) -> str:
    """Single-line text cut to limit characters; keeps table rows intact."""
    text = " ".join(str(value or "").split()).replace("|", "/")
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


class TemplateEngine:
    """Crawl report renderer backed by a template folder."""

    def __init__(self, template_dir: Path | None = None):
        """
        Args:
            template_dir: Folder holding report templates. Falls back to
                the templates/ folder shipped inside this package.
        """
        if template_dir is None:
            template_dir = Path(__file__).parent / "templates"

        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["shorten"] = shorten

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        """Render template_name with context; TemplateNotFound if it is missing."""
        return self.env.get_template(template_name).render(**context)

    def render_summary(self, summary: CrawlSummary, template_name: str = SUMMARY_TEMPLATE) -> str:
        """Markdown report: per-venue table, unhealthy venues, failed URLs."""
        unhealthy = [venue for venue in summary.venues if not venue.healthy]
        return self.render(template_name, {
            "summary": summary,
            "venues": summary.venues,
            "unhealthy": unhealthy,
        })

    def write_summary(
        self,
        summary: CrawlSummary,
        path: str | Path,
        template_name: str = SUMMARY_TEMPLATE,
    ) -> Path:
        """Render the run report to path, creating parent folders."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render_summary(summary, template_name), encoding="utf-8")
        logger.info("summary_written", path=str(path), venues=len(summary.venues))
        return path

    def list_templates(self) -> list[str]:
        return self.env.list_templates()

    def template_exists(self, template_name: str) -> bool:
        try:
            self.env.get_template(template_name)
        except TemplateNotFound:
            return False
        return True
