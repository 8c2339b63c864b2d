"""Tests for Jinja2 run reports."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from scrapers.venue_lineups.models import CrawlSummary, DuplicateMatch, VenueStatus
from scrapers.venue_lineups.template_engine import SUMMARY_TEMPLATE, TemplateEngine, shorten


class TestTemplateEngine:
    """Tests for TemplateEngine class."""

    @pytest.fixture
    def template_engine(self) -> TemplateEngine:
        """Create template engine with packaged templates."""
        return TemplateEngine()

    @pytest.fixture
    def summary(self) -> CrawlSummary:
        start = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        return CrawlSummary(
            started_at=start,
            finished_at=start + timedelta(seconds=42),
            total_rows=7,
            venues=[
                VenueStatus(venue_id="mohawkAustin", pages=1, rows=7),
                VenueStatus(venue_id="antones", pages=1, failures=1, last_error="HTTP 503"),
            ],
            failed_requests=["https://antonesnightclub.com/calendar/"],
        )

    def test_summary_template_exists(self, template_engine: TemplateEngine):
        assert template_engine.template_exists(SUMMARY_TEMPLATE)
        assert SUMMARY_TEMPLATE in template_engine.list_templates()

    def test_missing_template(self, template_engine: TemplateEngine):
        assert not template_engine.template_exists("nope.md")

    def test_render_summary(self, template_engine: TemplateEngine, summary: CrawlSummary):
        report = template_engine.render_summary(summary)

        assert "Rows written: **7**" in report
        assert "| mohawkAustin | 1 | 7 | 0 | 0 | ok |" in report
        assert "| antones | 1 | 0 | 0 | 1 | check |" in report
        assert "## Needs attention" in report
        assert "- antones: HTTP 503" in report
        assert "- https://antonesnightclub.com/calendar/" in report

    def test_healthy_run_has_no_attention_section(self, template_engine: TemplateEngine, summary: CrawlSummary):
        summary.venues = [VenueStatus(venue_id="mohawkAustin", pages=1, rows=7)]
        summary.failed_requests = []
        report = template_engine.render_summary(summary)
        assert "Needs attention" not in report
        assert "Failed requests" not in report

    def test_dropped_duplicates_listed(self, template_engine: TemplateEngine, summary: CrawlSummary):
        summary.dropped_duplicates = [DuplicateMatch(
            key="band beta",
            kept_artist="Band Beta",
            dropped_artist="Band Beta",
            kept_source_url="https://mohawkaustin.com/",
            dropped_source_url="https://mohawkaustin.com/event/2",
            reason="Dropped headliner 'Band Beta' (kept support row)",
        )]
        report = template_engine.render_summary(summary)

        assert "## Dropped duplicates (1)" in report
        assert "- Dropped headliner 'Band Beta' (kept support row) (https://mohawkaustin.com/event/2)" in report

    def test_no_duplicates_section_when_none_dropped(self, template_engine: TemplateEngine, summary: CrawlSummary):
        assert "Dropped duplicates" not in template_engine.render_summary(summary)

    def test_custom_template_dir(self, tmp_path: Path, summary: CrawlSummary):
        (tmp_path / SUMMARY_TEMPLATE).write_text("{{ summary.total_rows }} rows")
        assert TemplateEngine(template_dir=tmp_path).render_summary(summary) == "7 rows"

    def test_write_summary(self, template_engine: TemplateEngine, summary: CrawlSummary, tmp_path: Path):
        path = template_engine.write_summary(summary, tmp_path / "reports" / "run.md")

        assert path.exists()
        assert "| antones | 1 | 0 | 0 | 1 | check |" in path.read_text(encoding="utf-8")

    def test_long_errors_shortened(self, template_engine: TemplateEngine, summary: CrawlSummary):
        summary.venues[1].last_error = "Server error | " + "x" * 300
        report = template_engine.render_summary(summary)

        line = next(line for line in report.splitlines() if line.startswith("- antones:"))
        assert line.endswith("...")
        assert "|" not in line
        assert len(line) < 150


class TestShorten:
    """Tests for the shorten filter."""

    def test_short_text_unchanged(self):
        assert shorten("HTTP 503") == "HTTP 503"

    def test_collapses_lines(self):
        assert shorten("line one\n  line two") == "line one line two"

    def test_none(self):
        assert shorten(None) == ""

    def test_cut(self):
        assert shorten("abcdefghij", limit=8) == "abcde..."
