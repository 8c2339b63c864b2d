"""Tests for lineup data models."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from scrapers.venue_lineups.models import (
    CalendarContinuation,
    CrawlInput,
    CrawlSettings,
    CrawlSummary,
    DialogContinuation,
    NormalizedRow,
    ParseRequest,
    ParserId,
    ProxySettings,
    Role,
    VenueConfig,
    VenueStatus,
)


class TestParseRequest:
    """Tests for ParseRequest and its continuations."""

    def test_camel_case_input(self):
        request = ParseRequest.model_validate({
            "url": "https://antonesnightclub.com/calendar/#tw-event-dialog-1",
            "venueId": "antones",
            "parserId": "antonesEvent",
            "continuation": {"kind": "dialog", "dialogId": "tw-event-dialog-1", "calendarDate": "2025-03-07"},
        })

        assert request.parser_id is ParserId.ANTONES_EVENT
        assert isinstance(request.continuation, DialogContinuation)
        assert request.continuation.dialog_id == "tw-event-dialog-1"

    def test_calendar_continuation(self):
        request = ParseRequest(
            url="https://stubbsaustin.com/tm-event/x/",
            venue_id="stubbsAustin",
            parser_id=ParserId.STUBBS_AUSTIN_EVENT,
            continuation={"kind": "calendar", "calendarTitle": "Band Alpha"},
        )
        assert isinstance(request.continuation, CalendarContinuation)
        assert request.continuation.calendar_title == "Band Alpha"

    def test_unknown_parser_rejected(self):
        with pytest.raises(ValidationError):
            ParseRequest(url="https://example.test/", venue_id="x", parser_id="nope")

    def test_dialog_requires_id(self):
        with pytest.raises(ValidationError):
            DialogContinuation()


class TestNormalizedRow:
    """Tests for NormalizedRow."""

    def test_serializes_camel_case(self, make_row):
        data = json.loads(make_row("Band Alpha").model_dump_json(by_alias=True))

        assert data["artistName"] == "Band Alpha"
        assert data["venueParserId"] == "mohawkAustin"
        assert data["role"] == "headliner"
        assert "scrapedAt" in data

    def test_empty_artist_rejected(self):
        with pytest.raises(ValidationError):
            NormalizedRow(
                venue_id="v",
                venue_parser_id="mohawkAustin",
                source_url="https://example.test/",
                role=Role.SUPPORT,
                artist_name="",
            )

    def test_scraped_at_defaults_to_utc(self):
        row = NormalizedRow(
            venue_id="v",
            venue_parser_id="mohawkAustin",
            source_url="https://example.test/",
            role=Role.UNKNOWN,
            artist_name="Band Alpha",
        )
        assert row.scraped_at.tzinfo is not None


class TestConfigModels:
    """Tests for crawl input and settings."""

    def test_venue_parser_defaults_to_id(self):
        venue = VenueConfig(id="mohawkAustin", start_url="https://mohawkaustin.com/")
        assert venue.effective_parser_id == "mohawkAustin"

    def test_venue_parser_override(self):
        venue = VenueConfig.model_validate({"id": "x", "startUrl": "https://x.test/", "parserId": "scootInn"})
        assert venue.effective_parser_id == "scootInn"

    def test_crawl_input_camel_case(self):
        crawl_input = CrawlInput.model_validate({
            "venues": [{"id": "antones", "startUrl": "https://antonesnightclub.com/calendar/"}],
            "proxyConfiguration": {"proxyUrls": ["http://proxy.test:8000"]},
            "maxConcurrency": 2,
        })
        assert crawl_input.max_concurrency == 2
        assert crawl_input.proxy_configuration.proxy_url == "http://proxy.test:8000"

    def test_no_proxy(self):
        assert ProxySettings().proxy_url is None

    @pytest.mark.parametrize("configured,expected", [(5, 3), (3, 3), (2, 2), (1, 1), (0, 1)])
    def test_worker_count_capped(self, configured, expected):
        """Never more than three concurrent workers."""
        assert CrawlSettings(max_concurrency=configured).worker_count == expected

    def test_settings_defaults(self):
        settings = CrawlSettings()
        assert settings.request_timeout_secs == 90.0
        assert settings.max_retries == 3
        assert settings.dedupe is True


class TestSummaryModels:
    """Tests for run summary models."""

    def test_venue_status_healthy(self):
        assert VenueStatus(venue_id="v", rows=3).healthy is True
        assert VenueStatus(venue_id="v", rows=3, failures=1).healthy is False
        assert VenueStatus(venue_id="v").healthy is False

    def test_duration(self):
        start = datetime(2025, 3, 1, tzinfo=timezone.utc)
        summary = CrawlSummary(started_at=start, finished_at=start + timedelta(seconds=12.5), total_rows=0)
        assert summary.duration_secs == 12.5
