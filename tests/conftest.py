"""Shared pytest fixtures for venue lineup tests."""

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

import httpx
import pytest

from scrapers.venue_lineups.fetch import Page
from scrapers.venue_lineups.models import (
    CalendarContinuation,
    NormalizedRow,
    ParseRequest,
    ParserId,
    RawEvent,
    Role,
)
from scrapers.venue_lineups.parsers import CrawlContext


SCRAPED_AT = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingContext(CrawlContext):
    """CrawlContext that keeps every enqueued request."""

    def __init__(self):
        self.requests: list[ParseRequest] = []

    async def enqueue(self, requests: Sequence[ParseRequest]) -> int:
        self.requests.extend(requests)
        return len(requests)


class FailingContext(CrawlContext):
    """CrawlContext whose queue is unavailable."""

    async def enqueue(self, requests: Sequence[ParseRequest]) -> int:
        raise RuntimeError("queue closed")


@pytest.fixture
def context() -> RecordingContext:
    return RecordingContext()


@pytest.fixture
def failing_context() -> FailingContext:
    return FailingContext()


@pytest.fixture
def make_row() -> Callable[..., NormalizedRow]:
    """Factory for NormalizedRows with sensible defaults."""

    def _make(
        artist_name: str,
        role: Role = Role.HEADLINER,
        source_url: str = "https://example.test/event/1",
        venue_id: str = "mohawkAustin",
    ) -> NormalizedRow:
        return NormalizedRow(
            venue_id=venue_id,
            venue_parser_id=ParserId.MOHAWK_AUSTIN.value,
            source_url=source_url,
            event_date_raw="Fri, Mar 7",
            role=role,
            artist_name=artist_name,
            scraped_at=SCRAPED_AT,
        )

    return _make


@pytest.fixture
def sample_event() -> RawEvent:
    """A headliner with a compound billing and one parser-found opener."""
    return RawEvent(
        headliner="Satsang w/ Tim Snider",
        supporting_acts=["Opener Band"],
        event_date_raw="Friday, March 7",
        source_url="https://parishaustin.com/events/satsang/",
    )


@pytest.fixture
def make_request() -> Callable[..., ParseRequest]:
    """Factory for ParseRequests, optionally carrying a calendar continuation."""

    def _make(
        parser_id: ParserId,
        url: str = "https://example.test/",
        venue_id: Optional[str] = None,
        calendar_title: Optional[str] = None,
        calendar_date: Optional[str] = None,
    ) -> ParseRequest:
        continuation = None
        if calendar_title or calendar_date:
            continuation = CalendarContinuation(calendar_title=calendar_title, calendar_date=calendar_date)
        return ParseRequest(
            url=url,
            venue_id=venue_id or parser_id.value,
            parser_id=parser_id,
            continuation=continuation,
        )

    return _make


@pytest.fixture
def make_page() -> Callable[..., Page]:
    """Build a Page from markup, optionally backed by a mock HTTP handler."""

    def _make(html: str, url: str = "https://example.test/", handler=None) -> Page:
        client = None
        if handler is not None:
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return Page.from_html(html, url=url, client=client)

    return _make
