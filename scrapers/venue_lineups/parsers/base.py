"""
Parser strategy interface and shared calendar -> detail behaviour.

Each venue family implements ParserStrategy.parse(page, request, context).
Calendar strategies enqueue detail-page requests through the crawl
context; without a context they return lightweight summaries instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from ..fetch import Page, node_text
from ..models import CalendarContinuation, ParseRequest, ParserId, RawEvent

logger = structlog.get_logger(__name__)


class CrawlContext(ABC):
    """Handle a parser uses to add follow-up requests to the running crawl."""

    @abstractmethod
    async def enqueue(self, requests: Sequence[ParseRequest]) -> int:
        """Queue requests; returns how many were new."""


class ParserStrategy(ABC):
    """One parsing strategy, selected by its parser_id."""

    parser_id: ParserId
    # Continuation payload type this strategy reads, if any
    continuation_type: Optional[type] = None

    @abstractmethod
    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        """Extract raw events from a fetched page."""

    def calendar_context(self, request: ParseRequest) -> CalendarContinuation:
        """The request's calendar continuation, or an empty one."""
        if isinstance(request.continuation, CalendarContinuation):
            return request.continuation
        return CalendarContinuation()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.parser_id.value})"


@dataclass
class CalendarLink:
    """A detail-page link found on a calendar page."""

    url: str
    title: str
    date: Optional[str] = None


def collect_links(
    page: Page,
    selector: str,
    min_title_length: int = 1,
) -> list[CalendarLink]:
    """Anchors matching selector with non-empty text, unique by (url, title)."""
    links: list[CalendarLink] = []
    seen: set[tuple[str, str]] = set()

    for anchor in page.select(selector):
        title = node_text(anchor)
        url = page.absolute(anchor.get("href"))
        if not title or not url or len(title) < min_title_length:
            continue
        if not any(ch.isalnum() for ch in title):
            continue
        if (url, title) in seen:
            continue
        seen.add((url, title))
        links.append(CalendarLink(url=url, title=title))

    return links


class CalendarParser(ParserStrategy):
    """Calendar page that hands each event off to a detail parser."""

    detail_parser_id: ParserId

    @abstractmethod
    def find_links(self, page: Page) -> list[CalendarLink]:
        """Detail links on the calendar page."""

    def detail_request(self, link: CalendarLink, request: ParseRequest) -> ParseRequest:
        return ParseRequest(
            url=link.url,
            venue_id=request.venue_id,
            parser_id=self.detail_parser_id,
            continuation=CalendarContinuation(calendar_title=link.title, calendar_date=link.date),
        )

    def summary(self, link: CalendarLink) -> RawEvent:
        """Title-only event used when details can't be queued."""
        return RawEvent(headliner=link.title, event_date_raw=None, source_url=link.url)

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        links = self.find_links(page)
        if not links:
            return []

        if context is None:
            return [self.summary(link) for link in links]

        try:
            added = await context.enqueue([self.detail_request(link, request) for link in links])
        except Exception as e:
            logger.warning(
                "enqueue_failed",
                parser=self.parser_id.value,
                url=page.url,
                links=len(links),
                error=str(e),
            )
            return [self.summary(link) for link in links]

        logger.info(
            "detail_requests_enqueued",
            parser=self.parser_id.value,
            detail_parser=self.detail_parser_id.value,
            url=page.url,
            found=len(links),
            added=added,
        )
        return []
