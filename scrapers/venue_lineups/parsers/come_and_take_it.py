"""Come and Take It Productions: "More Info" calendar links -> event pages."""

import re
from typing import Optional

from bs4 import Tag

from ..fetch import Page, node_text
from ..lineup import LineupOptions, assign_lineup, extract
from ..models import ParseRequest, ParserId, RawEvent
from .base import CalendarLink, CalendarParser, CrawlContext, ParserStrategy


PRESENTS_LINE = re.compile(r"Come and Take It Productions presents", re.IGNORECASE)
PRESENTS_PREFIX = re.compile(r"Come and Take It Productions presents:?\s*", re.IGNORECASE)
# "Friday, March 7"
WEEKDAY_DATE = re.compile(r"^[A-Za-z]+,\s+[A-Za-z]+\s+\d{1,2}$")
MORE_INFO = re.compile(r"^\s*more\s+info\s*$", re.IGNORECASE)
CARD_HEADING = "h1, h2, h3, h4, .event-title, .entry-title"
MAX_CARD_DEPTH = 4

LINEUP_OPTIONS = LineupOptions(
    start_pattern=PRESENTS_LINE,
    max_line_length=80,
    max_candidates=8,
    max_words=8,
)


class ComeAndTakeItCalendar(CalendarParser):
    parser_id = ParserId.COME_AND_TAKE_IT
    detail_parser_id = ParserId.COME_AND_TAKE_IT_EVENT

    @staticmethod
    def _card_title(anchor: Tag) -> Optional[str]:
        """Heading of the nearest enclosing event card."""
        for depth, parent in enumerate(anchor.parents):
            if depth >= MAX_CARD_DEPTH or parent.name in ("body", "html"):
                break
            heading = parent.select_one(CARD_HEADING)
            if heading is not None:
                return node_text(heading) or None
        return anchor.get("title") or anchor.get("aria-label")

    def find_links(self, page: Page) -> list[CalendarLink]:
        links: list[CalendarLink] = []
        seen: set[str] = set()

        for anchor in page.select("a[href]"):
            if not MORE_INFO.match(node_text(anchor)):
                continue
            url = page.absolute(anchor.get("href"))
            if not url or url in seen:
                continue
            seen.add(url)

            links.append(CalendarLink(url=url, title=self._card_title(anchor) or url))

        return links

    def detail_request(self, link: CalendarLink, request: ParseRequest) -> ParseRequest:
        detail = super().detail_request(link, request)
        # Placeholder titles would override the lineup headliner
        if link.title == link.url:
            detail.continuation.calendar_title = None
        return detail


class ComeAndTakeItEvent(ParserStrategy):
    parser_id = ParserId.COME_AND_TAKE_IT_EVENT

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        lines = page.lines()
        event_date = next((line for line in lines if WEEKDAY_DATE.match(line)), None)

        headliner, supports = assign_lineup(extract(lines, LINEUP_OPTIONS))
        if not headliner:
            heading = page.heading("h1, .entry-title")
            if heading:
                headliner = PRESENTS_PREFIX.sub("", heading).strip() or None
        if not headliner:
            headliner = self.calendar_context(request).calendar_title

        return [RawEvent(
            headliner=headliner,
            supporting_acts=supports,
            event_date_raw=event_date or self.calendar_context(request).calendar_date,
            source_url=page.url,
        )]
