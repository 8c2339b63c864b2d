"""Stubb's Austin: "/tm-event/" listing links -> event pages with a "with ..." line."""

import re
from typing import Optional

from ..fetch import Page
from ..models import CalendarContinuation, ParseRequest, ParserId, RawEvent
from .base import CalendarLink, CalendarParser, CrawlContext, ParserStrategy, collect_links


WITH_LINE = re.compile(r"^with\s+", re.IGNORECASE)
OPENER_SPLIT = re.compile(r",| & | and ", re.IGNORECASE)


class StubbsCalendar(CalendarParser):
    parser_id = ParserId.STUBBS_AUSTIN
    detail_parser_id = ParserId.STUBBS_AUSTIN_EVENT

    def find_links(self, page: Page) -> list[CalendarLink]:
        return collect_links(page, 'a[href*="/tm-event/"]')


class StubbsEvent(ParserStrategy):
    """Openers come from the "with ..." line; the headliner from the listing title."""

    parser_id = ParserId.STUBBS_AUSTIN_EVENT
    continuation_type = CalendarContinuation

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        calendar = self.calendar_context(request)
        headliner = calendar.calendar_title or page.heading()

        supports: list[str] = []
        with_line = next((line for line in page.lines() if WITH_LINE.match(line)), None)
        if with_line:
            names = WITH_LINE.sub("", with_line).strip().rstrip(".")
            supports = [p.strip() for p in OPENER_SPLIT.split(names) if p.strip()]

        return [RawEvent(
            headliner=headliner,
            supporting_acts=supports,
            event_date_raw=calendar.calendar_date,
            source_url=page.url,
        )]
