"""
Modern Events Calendar venues (The Parish, Empire).

Calendar pages list "/events/" links; event pages bill the lineup in the
heading ("Satsang w/ Tim Snider at The Parish") and sometimes repeat
openers on a "with ..." line.
"""

import re
from typing import Optional, Sequence

from ..fetch import Page
from ..models import CalendarContinuation, ParseRequest, ParserId, RawEvent
from .base import CalendarLink, CalendarParser, CrawlContext, ParserStrategy, collect_links


EVENT_LINKS = 'a[href*="/events/"]'
DETAIL_HEADING = "h1, .entry-title, .post-title, .event-title"
SUPPORT_LINE = re.compile(r"^(with|featuring|feat\.?|w/)\s+", re.IGNORECASE)
HEADING_SUPPORT_SPLIT = re.compile(r",|\s+and\s+|\s+&\s+|\s*/\s*", re.IGNORECASE)
LINE_SUPPORT_SPLIT = re.compile(r",|\s+and\s+|\s+&\s+", re.IGNORECASE)
DATE_TAIL = re.compile(r"\s+on\s+.*$", re.IGNORECASE)
HEADLINER_TIME = re.compile(r"\s+\d{1,2}:\d{2}\s*(am|pm)?", re.IGNORECASE)
HEADLINER_DESCRIPTOR = re.compile(r"\s+[-–]\s+.*$")

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 99


class MecCalendar(CalendarParser):
    """Calendar page: queue every "/events/" link for the paired detail parser."""

    def __init__(self, parser_id: ParserId, detail_parser_id: ParserId):
        self.parser_id = parser_id
        self.detail_parser_id = detail_parser_id

    def find_links(self, page: Page) -> list[CalendarLink]:
        return collect_links(page, EVENT_LINKS, min_title_length=MIN_NAME_LENGTH)


class HeadingLineupEvent(ParserStrategy):
    """
    Event page whose heading carries "Artist w/ Support at Room".

    Args:
        parser_id: Registered id
        location_words: Words that introduce a room/venue suffix to trim
    """

    continuation_type = CalendarContinuation

    def __init__(self, parser_id: ParserId, location_words: Sequence[str] = ("at",)):
        self.parser_id = parser_id
        self.location_words = tuple(location_words)
        words = "|".join(re.escape(w) for w in self.location_words)
        self.heading_pattern = re.compile(
            rf"(.+?)\s+(?:w/|with)\s+(.+?)(?:\s+(?:{words})\s+|$)", re.IGNORECASE
        )
        self.location_tail = re.compile(rf"\s+(?:{words})\s+.*$", re.IGNORECASE)

    def _valid(self, name: str) -> bool:
        return MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH

    def split_heading(self, title: str) -> tuple[str, list[str]]:
        """Split "Main w/ A, B at Room" into ("Main", ["A", "B"])."""
        match = self.heading_pattern.match(title)
        if not match:
            return title, []

        supports = []
        for part in HEADING_SUPPORT_SPLIT.split(match.group(2)):
            part = self.location_tail.sub("", part).strip()
            if self._valid(part):
                supports.append(part)
        return match.group(1).strip(), supports

    def supports_from_lines(self, lines: Sequence[str]) -> list[str]:
        """Names from lines starting with with/featuring/feat./w/."""
        names: list[str] = []
        for line in lines:
            if not SUPPORT_LINE.match(line):
                continue
            rest = SUPPORT_LINE.sub("", line).strip()
            rest = DATE_TAIL.sub("", rest)
            rest = self.location_tail.sub("", rest)
            for part in LINE_SUPPORT_SPLIT.split(rest):
                part = part.strip()
                if self._valid(part):
                    names.append(part)
        return names

    def tidy_headliner(self, headliner: str) -> str:
        headliner = HEADLINER_TIME.sub("", headliner)
        headliner = HEADLINER_DESCRIPTOR.sub("", headliner)
        headliner = self.location_tail.sub("", headliner)
        return headliner.strip()

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        calendar = self.calendar_context(request)
        headliner = calendar.calendar_title or page.heading(DETAIL_HEADING)

        supports: list[str] = []
        if headliner:
            headliner, supports = self.split_heading(headliner)

        for name in self.supports_from_lines(page.lines()):
            if name not in supports:
                supports.append(name)

        if headliner:
            headliner = self.tidy_headliner(headliner) or headliner

        return [RawEvent(
            headliner=headliner,
            supporting_acts=list(dict.fromkeys(supports)),
            event_date_raw=calendar.calendar_date,
            source_url=page.url,
        )]
