"""
Calendars that list shows as Ticketmaster links (Emo's, Scoot Inn).

Link text looks like "MOVED TO EMO'S - Artist and Opener - Spring Tour 8:00PM".
"""

import re
from dataclasses import dataclass
from typing import Optional

from bs4 import Tag

from ..fetch import Page, node_text
from ..models import ParseRequest, ParserId, RawEvent
from ..splitter import split
from .base import CrawlContext, ParserStrategy


MOVED_PREFIX = re.compile(r"^MOVED\s+TO\s+[^-–—]+[-–—]\s*", re.IGNORECASE)
SHOW_TIME = re.compile(r"(\d{1,2}):?(\d{2})?\s*(am|pm)", re.IGNORECASE)
TOUR_SUFFIX = re.compile(r"\s*[-–—]\s*(?:[^-–—]*\s)?(?:tour|leg)\b.*$", re.IGNORECASE)
TRAILING_DASHES = re.compile(r"[\s\-–—]+$")
ARTIST_SPLIT = re.compile(r"\s+(?:and|w/|with)\s+|,|\s+&\s+", re.IGNORECASE)


@dataclass
class LinkBilling:
    headliner: str
    supports: list[str]
    time_text: Optional[str] = None


def parse_link_text(text: str) -> Optional[LinkBilling]:
    """Split a link's billing text into headliner, supports and show time."""
    text = MOVED_PREFIX.sub("", text.strip())

    time_text = None
    match = SHOW_TIME.search(text)
    if match:
        time_text = match.group(0).strip()
        text = (text[:match.start()] + " " + text[match.end():]).strip()

    text = TOUR_SUFFIX.sub("", text)
    text = TRAILING_DASHES.sub("", text).strip()
    if not text:
        return None

    parts = split(text, ARTIST_SPLIT)
    if not parts:
        return None
    return LinkBilling(headliner=parts[0], supports=parts[1:], time_text=time_text)


def _calendar_date(anchor: Tag) -> Optional[str]:
    cell = anchor.find_parent(attrs={"data-date": True})
    return cell.get("data-date") if cell is not None else None


def _date_and_time(date: Optional[str], time_text: Optional[str]) -> Optional[str]:
    """Cell date with the link's show time appended, e.g. "2025-03-07 8:00PM"."""
    return " ".join(part for part in (date, time_text) if part) or None


class TicketmasterLinkParser(ParserStrategy):
    """Single-phase parser over ticketmaster.com link text."""

    def __init__(self, parser_id: ParserId):
        self.parser_id = parser_id

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        events: list[RawEvent] = []
        seen: set[str] = set()

        for anchor in page.select('a[href*="ticketmaster.com"]'):
            text = node_text(anchor)
            url = page.absolute(anchor.get("href"))
            if not text or not url or url in seen:
                continue
            seen.add(url)

            billing = parse_link_text(text)
            if billing is None:
                continue
            events.append(RawEvent(
                headliner=billing.headliner,
                supporting_acts=billing.supports,
                event_date_raw=_date_and_time(_calendar_date(anchor), billing.time_text),
                source_url=url,
            ))

        return events
