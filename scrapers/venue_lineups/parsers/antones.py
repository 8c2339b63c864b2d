"""
Antone's Nightclub: FullCalendar grid whose events open in-page dialogs.

Calendar anchors look like href="#tw-event-dialog-123" with text such as
"Smallpools w/ Kevian Kraemer Doors: 7:00pm Show: 8:00pm". The dialog
with that id holds the full billing.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from bs4 import Tag

from ..fetch import Page, node_text
from ..models import DialogContinuation, ParseRequest, ParserId, RawEvent
from ..splitter import split
from ..text import collapse_whitespace, normalize_key
from .base import CalendarLink, CalendarParser, CrawlContext, ParserStrategy


EVENT_SELECTOR = 'a[href^="#tw-event-dialog-"], .fc-daygrid-event'
DIALOG_HREF = "#tw-event-dialog-"
DIALOG_HEADING = "h1, h2, h3, .tw-event-title"
DOORS_TIME = re.compile(r"Doors\s*:\s*(\d{1,2}:?\d{0,2}\s*(?:am|pm))", re.IGNORECASE)
SHOW_TIME = re.compile(r"Show\s*:\s*(\d{1,2}:?\d{0,2}\s*(?:am|pm))", re.IGNORECASE)
BILLING_SPLIT = re.compile(r"\s+w/?\s+|\s+with\s+|,|\s+&\s+|\s+and\s+", re.IGNORECASE)
HAS_DELIMITER = re.compile(r"\bw/?\s|\bwith\b|,|&| and ", re.IGNORECASE)
NOT_BILLING = re.compile(r"doors\s*:|show\s*:|ticket|\$\d|\bages\b|admission", re.IGNORECASE)
LOCATION_TAIL = re.compile(r"\s+at\s+.*$", re.IGNORECASE)
TOUR_TAIL = re.compile(r"\s*-\s*Tour.*$", re.IGNORECASE)
PARENTHETICAL = re.compile(r"\(.*?\)")
LEADING_WITH = re.compile(r"^(?:with|w/)\s+", re.IGNORECASE)

MAX_HEADLINE_LENGTH = 80


@dataclass
class DialogLink(CalendarLink):
    dialog_id: str = ""


def strip_times(text: str) -> str:
    """Billing text with the Doors:/Show: times removed."""
    text = DOORS_TIME.sub("", collapse_whitespace(text))
    return collapse_whitespace(SHOW_TIME.sub("", text))


def tidy(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    name = LOCATION_TAIL.sub("", name)
    name = TOUR_TAIL.sub("", name)
    name = PARENTHETICAL.sub("", name)
    return name.strip() or None


def _cell_date(element: Tag) -> Optional[str]:
    cell = element.find_parent(attrs={"data-date": True})
    if cell is not None:
        return cell.get("data-date")
    day = element.find_parent(class_="fc-daygrid-day")
    if day is not None:
        number = day.select_one(".fc-daygrid-day-number")
        return node_text(number) or None
    return None


def _dialog_href(element: Tag) -> Optional[str]:
    href = element.get("href") or ""
    if href.startswith(DIALOG_HREF):
        return href
    inner = element.select_one(f'a[href^="{DIALOG_HREF}"]')
    return inner.get("href") if inner is not None else None


class AntonesCalendar(CalendarParser):
    parser_id = ParserId.ANTONES
    detail_parser_id = ParserId.ANTONES_EVENT

    def find_links(self, page: Page) -> list[CalendarLink]:
        base = page.url.split("#")[0]
        links: list[CalendarLink] = []
        seen: set[str] = set()

        for element in page.select(EVENT_SELECTOR):
            text = node_text(element)
            href = _dialog_href(element)
            # Grid cells without a dialog anchor have nothing to follow
            if not text or not href or href in seen:
                continue
            seen.add(href)
            links.append(DialogLink(
                url=base + href,
                title=text,
                date=_cell_date(element),
                dialog_id=href.lstrip("#"),
            ))

        return links

    def detail_request(self, link: CalendarLink, request: ParseRequest) -> ParseRequest:
        return ParseRequest(
            url=link.url,
            venue_id=request.venue_id,
            parser_id=self.detail_parser_id,
            continuation=DialogContinuation(
                dialog_id=link.dialog_id if isinstance(link, DialogLink) else link.url.split("#")[-1],
                calendar_date=link.date,
            ),
        )

    def summary(self, link: CalendarLink) -> RawEvent:
        # The grid cell already knows the date, so keep it
        parts = split(strip_times(link.title), BILLING_SPLIT)
        return RawEvent(
            headliner=parts[0] if parts else link.title,
            supporting_acts=parts[1:],
            event_date_raw=link.date,
            source_url=link.url,
        )


class AntonesEvent(ParserStrategy):
    """Parse one event dialog, located by the continuation's dialog id."""

    parser_id = ParserId.ANTONES_EVENT
    continuation_type = DialogContinuation

    @staticmethod
    def dialog_target(request: ParseRequest) -> Optional[DialogContinuation]:
        """The request's continuation, else the dialog id in its URL fragment."""
        if isinstance(request.continuation, DialogContinuation):
            return request.continuation
        fragment = urlparse(request.url).fragment
        return DialogContinuation(dialog_id=fragment) if fragment else None

    def dialog_lines(self, page: Page, dialog_id: str) -> tuple[Optional[str], list[str]]:
        dialog = page.soup.find(id=dialog_id)
        if dialog is not None:
            heading = node_text(dialog.select_one(DIALOG_HEADING)) or None
            lines = page.lines(dialog)
            if lines:
                return heading, lines

        anchor = page.select_one(f'a[href="#{dialog_id}"]')
        text = node_text(anchor)
        return None, [text] if text else []

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        continuation = self.dialog_target(request)
        if continuation is None:
            return []

        headliner, lines = self.dialog_lines(page, continuation.dialog_id)
        supports: list[str] = []

        for raw in lines:
            line = strip_times(raw)
            if not line:
                continue
            if HAS_DELIMITER.search(line) and not NOT_BILLING.search(line):
                parts = split(LEADING_WITH.sub("", line), BILLING_SPLIT)
                if not headliner and parts:
                    headliner, parts = parts[0], parts[1:]
                supports.extend(p for p in parts if normalize_key(p) != normalize_key(headliner))
            if not headliner and len(line) < MAX_HEADLINE_LENGTH and not NOT_BILLING.search(line):
                headliner = line

        cleaned_supports = [s for s in (tidy(s) for s in supports) if s]
        return [RawEvent(
            headliner=tidy(headliner),
            supporting_acts=list(dict.fromkeys(cleaned_supports)),
            event_date_raw=continuation.calendar_date,
            source_url=page.url,
        )]
