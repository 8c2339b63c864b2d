"""Mohawk Austin: list-view cards carry headliner, supports and date."""

from typing import Optional

from bs4 import Tag

from ..fetch import Page, node_text
from ..models import ParseRequest, ParserId, RawEvent
from ..splitter import split
from .base import CrawlContext, ParserStrategy
from .structured import json_ld_events


CARD_SELECTOR = ".list-view-details"
HEADLINER_SELECTOR = ".event-name.headliners a, .event-name.headliners"
SUPPORTS_SELECTOR = ".event-name.supports"
DATE_SELECTOR = ".event-date, time, .date"


def _card_date(card: Tag) -> Optional[str]:
    date_el = card.select_one(DATE_SELECTOR)
    if date_el is None:
        return None
    return date_el.get("datetime") or node_text(date_el) or None


class MohawkParser(ParserStrategy):
    """Single-phase card parser."""

    parser_id = ParserId.MOHAWK_AUSTIN

    def parse_card(self, page: Page, card: Tag) -> Optional[RawEvent]:
        headliner = node_text(card.select_one(HEADLINER_SELECTOR))
        if not headliner:
            # Unstyled card: first visible line is the billing
            lines = page.lines(card)
            headliner = lines[0] if lines else ""
        if not headliner:
            return None

        link = card.select_one("a[href]")
        return RawEvent(
            headliner=headliner,
            supporting_acts=split(node_text(card.select_one(SUPPORTS_SELECTOR))),
            event_date_raw=_card_date(card),
            source_url=page.absolute(link.get("href")) if link else None,
        )

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        events: list[RawEvent] = []
        seen: set[str] = set()

        for card in page.select(CARD_SELECTOR):
            event = self.parse_card(page, card)
            if event is None:
                continue
            key = f"{event.source_url or ''}|{event.headliner}"
            if key in seen:
                continue
            seen.add(key)
            events.append(event)

        if not events:
            return json_ld_events(page)
        return events
