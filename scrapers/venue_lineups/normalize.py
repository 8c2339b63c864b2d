"""
Record normalization: RawEvent -> role-tagged NormalizedRow.

A headliner field may itself be compound ("A, B & C"), so it is split
before roles are assigned. The first part is the headliner; the rest join
the parser's supporting acts.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog

from .models import NormalizedRow, ParserId, RawEvent, Role
from .splitter import split
from .text import clean, collapse_whitespace, normalize_key, strip_title_noise
from .timing import parse_event_date

logger = structlog.get_logger(__name__)


def _headliner_name(raw: str) -> tuple[str, list[str]]:
    """Split a headliner field into (cleaned headliner, remaining raw parts)."""
    parts = split(strip_title_noise(raw))
    head_raw = parts[0] if parts else raw
    # A non-null headliner must always yield a row, even when cleaning strips it
    headliner = clean(head_raw) or collapse_whitespace(head_raw) or collapse_whitespace(raw)
    return headliner, parts[1:]


def normalize_event(
    event: RawEvent,
    venue_id: str,
    parser_id: ParserId,
    default_url: str,
    scraped_at: Optional[datetime] = None,
) -> list[NormalizedRow]:
    """Convert one RawEvent into zero or more NormalizedRows."""
    scraped_at = scraped_at or datetime.now(timezone.utc)
    base = {
        "venue_id": venue_id,
        "venue_parser_id": parser_id.value,
        "source_url": event.source_url or default_url,
        "event_date_raw": event.event_date_raw,
        "event_date": parse_event_date(event.event_date_raw),
        "scraped_at": scraped_at,
    }

    if event.headliner and event.headliner.strip():
        headliner, tail = _headliner_name(event.headliner)
        rows = [NormalizedRow(**base, role=Role.HEADLINER, artist_name=headliner)]

        seen = {normalize_key(headliner)}
        for name in list(event.supporting_acts) + tail:
            cleaned = clean(name)
            if not cleaned:
                continue
            key = normalize_key(cleaned)
            if key in seen:
                continue
            seen.add(key)
            rows.append(NormalizedRow(**base, role=Role.SUPPORT, artist_name=cleaned))
        return rows

    if event.artist_name:
        cleaned = clean(event.artist_name)
        if not cleaned:
            logger.debug("artist_cleaned_empty", raw=event.artist_name, parser=parser_id.value)
            return []
        return [NormalizedRow(**base, role=event.role, artist_name=cleaned)]

    logger.warning(
        "event_missing_artist",
        parser=parser_id.value,
        venue=venue_id,
        url=base["source_url"],
    )
    return []


def normalize_events(
    raw_events: Iterable[RawEvent],
    venue_id: str,
    parser_id: ParserId,
    default_url: str,
    scraped_at: Optional[datetime] = None,
) -> list[NormalizedRow]:
    """
    Normalize a parser's output for one page.

    Args:
        raw_events: Events returned by a site parser
        venue_id: Venue the page belongs to
        parser_id: Parser that produced the events
        default_url: Page URL, used when an event has no source_url
        scraped_at: Timestamp shared by every row (defaults to now, UTC)

    Returns:
        Rows in event order; headliner first within each event
    """
    scraped_at = scraped_at or datetime.now(timezone.utc)
    rows: list[NormalizedRow] = []
    for event in raw_events:
        rows.extend(normalize_event(event, venue_id, parser_id, default_url, scraped_at))
    return rows
