"""schema.org event extraction from embedded JSON-LD blocks."""

import json
from typing import Any, Iterator, Optional

import structlog

from ..fetch import Page
from ..models import RawEvent

logger = structlog.get_logger(__name__)


EVENT_TYPES = {"Event", "MusicEvent", "Festival", "ComedyEvent", "TheaterEvent"}


def _walk(data: Any) -> Iterator[dict]:
    if isinstance(data, list):
        for item in data:
            yield from _walk(item)
    elif isinstance(data, dict):
        yield data
        yield from _walk(data.get("@graph") or [])


def iter_json_ld(page: Page) -> Iterator[dict]:
    """Every JSON object found in the page's ld+json scripts."""
    for tag in page.select('script[type="application/ld+json"]'):
        raw = tag.string or tag.get_text() or ""
        if not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.debug("json_ld_invalid", url=page.url, error=str(e))
            continue
        yield from _walk(data)


def is_event(obj: dict) -> bool:
    kind = obj.get("@type")
    kinds = kind if isinstance(kind, list) else [kind]
    return any(isinstance(k, str) and k in EVENT_TYPES for k in kinds)


def _names(value: Any) -> list[str]:
    """Performer names from a string, object or list of either."""
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, dict):
        name = value.get("name")
        return [name.strip()] if isinstance(name, str) and name.strip() else []
    if isinstance(value, list):
        names: list[str] = []
        for item in value:
            names.extend(_names(item))
        return names
    return []


def _text(value: Any) -> Optional[str]:
    return value.strip() if isinstance(value, str) and value.strip() else None


def json_ld_events(page: Page) -> list[RawEvent]:
    """
    RawEvents for each schema.org Event object on the page.

    The event name is the headliner; listed performers other than the
    headliner are supports.
    """
    events: list[RawEvent] = []

    for obj in iter_json_ld(page):
        if not is_event(obj):
            continue

        performers = _names(obj.get("performer"))
        headliner = _text(obj.get("name")) or (performers[0] if performers else None)
        if not headliner:
            continue

        supports = [p for p in performers if p.lower() != headliner.lower()]
        url = _text(obj.get("url"))
        events.append(RawEvent(
            headliner=headliner,
            supporting_acts=supports,
            event_date_raw=_text(obj.get("startDate")),
            source_url=page.absolute(url) if url else page.url,
        ))

    return events
