"""
Continental Club Austin.

The site embeds a Timely calendar, so the calendar parser tries, in order:
1. JSON-LD event blocks on the page
2. Timely's JSON API, called through the page's session
3. Timely's month view, with roles assigned by start time
4. Generic DOM event candidates
5. A text scan pairing "... 2025" date lines with the following title

Each stage runs only when the previous ones found nothing. Stages that
know detail URLs also queue continentalClubEvent requests.
"""

import re
import time
from dataclasses import replace
from typing import Any, Callable, Optional
from urllib.parse import urlencode, urlparse

import structlog
from bs4 import Tag

from ..fetch import Page, node_text
from ..lineup import LineupOptions, assign_lineup, extract
from ..models import CalendarContinuation, ParseRequest, ParserId, RawEvent, Role
from ..resilience.fallback import StageChain
from ..splitter import split
from ..text import normalize_key
from ..timing import TimedAct, assign_roles_by_time
from .base import CrawlContext, ParserStrategy
from .structured import json_ld_events

logger = structlog.get_logger(__name__)


TIMELY_API = "https://timelyapp.time.ly/api/calendars/{calendar_id}/events"
TIMELY_MONTH = "https://events.timely.fun/{embed}/month"
TIMELY_EVENT = "https://events.timely.fun/{embed}/event/{slug}"
ONE_YEAR_SECS = 365 * 24 * 3600

NAV_ANCESTORS = "nav, .menu, .site-navigation, .main-nav, footer"
TIMELY_TITLE = ".timely-event-title-text, .title, h2, h3, h4"
CANDIDATE_NODES = "article, li, .event, .event-item, .listing-item, .show, .post"
CANDIDATE_TITLE = "h1, h2, h3, h4, .title, .entry-title, .event-title, a.event-title"
CANDIDATE_DATE = "time, .date, .event-date, .posted-on"
DENIED_TITLES = {
    "about", "contact", "gallery", "shop", "welcome", "home",
    "contact us", "austin shop", "houston shop", "austin tickets",
}
DENIED_PATHS = {"/", "/about", "/contact", "/gallery", "/shop", "/austintickets", "/houston", "/bigtop"}
EVENTISH_PATH = re.compile(
    r"tm-event|/events?/|\bshow\b|ticket|tickets|performance|gig|lineup", re.IGNORECASE
)
YEAR_IN_URL = re.compile(r"\b\d{4}\b")
DAY_MONTH_IN_URL = re.compile(r"\b\d{1,2}[-/]\d{1,2}\b")
YEAR_LINE = re.compile(r"\b\d{4}$")
MAX_TITLE_LINE = 80


def likely_event_url(url: Optional[str]) -> bool:
    """Heuristic: does this link point at a single show?"""
    if not url:
        return False
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False

    path = parsed.path.lower()
    if (path.rstrip("/") or "/") in DENIED_PATHS:
        return False
    if EVENTISH_PATH.search(path + (f"?{parsed.query}" if parsed.query else "")):
        return True
    if YEAR_IN_URL.search(url) or DAY_MONTH_IN_URL.search(url):
        return True
    return "/austin/" in path and len([p for p in path.split("/") if p]) > 2


def _aria_date(node: Tag) -> Optional[str]:
    """Last comma-separated part of aria-label when it ends in a year."""
    parts = [p.strip() for p in (node.get("aria-label") or "").split(",") if p.strip()]
    if parts and re.search(r"\d{4}$", parts[-1]):
        return parts[-1]
    return None


def _title_without_time(title_el: Tag) -> tuple[str, Optional[str]]:
    time_el = title_el.select_one(".timely-event-time")
    time_text = node_text(time_el) or None
    title = node_text(title_el)
    if time_text:
        title = title.replace(time_text, "", 1).strip()
    return title, time_text


def parse_timely_month(page: Page) -> list[TimedAct]:
    """Acts listed on a Timely month view, in DOM order."""
    acts: list[TimedAct] = []
    for position, node in enumerate(page.select(".timely-event")):
        title_el = node.select_one(".timely-event-title-text")
        if title_el is None:
            continue
        title, time_text = _title_without_time(title_el)
        if not title:
            continue

        link = node.select_one('a[href*="/event/"]') or node.select_one("a[href]")
        acts.append(TimedAct(
            title=title,
            date_key=_aria_date(node),
            time_text=time_text,
            position=position,
            detail_url=page.absolute(link.get("href")) if link else None,
        ))
    return acts


def events_by_date(acts: list[TimedAct], source_url: str) -> list[RawEvent]:
    """One RawEvent per date: latest act headlines, earlier acts support."""
    grouped: dict[Optional[str], RawEvent] = {}
    for act, role in assign_roles_by_time(acts):
        event = grouped.setdefault(act.date_key, RawEvent(event_date_raw=act.date_key, source_url=source_url))
        if role is Role.HEADLINER:
            event.headliner = act.title
        else:
            event.supporting_acts.extend(split(act.title))
    return list(grouped.values())


class ContinentalCalendar(ParserStrategy):
    """Structured-data/API-first calendar parser with DOM fallbacks."""

    parser_id = ParserId.CONTINENTAL_CLUB_AUSTIN
    detail_parser_id = ParserId.CONTINENTAL_CLUB_EVENT

    def __init__(
        self,
        calendar_id: str = "54714987",
        venue_ref: str = "678194628",
        embed: str = "74avt53i",
        timezone: str = "America/Chicago",
        clock: Callable[[], float] = time.time,
    ):
        self.calendar_id = calendar_id
        self.venue_ref = venue_ref
        self.embed = embed
        self.timezone = timezone
        self.clock = clock
        self.chain: StageChain[RawEvent] = StageChain(
            self.json_ld,
            self.timely_api,
            self.timely_month,
            self.dom_candidates,
            self.text_scan,
            name=self.parser_id.value,
        )

    def event_url(self, item: dict[str, Any]) -> Optional[str]:
        slug = item.get("custom_url") or item.get("id")
        return TIMELY_EVENT.format(embed=self.embed, slug=slug) if slug else None

    def month_url(self) -> str:
        query = urlencode({"venues": self.venue_ref, "nofilters": 1, "timely_id": "timely-iframe-embed-0"})
        return f"{TIMELY_MONTH.format(embed=self.embed)}?{query}"

    def api_params(self) -> dict[str, Any]:
        now = int(self.clock())
        return {
            "group_by_date": 1,
            "venues": self.venue_ref,
            "timezone": self.timezone,
            "view": "month",
            "start_date_utc": now,
            "end_date_utc": now + ONE_YEAR_SECS,
            "per_page": 1000,
            "page": 1,
        }

    async def queue_details(
        self,
        context: Optional[CrawlContext],
        request: ParseRequest,
        details: list[tuple[str, Optional[str], Optional[str]]],
    ) -> None:
        """Queue (url, title, date) detail pages when running in a crawl."""
        if context is None or not details:
            return
        requests = [
            ParseRequest(
                url=url,
                venue_id=request.venue_id,
                parser_id=self.detail_parser_id,
                continuation=CalendarContinuation(calendar_title=title, calendar_date=date),
            )
            for url, title, date in details
        ]
        # Rows from the stage are still returned if queueing fails
        try:
            added = await context.enqueue(requests)
        except Exception as e:
            logger.warning("enqueue_failed", parser=self.parser_id.value, links=len(requests), error=str(e))
            return
        logger.info("detail_requests_enqueued", parser=self.parser_id.value, found=len(requests), added=added)

    async def json_ld(self, page: Page, request: ParseRequest, context: Optional[CrawlContext]) -> list[RawEvent]:
        events = json_ld_events(page)
        await self.queue_details(context, request, [
            (e.source_url, e.headliner, e.event_date_raw)
            for e in events
            if e.source_url != page.url and likely_event_url(e.source_url)
        ])
        return events

    async def timely_api(self, page: Page, request: ParseRequest, context: Optional[CrawlContext]) -> list[RawEvent]:
        payload = await page.get_json(
            TIMELY_API.format(calendar_id=self.calendar_id), params=self.api_params()
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, dict):
            logger.info("timely_api_no_items", url=page.url)
            return []

        events: list[RawEvent] = []
        details: list[tuple[str, Optional[str], Optional[str]]] = []
        for date_key, day_items in items.items():
            if not isinstance(day_items, list):
                continue
            for item in day_items:
                if not isinstance(item, dict) or not item.get("title"):
                    continue
                title = str(item["title"])
                url = self.event_url(item)
                events.append(RawEvent(
                    headliner=title,
                    event_date_raw=item.get("start_datetime") or item.get("start_utc_datetime") or date_key,
                    source_url=url or page.url,
                ))
                if url:
                    details.append((url, title, date_key))

        await self.queue_details(context, request, details)
        return events

    async def timely_month(self, page: Page, request: ParseRequest, context: Optional[CrawlContext]) -> list[RawEvent]:
        month_page = await page.open(self.month_url())
        acts = parse_timely_month(month_page)
        await self.queue_details(context, request, [
            (act.detail_url, act.title, act.date_key) for act in acts if act.detail_url
        ])
        return events_by_date(acts, month_page.url)

    def _candidate(self, page: Page, node: Tag, timely: bool) -> Optional[tuple[str, Optional[str], Optional[str]]]:
        if timely:
            title_el = node.select_one(TIMELY_TITLE)
            title, _ = _title_without_time(title_el) if title_el else ("", None)
            link = node.select_one("a[href]")
        else:
            title_el = node.select_one(CANDIDATE_TITLE) or node.select_one("a")
            title = node_text(title_el)
            link = title_el if title_el is not None and title_el.name == "a" else node.select_one("a[href]")

        if not title or title.lower() in DENIED_TITLES:
            return None

        date = _aria_date(node) if timely else None
        if not date:
            date_el = node.select_one(CANDIDATE_DATE)
            if date_el is not None:
                date = date_el.get("datetime") or node_text(date_el) or None

        url = page.absolute(link.get("href")) if link is not None and link.get("href") else None
        return title, url, date

    async def dom_candidates(self, page: Page, request: ParseRequest, context: Optional[CrawlContext]) -> list[RawEvent]:
        nodes = page.select(".timely-event")
        timely = bool(nodes)
        if not timely:
            nodes = page.select(CANDIDATE_NODES)

        excluded = set()
        for container in page.select(NAV_ANCESTORS):
            excluded.add(id(container))
            excluded.update(id(el) for el in container.find_all(True))

        found: dict[str, tuple[str, Optional[str], Optional[str]]] = {}
        for node in nodes:
            if id(node) in excluded:
                continue
            candidate = self._candidate(page, node, timely)
            if candidate is None:
                continue
            title, url, date = candidate
            found[f"{url or ''}|{title}"] = candidate

        await self.queue_details(context, request, [
            (url, title, date) for title, url, date in found.values() if likely_event_url(url)
        ])
        return [
            RawEvent(headliner=title, event_date_raw=date, source_url=page.url)
            for title, url, date in found.values()
        ]

    async def text_scan(self, page: Page, request: ParseRequest, context: Optional[CrawlContext]) -> list[RawEvent]:
        lines = page.lines()
        events: dict[str, RawEvent] = {}
        for line, following in zip(lines, lines[1:]):
            if YEAR_LINE.search(line) and 0 < len(following) < MAX_TITLE_LINE:
                events.setdefault(
                    normalize_key(following),
                    RawEvent(headliner=following, event_date_raw=line, source_url=page.url),
                )
        return list(events.values())

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        outcome = await self.chain.run(page, request, context)
        if outcome.stage:
            logger.info("calendar_stage_used", parser=self.parser_id.value, stage=outcome.stage, events=len(outcome.items))
        return outcome.items


DETAIL_LINEUP = LineupOptions(
    start_pattern=None,
    max_scan_lines=20,
    max_line_length=200,
    max_candidates=12,
    max_words=10,
    scan_without_anchor=True,
)
TIMELY_BILLING_LINE = re.compile(r"^(featuring|feats?|with|presented by)\b|,\s*with\b|feat\.?", re.IGNORECASE)
TIMELY_BILLING_PREFIX = re.compile(r"^(featuring|feats?|with|presented by)\s*", re.IGNORECASE)


class ContinentalEvent(ParserStrategy):
    """Continental Club or Timely event detail page."""

    parser_id = ParserId.CONTINENTAL_CLUB_EVENT
    continuation_type = CalendarContinuation

    @staticmethod
    def is_timely(page: Page) -> bool:
        host = page.host
        return (
            "timely.fun" in host
            or "time.ly" in host
            or page.select_one(".timely-event, .timely-iframe") is not None
        )

    @staticmethod
    def timely_names(lines: list[str]) -> list[str]:
        names: list[str] = []
        for line in lines[:DETAIL_LINEUP.anchor_scan_lines]:
            if not TIMELY_BILLING_LINE.search(line):
                continue
            names.extend(split(TIMELY_BILLING_PREFIX.sub("", line)))
        return names

    async def parse(
        self,
        page: Page,
        request: ParseRequest,
        context: Optional[CrawlContext] = None,
    ) -> list[RawEvent]:
        calendar = self.calendar_context(request)
        heading = page.heading("h1, .entry-title, .post-title")
        lines = page.lines()

        names = extract(lines, replace(DETAIL_LINEUP, start_text=heading))

        if self.is_timely(page) and (not names or not heading):
            names.extend(self.timely_names(lines))
            if not names and heading:
                names.append(heading)

        names = _unique(names)
        headliner, supports = assign_lineup(names, calendar.calendar_title)
        return [RawEvent(
            headliner=headliner or heading,
            supporting_acts=supports,
            event_date_raw=calendar.calendar_date,
            source_url=page.url,
        )]


def _unique(names: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        key = normalize_key(name)
        if key and key not in seen:
            seen.add(key)
            unique.append(name)
    return unique
