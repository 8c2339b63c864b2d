"""Show-time parsing, time-ordered role assignment and best-effort date parsing."""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from dateutil import parser as date_parser

from .models import Role


TIME_PATTERN = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", re.IGNORECASE)
MONTH_NAME = re.compile(
    r"\b(jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\b", re.IGNORECASE
)
NUMERIC_DATE = re.compile(r"\d{1,4}[-/.]\d{1,2}")


def parse_time_minutes(text: Optional[str]) -> Optional[int]:
    """
    Minutes after midnight for a 12-hour clock time like "7pm" or "9:30 PM".

    Returns None when no am/pm time is present.
    """
    if not text:
        return None

    match = TIME_PATTERN.search(text)
    if not match:
        return None

    hour = int(match.group(1))
    minutes = int(match.group(2) or 0)
    meridiem = match.group(3).lower()

    if hour > 12 or minutes > 59:
        return None
    if meridiem == "pm" and hour != 12:
        hour += 12
    if meridiem == "am" and hour == 12:
        hour = 0

    return hour * 60 + minutes


@dataclass
class TimedAct:
    """One act from a calendar view listing several acts per day."""

    title: str
    date_key: Optional[str] = None
    time_text: Optional[str] = None
    position: int = 0  # DOM order, breaks ties
    detail_url: Optional[str] = None

    @property
    def minutes(self) -> Optional[int]:
        return parse_time_minutes(self.time_text)


def _sort_key(act: TimedAct) -> tuple[int, int, int]:
    minutes = act.minutes
    if minutes is None:
        return (0, 0, act.position)
    return (1, minutes, act.position)


def assign_roles_by_time(acts: Sequence[TimedAct]) -> list[tuple[TimedAct, Role]]:
    """
    Assign headliner/support by start time within each date.

    Acts sharing a date key are ordered by start time, untimed acts first.
    The latest act on each date is the headliner; earlier acts support.
    Dates keep their first-appearance order.
    """
    groups: dict[Optional[str], list[TimedAct]] = {}
    for act in acts:
        groups.setdefault(act.date_key, []).append(act)

    assigned: list[tuple[TimedAct, Role]] = []
    for group in groups.values():
        ordered = sorted(group, key=_sort_key)
        for act in ordered[:-1]:
            assigned.append((act, Role.SUPPORT))
        assigned.append((ordered[-1], Role.HEADLINER))

    return assigned


def parse_event_date(raw: Optional[str], today: Optional[date] = None) -> Optional[date]:
    """
    Best-effort calendar date from free text ("Friday, March 7", "2025-03-07 20:00").

    Strings without a month name or numeric date are ignored so that bare
    times ("Doors 7pm") don't resolve to today.
    """
    if not raw:
        return None
    if not (MONTH_NAME.search(raw) or NUMERIC_DATE.search(raw)):
        return None

    today = today or date.today()
    default = datetime(today.year, today.month, 1)
    try:
        return date_parser.parse(raw, fuzzy=True, default=default).date()
    except (ValueError, OverflowError):
        return None
