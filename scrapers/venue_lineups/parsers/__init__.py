"""
Venue parser strategies.

Each strategy implements:
- parse(page, request, context) -> list[RawEvent]
- Calendar strategies queue detail pages instead of returning rows
"""

from .antones import AntonesCalendar, AntonesEvent
from .base import CalendarLink, CalendarParser, CrawlContext, ParserStrategy
from .come_and_take_it import ComeAndTakeItCalendar, ComeAndTakeItEvent
from .continental import ContinentalCalendar, ContinentalEvent
from .mec_calendar import HeadingLineupEvent, MecCalendar
from .mohawk import MohawkParser
from .stubbs import StubbsCalendar, StubbsEvent
from .structured import json_ld_events
from .ticketmaster_links import TicketmasterLinkParser

__all__ = [
    "AntonesCalendar",
    "AntonesEvent",
    "CalendarLink",
    "CalendarParser",
    "ComeAndTakeItCalendar",
    "ComeAndTakeItEvent",
    "ContinentalCalendar",
    "ContinentalEvent",
    "CrawlContext",
    "HeadingLineupEvent",
    "MecCalendar",
    "MohawkParser",
    "ParserStrategy",
    "StubbsCalendar",
    "StubbsEvent",
    "TicketmasterLinkParser",
    "json_ld_events",
]
