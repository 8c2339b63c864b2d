"""
Parser registry: ParserId -> ParserStrategy.

Venue configs name parsers by string. Those strings are resolved to
ParserId once, at startup, so a typo fails the run before any fetch.
"""

from typing import Iterable, Optional, Sequence

import structlog

from .models import ParseRequest, ParserId, VenueConfig
from .parsers import (
    AntonesCalendar,
    AntonesEvent,
    ComeAndTakeItCalendar,
    ComeAndTakeItEvent,
    ContinentalCalendar,
    ContinentalEvent,
    HeadingLineupEvent,
    MecCalendar,
    MohawkParser,
    ParserStrategy,
    StubbsCalendar,
    StubbsEvent,
    TicketmasterLinkParser,
)

logger = structlog.get_logger(__name__)


class UnknownParserError(Exception):
    """Raised when a configured parser id has no registered strategy."""

    def __init__(self, parser_ids: Sequence[str]):
        self.parser_ids = list(parser_ids)
        super().__init__(f"Unknown parser id(s): {', '.join(self.parser_ids)}")


class ParserRegistry:
    """Lookup table of parsing strategies keyed by ParserId."""

    def __init__(self, strategies: Iterable[ParserStrategy] = ()):
        self._strategies: dict[ParserId, ParserStrategy] = {}
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: ParserStrategy) -> None:
        if strategy.parser_id in self._strategies:
            raise ValueError(f"Parser already registered: {strategy.parser_id.value}")
        self._strategies[strategy.parser_id] = strategy

    def get(self, parser_id: ParserId) -> Optional[ParserStrategy]:
        return self._strategies.get(parser_id)

    def __contains__(self, parser_id: object) -> bool:
        return parser_id in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)

    @property
    def parser_ids(self) -> list[ParserId]:
        return list(self._strategies)

    def resolve(self, name: str) -> ParserId:
        """
        Resolve a configured parser name.

        Raises:
            UnknownParserError: If the name is not a registered parser
        """
        try:
            parser_id = ParserId(name)
        except ValueError:
            raise UnknownParserError([name]) from None
        if parser_id not in self._strategies:
            raise UnknownParserError([name])
        return parser_id

    def unknown_parsers(self, venues: Sequence[VenueConfig]) -> list[str]:
        """Configured parser names with no registered strategy."""
        unknown: list[str] = []
        for venue in venues:
            try:
                self.resolve(venue.effective_parser_id)
            except UnknownParserError:
                unknown.append(venue.effective_parser_id)
        return unknown

    def build_start_requests(self, venues: Sequence[VenueConfig]) -> list[ParseRequest]:
        """
        One ParseRequest per venue start URL.

        Raises:
            UnknownParserError: Listing every unresolvable parser name
        """
        unknown = self.unknown_parsers(venues)
        if unknown:
            logger.error("unknown_parsers", parsers=unknown)
            raise UnknownParserError(unknown)

        return [
            ParseRequest(
                url=venue.start_url,
                venue_id=venue.id,
                parser_id=self.resolve(venue.effective_parser_id),
            )
            for venue in venues
        ]


def build_default_registry() -> ParserRegistry:
    """Registry with every Austin venue strategy."""
    return ParserRegistry([
        MohawkParser(),
        ComeAndTakeItCalendar(),
        ComeAndTakeItEvent(),
        ContinentalCalendar(),
        ContinentalEvent(),
        MecCalendar(ParserId.PARISH_AUSTIN, ParserId.PARISH_AUSTIN_EVENT),
        HeadingLineupEvent(ParserId.PARISH_AUSTIN_EVENT, location_words=("at",)),
        MecCalendar(ParserId.EMPIRE_AT_AUSTIN, ParserId.EMPIRE_AT_AUSTIN_EVENT),
        HeadingLineupEvent(ParserId.EMPIRE_AT_AUSTIN_EVENT, location_words=("at", "in")),
        StubbsCalendar(),
        StubbsEvent(),
        TicketmasterLinkParser(ParserId.EMOS_AUSTIN),
        TicketmasterLinkParser(ParserId.SCOOT_INN),
        AntonesCalendar(),
        AntonesEvent(),
    ])
