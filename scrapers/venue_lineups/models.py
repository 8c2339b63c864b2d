"""
Pydantic models for lineup data structures.

These models define the core data types used throughout the scraper:
- RawEvent: What a site parser extracts from one page
- ParseRequest: One page fetch plus its routing metadata
- NormalizedRow: One artist appearance, ready for the output sink
- CrawlInput / CrawlSettings: Venue list and runtime knobs
- DedupeResult: Result of per-page deduplication with audit trail
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


# Upper bound on concurrent page fetches regardless of configured concurrency
CONCURRENCY_CEILING = 3


class ParserId(str, Enum):
    """Stable identifiers for every registered parsing strategy."""

    MOHAWK_AUSTIN = "mohawkAustin"
    COME_AND_TAKE_IT = "comeAndTakeIt"
    COME_AND_TAKE_IT_EVENT = "comeAndTakeItEvent"
    CONTINENTAL_CLUB_AUSTIN = "continentalClubAustin"
    CONTINENTAL_CLUB_EVENT = "continentalClubEvent"
    PARISH_AUSTIN = "parishAustin"
    PARISH_AUSTIN_EVENT = "parishAustinEvent"
    EMPIRE_AT_AUSTIN = "empireAtAustin"
    EMPIRE_AT_AUSTIN_EVENT = "empireAtAustinEvent"
    STUBBS_AUSTIN = "stubbsAustin"
    STUBBS_AUSTIN_EVENT = "stubbsAustinEvent"
    EMOS_AUSTIN = "emosAustin"
    SCOOT_INN = "scootInn"
    ANTONES = "antones"
    ANTONES_EVENT = "antonesEvent"


class Role(str, Enum):
    """Billing role of an artist within one event."""

    HEADLINER = "headliner"
    SUPPORT = "support"
    UNKNOWN = "unknown"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawEvent(CamelModel):
    """One event as a site parser sees it. Names are not yet split or cleaned."""

    headliner: Optional[str] = None  # may be compound: "A w/ B, C"
    supporting_acts: list[str] = Field(default_factory=list)
    event_date_raw: Optional[str] = None
    source_url: Optional[str] = None

    # Single-artist form, used when a parser knows one name and its role
    artist_name: Optional[str] = None
    role: Role = Role.UNKNOWN


class CalendarContinuation(CamelModel):
    """Context carried from a calendar listing to its detail page."""

    kind: Literal["calendar"] = "calendar"
    calendar_title: Optional[str] = None
    calendar_date: Optional[str] = None


class DialogContinuation(CamelModel):
    """Points a detail parser at an in-page dialog element."""

    kind: Literal["dialog"] = "dialog"
    dialog_id: str
    calendar_date: Optional[str] = None


Continuation = Annotated[
    Union[CalendarContinuation, DialogContinuation],
    Field(discriminator="kind"),
]


class ParseRequest(CamelModel):
    """A page to fetch and the parser that should handle it."""

    url: str
    venue_id: str
    parser_id: ParserId
    continuation: Optional[Continuation] = None


class NormalizedRow(CamelModel):
    """Final output unit, one per artist appearance."""

    venue_id: str
    venue_parser_id: str
    source_url: str
    event_date_raw: Optional[str] = None
    event_date: Optional[date] = None  # best-effort parse of event_date_raw
    role: Role
    artist_name: str = Field(min_length=1)
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VenueConfig(CamelModel):
    """A venue to crawl. parser_id defaults to the venue id."""

    id: str
    start_url: str
    parser_id: Optional[str] = None

    @property
    def effective_parser_id(self) -> str:
        return self.parser_id or self.id


class ProxySettings(CamelModel):
    """Outbound proxy configuration."""

    proxy_urls: list[str] = Field(default_factory=list)

    @property
    def proxy_url(self) -> Optional[str]:
        """First configured proxy, or None for direct connections."""
        return self.proxy_urls[0] if self.proxy_urls else None


class CrawlInput(CamelModel):
    """Top-level crawl input document."""

    venues: list[VenueConfig] = Field(default_factory=list)
    proxy_configuration: Optional[ProxySettings] = None
    max_concurrency: int = 5


class CrawlSettings(BaseModel):
    """Runtime knobs for the crawl orchestrator."""

    max_concurrency: int = 5
    request_timeout_secs: float = 90.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    dedupe: bool = True

    @computed_field
    @property
    def worker_count(self) -> int:
        """Concurrent workers actually started."""
        return max(1, min(self.max_concurrency, CONCURRENCY_CEILING))


class DuplicateMatch(BaseModel):
    """Records a dropped duplicate row for the audit trail."""

    key: str
    kept_artist: str
    dropped_artist: str
    kept_source_url: str
    dropped_source_url: str
    reason: str


class VenueStatus(BaseModel):
    """Per-venue counters collected during a crawl."""

    venue_id: str
    pages: int = 0
    rows: int = 0
    empty_pages: int = 0
    failures: int = 0
    last_error: Optional[str] = None

    @computed_field
    @property
    def healthy(self) -> bool:
        return self.failures == 0 and self.rows > 0


class CrawlSummary(BaseModel):
    """Outcome of one crawl run."""

    started_at: datetime
    finished_at: datetime
    total_rows: int
    venues: list[VenueStatus] = Field(default_factory=list)
    failed_requests: list[str] = Field(default_factory=list)
    dropped_duplicates: list[DuplicateMatch] = Field(default_factory=list)

    @computed_field
    @property
    def duration_secs(self) -> float:
        return round((self.finished_at - self.started_at).total_seconds(), 2)


class NearMatch(BaseModel):
    """Two retained names that are probably the same artist."""

    first: str
    second: str
    score: float


class DedupeResult(BaseModel):
    """Result of deduplication with audit trail."""

    rows: list[NormalizedRow]
    original_count: int
    duplicates_removed: int
    audit_trail: list[DuplicateMatch] = Field(default_factory=list)
    near_matches: list[NearMatch] = Field(default_factory=list)

    @computed_field
    @property
    def dedup_rate(self) -> float:
        """Percentage of rows that were duplicates."""
        if self.original_count == 0:
            return 0.0
        return self.duplicates_removed / self.original_count * 100
