"""Per-venue health tracking for a crawl run."""

from datetime import datetime
from typing import Any

import structlog

from ..models import VenueStatus

logger = structlog.get_logger()


class HealthMonitor:
    """Track pages, rows and failures per venue.

    Feeds the end-of-run summary and flags venues whose parsers stopped
    producing rows (usually a site redesign).
    """

    def __init__(self):
        """Initialize health monitor with empty status."""
        self.status: dict[str, VenueStatus] = {}
        self.failed_requests: list[str] = []

    def _venue(self, venue_id: str) -> VenueStatus:
        if venue_id not in self.status:
            self.status[venue_id] = VenueStatus(venue_id=venue_id)
        return self.status[venue_id]

    def record_success(self, venue_id: str, row_count: int) -> None:
        """Record a parsed page.

        Args:
            venue_id: Venue the page belongs to
            row_count: Rows written for the page (0 for calendar pages)
        """
        venue = self._venue(venue_id)
        venue.pages += 1
        venue.rows += row_count
        logger.debug("venue_page_ok", venue=venue_id, rows=row_count)

    def record_empty(self, venue_id: str) -> None:
        """Record a page whose parser produced nothing."""
        venue = self._venue(venue_id)
        venue.pages += 1
        venue.empty_pages += 1

    def record_failure(self, venue_id: str, url: str, error: str) -> None:
        """Record a request that failed after all retries.

        Args:
            venue_id: Venue the request belongs to
            url: Request URL
            error: Error message describing the failure
        """
        venue = self._venue(venue_id)
        venue.failures += 1
        venue.last_error = error
        self.failed_requests.append(url)
        logger.warning(
            "venue_unhealthy",
            venue=venue_id,
            failures=venue.failures,
            url=url,
            error=error,
        )

    def is_healthy(self, venue_id: str) -> bool:
        """True if the venue is unknown or has rows and no failures."""
        venue = self.status.get(venue_id)
        return venue is None or venue.healthy

    def venue_statuses(self) -> list[VenueStatus]:
        return sorted(self.status.values(), key=lambda v: v.venue_id)

    def get_status(self) -> dict[str, Any]:
        """Get full health status report.

        Returns:
            Dict with timestamp, counts and per-venue statuses
        """
        healthy_count = sum(1 for v in self.status.values() if v.healthy)
        total_count = len(self.status)

        return {
            "timestamp": datetime.now().isoformat(),
            "summary": {
                "healthy": healthy_count,
                "unhealthy": total_count - healthy_count,
                "total": total_count,
                "rows": sum(v.rows for v in self.status.values()),
            },
            "venues": {v.venue_id: v.model_dump() for v in self.venue_statuses()},
        }

    def reset(self) -> None:
        self.status.clear()
        self.failed_requests.clear()
