"""
Crawl orchestrator.

A fixed pool of asyncio workers drains a shared request queue. Each
request is fetched, dispatched to its parser by ParserId, normalized,
deduplicated and written to the sink. Calendar parsers add detail
requests back onto the same queue through a QueueContext.

A failing request never stops the crawl: it is retried with backoff,
then logged and counted against its venue.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional, Sequence

import httpx
import structlog

from .dedup import deduplicate, format_audit_summary
from .fetch import HttpFetcher, PageError
from .models import CrawlSettings, CrawlSummary, DuplicateMatch, NormalizedRow, ParseRequest, RawEvent
from .normalize import normalize_events
from .parsers import CrawlContext, ParserStrategy
from .registry import ParserRegistry
from .resilience import HealthMonitor, retry_async
from .sinks import OutputSink

logger = structlog.get_logger(__name__)

# Fetch failures only; parser errors fail the request at once
RETRYABLE_ERRORS = (httpx.HTTPError, PageError, asyncio.TimeoutError)


class RequestQueue:
    """asyncio.Queue that ignores URLs it has already seen."""

    def __init__(self):
        self._queue: asyncio.Queue[ParseRequest] = asyncio.Queue()
        self._seen: set[str] = set()

    def add(self, request: ParseRequest) -> bool:
        # Fragment is part of the key; Antone's dialogs share one page URL
        if request.url in self._seen:
            return False
        self._seen.add(request.url)
        self._queue.put_nowait(request)
        return True

    def add_many(self, requests: Sequence[ParseRequest]) -> int:
        return sum(1 for request in requests if self.add(request))

    async def get(self) -> ParseRequest:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def __len__(self) -> int:
        return self._queue.qsize()


class QueueContext(CrawlContext):
    """CrawlContext handed to a parser for one request."""

    def __init__(self, queue: RequestQueue):
        self.queue = queue
        self.added = 0

    async def enqueue(self, requests: Sequence[ParseRequest]) -> int:
        added = self.queue.add_many(requests)
        self.added += added
        return added


class Crawler:
    """Run every venue's requests through the parser registry."""

    def __init__(
        self,
        fetcher: HttpFetcher,
        registry: ParserRegistry,
        sink: OutputSink,
        settings: Optional[CrawlSettings] = None,
        health: Optional[HealthMonitor] = None,
    ):
        self.fetcher = fetcher
        self.registry = registry
        self.sink = sink
        self.settings = settings or CrawlSettings()
        self.health = health or HealthMonitor()
        self.queue = RequestQueue()
        self.total_rows = 0
        self.dropped_duplicates: list[DuplicateMatch] = []

    async def _fetch_and_parse(
        self,
        strategy: ParserStrategy,
        request: ParseRequest,
        context: QueueContext,
    ) -> list[RawEvent]:
        page = await self.fetcher.fetch(request.url)
        return await strategy.parse(page, request, context)

    async def _attempt(
        self,
        strategy: ParserStrategy,
        request: ParseRequest,
        context: QueueContext,
    ) -> list[RawEvent]:
        return await asyncio.wait_for(
            self._fetch_and_parse(strategy, request, context),
            timeout=self.settings.request_timeout_secs,
        )

    def _rows_for(self, request: ParseRequest, events: list[RawEvent]) -> list[NormalizedRow]:
        rows = normalize_events(events, request.venue_id, request.parser_id, request.url)
        if not self.settings.dedupe:
            return rows

        result = deduplicate(rows)
        if result.duplicates_removed:
            logger.info(
                "duplicates_removed",
                url=request.url,
                removed=result.duplicates_removed,
                kept=len(result.rows),
            )
            self.dropped_duplicates.extend(result.audit_trail)
        for near in result.near_matches:
            logger.info("near_duplicate_names", url=request.url, first=near.first, second=near.second, score=near.score)
        if result.audit_trail or result.near_matches:
            logger.debug("dedup_audit", url=request.url, summary=format_audit_summary(result))
        return result.rows

    async def handle(self, request: ParseRequest) -> int:
        """Process one request. Returns the number of rows written."""
        strategy = self.registry.get(request.parser_id)
        if strategy is None:
            logger.error("parser_not_found", parser=request.parser_id.value, url=request.url)
            return 0

        context = QueueContext(self.queue)
        log = logger.bind(venue=request.venue_id, parser=request.parser_id.value, url=request.url)

        try:
            events = await retry_async(
                self._attempt,
                strategy,
                request,
                context,
                max_attempts=self.settings.max_retries + 1,
                base_delay=self.settings.retry_base_delay,
                retryable_exceptions=RETRYABLE_ERRORS,
                label=request.parser_id.value,
            )
        except Exception as e:
            error = str(e) or type(e).__name__
            log.error("request_failed", error=error, error_type=type(e).__name__)
            self.health.record_failure(request.venue_id, request.url, error)
            return 0

        if not events:
            if context.added:
                self.health.record_success(request.venue_id, 0)
            else:
                log.warning("parser_returned_no_items")
                self.health.record_empty(request.venue_id)
            return 0

        rows = self._rows_for(request, events)
        await self.sink.write(rows)
        self.total_rows += len(rows)
        self.health.record_success(request.venue_id, len(rows))
        log.info("page_parsed", events=len(events), rows=len(rows), queued=context.added)
        return len(rows)

    async def _worker(self, number: int) -> None:
        while True:
            request = await self.queue.get()
            try:
                await self.handle(request)
            except Exception as e:
                # Sink errors and parser bugs stay scoped to one request
                logger.exception("request_crashed", worker=number, url=request.url, error=str(e))
                self.health.record_failure(request.venue_id, request.url, str(e) or type(e).__name__)
            finally:
                self.queue.task_done()

    async def run(self, start_requests: Sequence[ParseRequest]) -> CrawlSummary:
        """Crawl until the queue drains and return a run summary."""
        started_at = datetime.now(timezone.utc)
        self.queue.add_many(start_requests)
        worker_count = self.settings.worker_count

        logger.info("crawl_started", requests=len(start_requests), workers=worker_count)
        workers = [asyncio.create_task(self._worker(n)) for n in range(worker_count)]
        try:
            await self.queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        summary = CrawlSummary(
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            total_rows=self.total_rows,
            venues=self.health.venue_statuses(),
            failed_requests=list(self.health.failed_requests),
            dropped_duplicates=list(self.dropped_duplicates),
        )
        logger.info(
            "crawl_finished",
            rows=summary.total_rows,
            pages=self.queue.seen_count,
            failed=len(summary.failed_requests),
            duration_secs=summary.duration_secs,
        )
        return summary
