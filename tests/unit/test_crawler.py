"""Tests for the crawl orchestrator."""

import asyncio

import httpx
import pytest

from scrapers.venue_lineups.crawler import Crawler, QueueContext, RequestQueue
from scrapers.venue_lineups.fetch import HttpFetcher
from scrapers.venue_lineups.models import CrawlSettings, ParseRequest, ParserId, Role
from scrapers.venue_lineups.parsers import MohawkParser
from scrapers.venue_lineups.registry import ParserRegistry, build_default_registry
from scrapers.venue_lineups.resilience import HealthMonitor
from scrapers.venue_lineups.sinks import MemorySink


STUBBS_CALENDAR = """
<html><body>
  <a href="/tm-event/band-alpha/">Band Alpha</a>
  <a href="/tm-event/band-beta/">Band Beta</a>
  <a href="/tm-event/band-alpha/">Band Alpha</a>
</body></html>
"""

STUBBS_ALPHA = """
<html><body><h1>Band Alpha</h1><p>with Opener One & Opener Two.</p></body></html>
"""

STUBBS_BETA = """
<html><body><h1>Band Beta</h1><p>Doors 7pm</p></body></html>
"""

MOHAWK_DUPLICATES = """
<html><body>
  <div class="list-view-details">
    <h1 class="event-name headliners"><a href="/event/1">Band Alpha</a></h1>
    <h2 class="event-name supports">Band Beta</h2>
  </div>
  <div class="list-view-details">
    <h1 class="event-name headliners"><a href="/event/2">Band Beta</a></h1>
  </div>
</body></html>
"""


def routes(pages: dict[str, str]):
    """MockTransport handler serving fixed pages, 404 for anything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = pages.get(str(request.url))
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=body)

    return handler


def settings(**overrides) -> CrawlSettings:
    values = {"max_concurrency": 3, "request_timeout_secs": 5.0, "max_retries": 1, "retry_base_delay": 0.0}
    values.update(overrides)
    return CrawlSettings(**values)


async def crawl(pages, start_requests, registry=None, **overrides):
    sink = MemorySink()
    health = HealthMonitor()
    transport = httpx.MockTransport(routes(pages) if isinstance(pages, dict) else pages)
    async with HttpFetcher(transport=transport) as fetcher:
        crawler = Crawler(fetcher, registry or build_default_registry(), sink, settings(**overrides), health)
        summary = await crawler.run(start_requests)
    return sink, health, summary


class TestRequestQueue:
    """Tests for RequestQueue."""

    def test_ignores_seen_urls(self):
        queue = RequestQueue()
        request = ParseRequest(url="https://x.test/a", venue_id="v", parser_id=ParserId.STUBBS_AUSTIN_EVENT)

        assert queue.add(request) is True
        assert queue.add(request) is False
        assert len(queue) == 1

    def test_fragment_is_part_of_url(self):
        queue = RequestQueue()
        requests = [
            ParseRequest(url=f"https://antonesnightclub.com/calendar/#tw-event-dialog-{n}", venue_id="antones",
                         parser_id=ParserId.ANTONES_EVENT, continuation={"kind": "dialog", "dialogId": f"d{n}"})
            for n in (1, 2, 1)
        ]
        assert queue.add_many(requests) == 2

    @pytest.mark.asyncio
    async def test_context_counts_new_requests(self):
        context = QueueContext(RequestQueue())
        request = ParseRequest(url="https://x.test/a", venue_id="v", parser_id=ParserId.STUBBS_AUSTIN_EVENT)

        assert await context.enqueue([request, request]) == 1
        assert context.added == 1


class TestCrawler:
    """Tests for Crawler.run()."""

    @pytest.mark.asyncio
    async def test_calendar_then_detail_pages(self):
        """Calendar links are followed and detail rows written."""
        pages = {
            "https://stubbsaustin.com/concert-listings/": STUBBS_CALENDAR,
            "https://stubbsaustin.com/tm-event/band-alpha/": STUBBS_ALPHA,
            "https://stubbsaustin.com/tm-event/band-beta/": STUBBS_BETA,
        }
        start = [ParseRequest(url="https://stubbsaustin.com/concert-listings/", venue_id="stubbsAustin",
                              parser_id=ParserId.STUBBS_AUSTIN)]

        sink, health, summary = await crawl(pages, start)

        rows = {(r.artist_name, r.role) for r in sink.rows}
        assert rows == {
            ("Band Alpha", Role.HEADLINER),
            ("Opener One", Role.SUPPORT),
            ("Opener Two", Role.SUPPORT),
            ("Band Beta", Role.HEADLINER),
        }
        assert all(r.venue_parser_id == "stubbsAustinEvent" for r in sink.rows)
        assert summary.total_rows == 4
        assert summary.failed_requests == []
        status = health.status["stubbsAustin"]
        assert status.pages == 3
        assert status.rows == 4
        assert status.empty_pages == 0

    @pytest.mark.asyncio
    async def test_failed_request_does_not_stop_crawl(self):
        pages = {"https://mohawkaustin.com/": MOHAWK_DUPLICATES}
        start = [
            ParseRequest(url="https://stubbsaustin.com/concert-listings/", venue_id="stubbsAustin",
                         parser_id=ParserId.STUBBS_AUSTIN),
            ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin", parser_id=ParserId.MOHAWK_AUSTIN),
        ]

        sink, health, summary = await crawl(pages, start)

        assert summary.failed_requests == ["https://stubbsaustin.com/concert-listings/"]
        assert health.status["stubbsAustin"].failures == 1
        assert "404" in health.status["stubbsAustin"].last_error
        assert health.is_healthy("mohawkAustin")
        assert sink.rows

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        calls = []

        def flaky(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, text=MOHAWK_DUPLICATES)

        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]
        sink, health, summary = await crawl(flaky, start)

        assert len(calls) == 2
        assert summary.failed_requests == []
        assert sink.rows

    @pytest.mark.asyncio
    async def test_rows_deduplicated_per_page(self):
        """An artist billed twice on one page yields one row, first wins."""
        pages = {"https://mohawkaustin.com/": MOHAWK_DUPLICATES}
        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]

        sink, _, _ = await crawl(pages, start)

        assert [(r.artist_name, r.role) for r in sink.rows] == [
            ("Band Alpha", Role.HEADLINER),
            ("Band Beta", Role.SUPPORT),
        ]

    @pytest.mark.asyncio
    async def test_dropped_duplicates_in_summary(self):
        """Rows removed by dedup are kept on the run summary."""
        pages = {"https://mohawkaustin.com/": MOHAWK_DUPLICATES}
        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]

        _, _, summary = await crawl(pages, start)

        assert len(summary.dropped_duplicates) == 1
        dropped = summary.dropped_duplicates[0]
        assert dropped.key == "band beta"
        assert dropped.dropped_artist == "Band Beta"
        assert "headliner" in dropped.reason

    @pytest.mark.asyncio
    async def test_parser_errors_not_retried(self):
        """A parser bug fails the request on the first attempt."""
        fetched = []

        class BrokenParser(MohawkParser):
            async def parse(self, page, request, context=None):
                raise ValueError("bad markup")

        def handler(request: httpx.Request) -> httpx.Response:
            fetched.append(str(request.url))
            return httpx.Response(200, text=MOHAWK_DUPLICATES)

        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]
        sink, health, summary = await crawl(handler, start, registry=ParserRegistry([BrokenParser()]), max_retries=3)

        assert fetched == ["https://mohawkaustin.com/"]
        assert summary.failed_requests == ["https://mohawkaustin.com/"]
        assert health.status["mohawkAustin"].last_error == "bad markup"

    @pytest.mark.asyncio
    async def test_dedupe_can_be_disabled(self):
        pages = {"https://mohawkaustin.com/": MOHAWK_DUPLICATES}
        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]

        sink, _, _ = await crawl(pages, start, dedupe=False)

        assert [r.artist_name for r in sink.rows] == ["Band Alpha", "Band Beta", "Band Beta"]

    @pytest.mark.asyncio
    async def test_empty_page_recorded(self):
        pages = {"https://mohawkaustin.com/": "<html><body><p>No shows</p></body></html>"}
        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]

        sink, health, summary = await crawl(pages, start)

        assert sink.rows == []
        assert health.status["mohawkAustin"].empty_pages == 1
        assert summary.failed_requests == []

    @pytest.mark.asyncio
    async def test_missing_parser_dropped(self):
        """A request with no registered strategy is skipped, not retried."""
        fetched = []

        def handler(request: httpx.Request) -> httpx.Response:
            fetched.append(str(request.url))
            return httpx.Response(200, text="")

        start = [ParseRequest(url="https://antonesnightclub.com/calendar/", venue_id="antones",
                              parser_id=ParserId.ANTONES)]
        sink, health, summary = await crawl(handler, start, registry=ParserRegistry([MohawkParser()]))

        assert fetched == []
        assert sink.rows == []
        assert summary.failed_requests == []

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, text=MOHAWK_DUPLICATES)

        start = [ParseRequest(url="https://mohawkaustin.com/", venue_id="mohawkAustin",
                              parser_id=ParserId.MOHAWK_AUSTIN)]
        sink, health, summary = await crawl(slow, start, request_timeout_secs=0.05, max_retries=0)

        assert sink.rows == []
        assert summary.failed_requests == ["https://mohawkaustin.com/"]
        assert health.status["mohawkAustin"].last_error == "TimeoutError"

    @pytest.mark.asyncio
    async def test_no_start_requests(self):
        sink, health, summary = await crawl({}, [])
        assert summary.total_rows == 0
        assert summary.venues == []
