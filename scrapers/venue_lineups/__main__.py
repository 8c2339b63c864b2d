"""
Command-line entry point for the venue lineup crawler.

Run with: python -m scrapers.venue_lineups [--input venues.json] [--output rows.jsonl]

Inspect a single page without crawling:
    python -m scrapers.venue_lineups --inspect URL --parser stubbsAustinEvent
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

import httpx
import structlog

from .config.loader import ConfigError, load_crawl_input
from .crawler import Crawler
from .dedup import deduplicate
from .fetch import HttpFetcher, PageError
from .models import CrawlSettings, ParseRequest
from .normalize import normalize_events
from .registry import UnknownParserError, build_default_registry
from .resilience import HealthMonitor
from .sinks import JsonLinesSink
from .template_engine import TemplateEngine

logger = structlog.get_logger()


def configure_logging(level: str = "info") -> None:
    """Send structlog output to stderr at the given level."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="venue-lineups",
        description="Extract artist lineups from Austin venue calendars",
    )
    parser.add_argument("--input", help="Crawl input JSON (defaults to $VENUES_JSON, then built-in venues)")
    parser.add_argument("--output", default="lineups.jsonl", help="JSON Lines output file")
    parser.add_argument("--max-concurrency", type=int, help="Override input maxConcurrency")
    parser.add_argument("--timeout", type=float, default=90.0, help="Per-request timeout in seconds")
    parser.add_argument("--retries", type=int, default=3, help="Retries per request after the first attempt")
    parser.add_argument("--no-dedupe", action="store_true", help="Keep duplicate artist rows")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--summary", help="Write a Markdown run report to this file")
    parser.add_argument("--inspect", metavar="URL", help="Parse one page and print rows instead of crawling")
    parser.add_argument("--parser", metavar="ID", help="Parser id to use with --inspect")
    return parser


async def inspect_page(url: str, parser_name: str, args: argparse.Namespace) -> int:
    """Fetch one page, parse it without following links and print the rows."""
    registry = build_default_registry()
    parser_id = registry.resolve(parser_name)
    strategy = registry.get(parser_id)
    request = ParseRequest(url=url, venue_id="inspect", parser_id=parser_id)

    async with HttpFetcher(timeout=args.timeout) as fetcher:
        page = await fetcher.fetch(url)
        events = await strategy.parse(page, request)

    rows = normalize_events(events, request.venue_id, parser_id, url)
    if not args.no_dedupe:
        rows = deduplicate(rows).rows

    for row in rows:
        print(row.model_dump_json(by_alias=True))
    logger.info("inspect_finished", url=url, parser=parser_id.value, events=len(events), rows=len(rows))
    return 0


async def crawl(args: argparse.Namespace) -> int:
    crawl_input = load_crawl_input(args.input)
    registry = build_default_registry()
    try:
        start_requests = registry.build_start_requests(crawl_input.venues)
    except UnknownParserError as e:
        raise ConfigError(str(e), e.parser_ids) from e

    settings = CrawlSettings(
        max_concurrency=args.max_concurrency or crawl_input.max_concurrency,
        request_timeout_secs=args.timeout,
        max_retries=args.retries,
        dedupe=not args.no_dedupe,
    )
    proxy = crawl_input.proxy_configuration.proxy_url if crawl_input.proxy_configuration else None
    health = HealthMonitor()
    sink = JsonLinesSink(args.output)

    async with HttpFetcher(timeout=args.timeout, proxy=proxy) as fetcher:
        crawler = Crawler(fetcher, registry, sink, settings=settings, health=health)
        summary = await crawler.run(start_requests)

    if args.summary:
        TemplateEngine().write_summary(summary, args.summary)

    print(json.dumps(health.get_status(), indent=2, default=str))
    return 0


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.inspect:
            if not args.parser:
                logger.error("inspect_requires_parser")
                return 2
            return await inspect_page(args.inspect, args.parser, args)
        return await crawl(args)
    except (ConfigError, UnknownParserError) as e:
        logger.error("config_error", error=str(e))
        return 2
    except (httpx.HTTPError, PageError) as e:
        logger.error("fetch_failed", error=str(e) or type(e).__name__)
        return 1


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
