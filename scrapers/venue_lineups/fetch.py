"""
Page fetching for venue sites.

Cost: Free (uses httpx + BeautifulSoup)

HttpFetcher owns one httpx.AsyncClient per crawl so cookies set by a venue
page are sent on follow-up API calls and navigations from that page.
Page wraps the parsed DOM with the handful of queries parsers need.
"""

import re
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

import httpx
import structlog
from bs4 import BeautifulSoup, Tag
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction

logger = structlog.get_logger(__name__)


DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

JSON_ACCEPT = "application/json, text/javascript, */*; q=0.01"

HIDDEN_TAGS = {"script", "style", "noscript", "template", "head", "svg", "iframe"}
BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "details", "dialog", "div",
    "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
    "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre",
    "section", "summary", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
}
SKIPPED_STRINGS = (Comment, CData, ProcessingInstruction, Declaration, Doctype)
INLINE_WHITESPACE = re.compile(r"[\s\u00a0]+")


class PageError(Exception):
    """Raised when a page cannot be fetched or queried."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"{message}: {url}")


def _collect_text(node: Tag, parts: list[str]) -> None:
    for child in node.children:
        if isinstance(child, SKIPPED_STRINGS):
            continue
        if isinstance(child, NavigableString):
            parts.append(INLINE_WHITESPACE.sub(" ", str(child)))
            continue
        if not isinstance(child, Tag) or child.name in HIDDEN_TAGS:
            continue
        if child.name == "br":
            parts.append("\n")
            continue

        block = child.name in BLOCK_TAGS
        if block:
            parts.append("\n")
        _collect_text(child, parts)
        if block:
            parts.append("\n")


def visible_lines(node: Optional[Tag]) -> list[str]:
    """
    Visible text of a DOM node split into trimmed, non-blank lines.

    Approximates a browser's innerText: block elements and <br> break
    lines, inline whitespace collapses, scripts and styles are skipped.
    """
    if node is None:
        return []
    parts: list[str] = []
    _collect_text(node, parts)
    return [line.strip() for line in "".join(parts).split("\n") if line.strip()]


def node_text(node: Optional[Tag]) -> str:
    """Single-line text content of a node."""
    if node is None:
        return ""
    return INLINE_WHITESPACE.sub(" ", node.get_text(" ")).strip()


class Page:
    """A fetched page: URL, parsed DOM and the session it was fetched with."""

    def __init__(self, url: str, html: str, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.html = html
        self.client = client
        self.soup = BeautifulSoup(html, "html.parser")

    @classmethod
    def from_html(
        cls,
        html: str,
        url: str = "https://example.test/",
        client: Optional[httpx.AsyncClient] = None,
    ) -> "Page":
        """Build a page from markup already in hand (tests, single-page inspection)."""
        return cls(url, html, client=client)

    @property
    def host(self) -> str:
        return urlparse(self.url).netloc.lower()

    def select(self, selector: str, root: Optional[Tag] = None) -> list[Tag]:
        return (root or self.soup).select(selector)

    def select_one(self, selector: str, root: Optional[Tag] = None) -> Optional[Tag]:
        return (root or self.soup).select_one(selector)

    def absolute(self, href: Optional[str]) -> Optional[str]:
        """Resolve an href against the page URL."""
        if not href:
            return None
        return urljoin(self.url, href.strip())

    def lines(self, node: Optional[Tag] = None) -> list[str]:
        """Visible text lines of node, or of the whole body."""
        if node is None:
            node = self.soup.body or self.soup
        return visible_lines(node)

    def heading(self, selector: str = "h1, .entry-title, .post-title") -> Optional[str]:
        """Text of the first element matching selector, or None."""
        text = node_text(self.select_one(selector))
        return text or None

    def _require_client(self) -> httpx.AsyncClient:
        if self.client is None:
            raise PageError(self.url, "Page has no HTTP session")
        return self.client

    async def get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        GET a JSON endpoint through this page's session.

        Sends the page URL as Referer so the call looks like it came from
        the page itself.

        Raises:
            PageError: If the page has no session
            httpx.HTTPError: On transport errors or non-2xx responses
            ValueError: If the body is not JSON
        """
        client = self._require_client()
        request_headers = {"Accept": JSON_ACCEPT, "Referer": self.url}
        request_headers.update(headers or {})

        response = await client.get(url, params=params, headers=request_headers)
        response.raise_for_status()
        return response.json()

    async def open(self, url: str) -> "Page":
        """Navigate to another URL in the same session."""
        client = self._require_client()
        response = await client.get(url, headers={"Referer": self.url})
        response.raise_for_status()
        return Page(str(response.url), response.text, client=client)


class HttpFetcher:
    """Async context manager owning the crawl's HTTP session."""

    def __init__(
        self,
        timeout: float = 30.0,
        proxy: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.proxy = proxy
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HttpFetcher":
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            follow_redirects=True,
            proxy=self.proxy,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    async def fetch(self, url: str) -> Page:
        """
        Fetch a page.

        Raises:
            PageError: If the fetcher is not open
            httpx.HTTPError: On transport errors or non-2xx responses
        """
        if self.client is None:
            raise PageError(url, "Fetcher is not open")

        response = await self.client.get(url)
        response.raise_for_status()
        logger.debug("page_fetched", url=url, status=response.status_code, bytes=len(response.content))
        # Keep the fragment; in-page dialog ids live there
        fragment = urlparse(url).fragment
        final_url = str(response.url)
        if fragment and "#" not in final_url:
            final_url = f"{final_url}#{fragment}"
        return Page(final_url, response.text, client=self.client)
