"""
Article content fetching with an endpoint fallback chain.

Fetch order:
1. Desktop REST HTML (most complete content)
2. Mobile REST HTML
3. REST summary (extract only)

Each leg is retried on transient failures. Results are sanitized
(scripts/styles removed, main content selected) and cached by normalized
title.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

from bs4 import BeautifulSoup

from wikibingo.config import (
    MAX_ARTICLE_CACHE_SIZE,
    WIKIPEDIA_DESKTOP_HTML_URL,
    WIKIPEDIA_MOBILE_HTML_URL,
    WIKIPEDIA_SUMMARY_URL,
)
from wikibingo.errors import (
    ArticleNotFound,
    ClientError,
    ContentUnavailable,
    FetchError,
    WikiBingoError,
)
from wikibingo.wikipedia.cache import BoundedCache
from wikibingo.wikipedia.retry import DEFAULT_RETRY_POLICY, RetryPolicy, Sleep, with_retry
from wikibingo.wikipedia.titles import href_to_title, is_navigable_link, normalize_title

logger = logging.getLogger(__name__)

# Main content containers, most specific first
CONTENT_SELECTORS = (
    "#content",
    "#bodyContent",
    "main",
    "article",
    ".mw-parser-output",
)

# Link containers that are not part of the article body
SKIP_CLASSES = {
    "navbox",
    "vertical-navbox",
    "infobox",
    "sidebar",
    "references",
    "reflist",
    "mw-references-wrap",
    "toc",
}

NOT_FOUND_TYPE = "https://mediawiki.org/wiki/HyperSwitch/errors/not_found"


@dataclass(frozen=True)
class Article:
    """
    A fetched, sanitized article.

    Attributes:
        title: Title the article was requested under
        html: Sanitized inner HTML of the main content
    """

    title: str
    html: str

    @property
    def links(self) -> list[str]:
        """Unique navigable article titles linked from the body, in page order."""
        soup = BeautifulSoup(self.html, "lxml")
        links: list[str] = []
        seen: set[str] = set()

        for anchor in soup.find_all("a", href=True):
            skip = False
            for parent in anchor.parents:
                if SKIP_CLASSES & set(parent.get("class") or []):
                    skip = True
                    break
            if skip:
                continue

            href = anchor["href"]
            if not is_navigable_link(href):
                continue

            title = href_to_title(href)
            key = normalize_title(title)
            if title and key not in seen:
                links.append(title)
                seen.add(key)

        return links


def sanitize_html(html: str) -> str:
    """
    Strip scripts and styles and return the main content's inner HTML.

    Falls back to the whole body when no known content container exists.
    """
    soup = BeautifulSoup(html, "lxml")

    for element in soup.find_all(["style", "script", "noscript"]):
        element.decompose()

    container = None
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break

    if container is None:
        container = soup.body

    if container is None:
        return str(soup)

    return container.decode_contents()


class ArticleFetcher:
    """
    Fetches article content through the desktop/mobile/summary chain.

    The cache holds at most MAX_ARTICLE_CACHE_SIZE articles and evicts the
    oldest first.
    """

    def __init__(
        self,
        client,
        cache: BoundedCache[Article] | None = None,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Sleep | None = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            client: Object with async get_text(url) and get_json(url) (see WikiClient)
            cache: Cache to use; a private one is created if omitted
            policy: Retry policy applied to each endpoint
            sleep: Awaitable sleep used between retries (for tests)
        """
        self._client = client
        self._cache = cache if cache is not None else BoundedCache(
            MAX_ARTICLE_CACHE_SIZE, name="articles"
        )
        retrying = with_retry(policy, sleep=sleep)
        self._get_text = retrying(client.get_text)
        self._get_json = retrying(client.get_json)

    @property
    def cache(self) -> BoundedCache[Article]:
        return self._cache

    @staticmethod
    def _encode(title: str) -> str:
        return quote(title.replace(" ", "_"), safe="")

    async def _fetch_html(self, title: str, url_template: str, endpoint: str) -> str | None:
        url = url_template.format(title=self._encode(title))
        try:
            html = await self._get_text(url)
        except WikiBingoError as e:
            logger.warning(f"Failed to fetch {endpoint} HTML for '{title}': {e}")
            return None
        return html or None

    async def _fetch_summary_html(self, title: str) -> str | None:
        url = WIKIPEDIA_SUMMARY_URL.format(title=self._encode(title))
        try:
            data = await self._get_json(url)
        except WikiBingoError as e:
            logger.warning(f"Failed to fetch summary for '{title}': {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Unexpected summary payload for '{title}': {type(data).__name__}")
            return None
        for field in ("extract_html", "extract"):
            value = data.get(field)
            if isinstance(value, str) and value:
                return value
        return None

    async def fetch(self, title: str) -> Article:
        """
        Fetch and sanitize an article.

        Raises:
            ContentUnavailable: If all three endpoints fail
        """
        key = normalize_title(title)
        if not key:
            raise ContentUnavailable(title or "")

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        raw = await self._fetch_html(title, WIKIPEDIA_DESKTOP_HTML_URL, "desktop")
        if raw is None:
            raw = await self._fetch_html(title, WIKIPEDIA_MOBILE_HTML_URL, "mobile")
        if raw is None:
            raw = await self._fetch_summary_html(title)
        if raw is None:
            logger.error(f"All content endpoints failed for '{title}'")
            raise ContentUnavailable(title)

        article = Article(title=title, html=sanitize_html(raw))
        self._cache.put(key, article)
        return article

    async def fetch_summary(self, title: str) -> str:
        """
        Fetch the plain-text extract of an article (for grid cell previews).

        Raises:
            ArticleNotFound: If Wikipedia has no such article
            FetchError: On other request failures
        """
        url = WIKIPEDIA_SUMMARY_URL.format(title=self._encode(title))
        try:
            data = await self._get_json(url)
        except ClientError as e:
            raise ArticleNotFound(f"Article not found or unavailable: {e.status}") from e

        if not isinstance(data, dict):
            raise FetchError(f"Unexpected summary payload for '{title}'", url=url)

        detail = str(data.get("detail") or "")
        if (
            data.get("type") == NOT_FOUND_TYPE
            or data.get("title") == "Not found."
            or "not found" in detail
        ):
            raise ArticleNotFound(f"Article not found: '{title}'")

        extract = data.get("extract")
        return extract if isinstance(extract, str) else ""

    def clear(self) -> None:
        """Drop all cached articles."""
        self._cache.clear()
