"""
Redirect resolution for Wikipedia article titles.

Uses the Action API with redirects=1 to map any title variant ("USA",
"usa", "United_States") to the canonical, properly capitalized title.
Resolution never raises: on failure the original title is returned and
cached, so a flaky endpoint is not hammered again for the same title.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from wikibingo.config import MAX_REDIRECT_CACHE_SIZE, WIKIPEDIA_API_URL
from wikibingo.errors import WikiBingoError
from wikibingo.wikipedia.cache import BoundedCache
from wikibingo.wikipedia.retry import DEFAULT_RETRY_POLICY, RetryPolicy, Sleep, with_retry
from wikibingo.wikipedia.titles import normalize_title

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of a redirect lookup.

    Attributes:
        title: Canonical title, or the original title when resolution failed
        resolved: True if Wikipedia answered, False if we fell back
    """

    title: str
    resolved: bool


class RedirectResolver:
    """
    Resolves titles to their canonical form, caching by normalized title.

    The cache holds at most MAX_REDIRECT_CACHE_SIZE entries and evicts the
    oldest first. Pass a shared cache to reuse resolutions across sessions.
    """

    def __init__(
        self,
        client,
        cache: BoundedCache[Resolution] | None = None,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Sleep | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            client: Object with an async get_json(url, params) (see WikiClient)
            cache: Cache to use; a private one is created if omitted
            policy: Retry policy applied to each lookup
            sleep: Awaitable sleep used between retries (for tests)
        """
        self._cache = cache if cache is not None else BoundedCache(
            MAX_REDIRECT_CACHE_SIZE, name="redirects"
        )
        self._get_json = with_retry(policy, sleep=sleep)(client.get_json)

    @property
    def cache(self) -> BoundedCache[Resolution]:
        return self._cache

    async def lookup(self, title: str) -> Resolution:
        """
        Resolve `title`, reporting whether the answer came from Wikipedia.

        Never raises for network or API failures.
        """
        if not normalize_title(title):
            return Resolution(title=title or "", resolved=False)

        key = normalize_title(title)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            data = await self._get_json(
                WIKIPEDIA_API_URL,
                params={
                    "action": "query",
                    "redirects": "1",
                    "format": "json",
                    "titles": title,
                },
            )
        except WikiBingoError as e:
            logger.warning(f"Error resolving redirect for '{title}': {e}. Using original title.")
            resolution = Resolution(title=title, resolved=False)
        else:
            canonical = self._canonical_title(data)
            if canonical is None:
                logger.debug(f"No redirect information for '{title}'")
                resolution = Resolution(title=title, resolved=False)
            else:
                resolution = Resolution(title=canonical, resolved=True)

        self._cache.put(key, resolution)
        return resolution

    async def resolve(self, title: str) -> str:
        """Return the canonical title for `title` (or `title` itself on failure)."""
        resolution = await self.lookup(title)
        return resolution.title

    def clear(self) -> None:
        """Drop all cached resolutions."""
        self._cache.clear()

    @staticmethod
    def _canonical_title(data: Any) -> str | None:
        """Pick the canonical title out of an Action API query response."""
        query = data.get("query") if isinstance(data, dict) else None
        if not isinstance(query, dict):
            return None

        redirects = query.get("redirects")
        if isinstance(redirects, list) and redirects and isinstance(redirects[0], dict):
            target = redirects[0].get("to")
            if isinstance(target, str) and target.strip():
                return target

        pages = query.get("pages")
        if isinstance(pages, dict) and pages:
            page_id, page = next(iter(pages.items()))
            if page_id != "-1" and isinstance(page, dict):
                title = page.get("title")
                if isinstance(title, str) and title.strip():
                    return title

        return None
