"""
HTTP transport for the Wikipedia endpoints.

Wraps a requests.Session and exposes awaitable get_text()/get_json().
The blocking request runs in a worker thread so the event loop driving the
game session stays responsive. requests exceptions and HTTP error statuses
are translated into the wikibingo.errors taxonomy, which the retry policy
understands.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from wikibingo.config import USER_AGENT, WIKIPEDIA_TIMEOUT
from wikibingo.errors import (
    ClientError,
    FetchError,
    FetchTimeoutError,
    NetworkError,
    ServerError,
)

logger = logging.getLogger(__name__)


class WikiClient:
    """
    Minimal async-facing client for Wikipedia's REST and Action APIs.

    One instance can be shared by the redirect resolver and the article
    fetcher; the underlying session pools connections.
    """

    def __init__(
        self,
        timeout: float = WIKIPEDIA_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            session: Optional pre-configured session (for tests)
        """
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def _get(self, url: str, params: dict[str, str] | None, accept: str) -> requests.Response:
        """Perform a blocking GET and translate failures."""
        logger.debug(f"GET {url} params={params}")

        try:
            response = self._session.get(
                url,
                params=params,
                headers={"Accept": accept},
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as e:
            raise FetchTimeoutError(f"Request timed out: {url}", url=url) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection failed: {url}: {e}", url=url) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {url}: {e}", url=url) from e

        status = response.status_code
        if status >= 500:
            raise ServerError(f"HTTP {status} from {url}", url=url, status=status)
        if status >= 400:
            raise ClientError(f"HTTP {status} from {url}", url=url, status=status)

        return response

    async def get_text(self, url: str, params: dict[str, str] | None = None) -> str:
        """GET `url` and return the response body as text."""
        response = await asyncio.to_thread(
            self._get, url, params, "text/html; charset=utf-8"
        )
        return response.text

    async def get_json(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET `url` and decode the JSON body."""
        response = await asyncio.to_thread(self._get, url, params, "application/json")
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}", url=url) from e

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "WikiClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
