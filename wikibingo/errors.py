"""
Exception types raised by the Wikipedia Bingo engine.

Network failures are recovered inside the wikipedia package (retry plus
fallback); only CatalogUnavailable is meant to reach the host.
"""

from __future__ import annotations


class WikiBingoError(Exception):
    """Base class for all engine errors."""


class FetchError(WikiBingoError):
    """An HTTP request to Wikipedia failed."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class NetworkError(FetchError):
    """Connection-level failure (DNS, refused, reset)."""


class ServerError(FetchError):
    """5xx response."""


class ClientError(FetchError):
    """4xx response. Never retried."""


class FetchTimeoutError(FetchError):
    """The request did not complete within its timeout."""


class ContentUnavailable(WikiBingoError):
    """Every content endpoint failed for an article."""

    def __init__(self, title: str) -> None:
        super().__init__(f"No content available for '{title}'")
        self.title = title


class ArticleNotFound(WikiBingoError):
    """Wikipedia reports that the article does not exist."""


class ConstraintExhaustion(WikiBingoError):
    """Group caps could not be honoured within the attempt budget."""


class CatalogUnavailable(WikiBingoError):
    """No usable article catalog; a game cannot be built."""
