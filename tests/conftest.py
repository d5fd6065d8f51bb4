"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides
fixtures available to all test files.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from urllib.parse import unquote

import pytest

from wikibingo.config import (
    WIKIPEDIA_API_URL,
    WIKIPEDIA_DESKTOP_HTML_URL,
    WIKIPEDIA_MOBILE_HTML_URL,
    WIKIPEDIA_SUMMARY_URL,
)
from wikibingo.data import Catalog, Category, GroupConstraint
from wikibingo.errors import ClientError, ServerError
from wikibingo.wikipedia import ArticleFetcher, RedirectResolver
from wikibingo.wikipedia.titles import normalize_title

GRID_TITLES = [f"Target {i}" for i in range(25)]
STARTING_TITLE = "Start Page"

ENDPOINT_PREFIXES = {
    "desktop": WIKIPEDIA_DESKTOP_HTML_URL.split("{")[0],
    "mobile": WIKIPEDIA_MOBILE_HTML_URL.split("{")[0],
    "summary": WIKIPEDIA_SUMMARY_URL.split("{")[0],
}


class FakeWikiClient:
    """
    In-memory stand-in for WikiClient.

    Every article exists unless listed in `failing` (all content endpoints
    answer 503) or `missing` (404). Endpoints named in `failing_endpoints`
    ("desktop", "mobile", "summary") answer 503 for every title. Redirects
    are looked up in `redirects` by normalized title.
    """

    def __init__(self) -> None:
        self.redirects: dict[str, str] = {}
        self.failing: set[str] = set()
        self.missing: set[str] = set()
        self.failing_endpoints: set[str] = set()
        self.redirect_error: Exception | None = None
        self.redirect_delay: float = 0.0
        self.content_delay: float = 0.0
        self.redirect_calls: list[str] = []
        self.content_calls: list[str] = []
        # Raw bodies served instead of the generated ones when set
        self.redirect_payload: object | None = None
        self.summary_payload: object | None = None

    def add_redirect(self, source: str, target: str) -> None:
        self.redirects[normalize_title(source)] = target

    def calls_to(self, endpoint: str) -> list[str]:
        prefix = ENDPOINT_PREFIXES[endpoint]
        return [url for url in self.content_calls if url.startswith(prefix)]

    @staticmethod
    def _title_from_url(url: str) -> str:
        return unquote(url.rsplit("/", 1)[1]).replace("_", " ")

    def _check_content(self, url: str) -> str:
        title = self._title_from_url(url)
        self.content_calls.append(url)
        key = normalize_title(title)
        endpoint = next(name for name, prefix in ENDPOINT_PREFIXES.items() if url.startswith(prefix))
        if key in self.failing or endpoint in self.failing_endpoints:
            raise ServerError(f"HTTP 503 from {url}", url=url, status=503)
        if key in self.missing:
            raise ClientError(f"HTTP 404 from {url}", url=url, status=404)
        return title

    async def get_json(self, url: str, params: dict | None = None) -> dict:
        if url == WIKIPEDIA_API_URL:
            title = params["titles"]
            self.redirect_calls.append(title)
            if self.redirect_delay:
                await asyncio.sleep(self.redirect_delay)
            if self.redirect_error is not None:
                raise self.redirect_error
            if self.redirect_payload is not None:
                return self.redirect_payload
            target = self.redirects.get(normalize_title(title))
            if target is not None:
                return {
                    "query": {
                        "redirects": [{"from": title, "to": target}],
                        "pages": {"1": {"pageid": 1, "title": target}},
                    }
                }
            return {"query": {"pages": {"2": {"pageid": 2, "title": title}}}}

        title = self._check_content(url)
        if self.summary_payload is not None:
            return self.summary_payload
        return {
            "title": title,
            "extract": f"{title} summary",
            "extract_html": f"<p>{title} summary</p>",
        }

    async def get_text(self, url: str, params: dict | None = None) -> str:
        if self.content_delay:
            await asyncio.sleep(self.content_delay)
        title = self._check_content(url)
        slug = title.replace(" ", "_")
        return (
            "<html><head><style>body{}</style><script>alert(1)</script></head>"
            f"<body><div id=\"content\"><h1>{title}</h1>"
            f"<p>About <a href=\"./{slug}\">{title}</a>.</p></div></body></html>"
        )


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_client() -> FakeWikiClient:
    return FakeWikiClient()


@pytest.fixture
def resolver(fake_client: FakeWikiClient) -> RedirectResolver:
    return RedirectResolver(fake_client, sleep=no_sleep)


@pytest.fixture
def fetcher(fake_client: FakeWikiClient) -> ArticleFetcher:
    return ArticleFetcher(fake_client, sleep=no_sleep)


@pytest.fixture
def catalog() -> Catalog:
    """35 categories of 4 spare articles; two capped groups (28 drawable within caps)."""
    categories = []
    for i in range(35):
        group = "people" if i < 5 else "places" if i < 10 else None
        categories.append(
            Category(
                name=f"Category {i}",
                articles=tuple(f"Spare {i}-{j}" for j in range(4)),
                group=group,
            )
        )
    groups = {
        "people": GroupConstraint(name="people", max_per_game=1),
        "places": GroupConstraint(name="places", max_per_game=2),
    }
    return Catalog(categories=tuple(categories), groups=groups)


@pytest.fixture
def bingo_titles() -> list[str]:
    """A fixed 26-title set: 25 grid targets then the starting article."""
    return GRID_TITLES + [STARTING_TITLE]
