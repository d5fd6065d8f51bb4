"""
Title normalization and link helpers for Wikipedia articles.

normalize_title() produces the comparison key used everywhere titles are
matched, so that "New York", "New_York" and "new  york" compare equal.
"""

from __future__ import annotations

import re
from urllib.parse import quote, unquote, urljoin, urlparse

from wikibingo.config import WIKIPEDIA_BASE_URL

_WHITESPACE = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")

# Pattern for article paths inside a Wikipedia URL
ARTICLE_PATTERN = re.compile(r"/wiki/([^#?]+)")

# Namespaces that are never navigable inside the game
EXCLUDED_PREFIXES = (
    "File:",
    "Image:",
    "Media:",
    "Help:",
    "Template:",
    "Category:",
    "Wikipedia:",
)


def normalize_title(title: str | None) -> str:
    """
    Normalize an article title for comparison.

    Whitespace runs become single underscores and the key is lowercased.
    Leading and trailing whitespace or underscores never survive.
    None or empty input returns "".
    """
    if not title:
        return ""
    normalized = _WHITESPACE.sub("_", title.strip())
    normalized = _UNDERSCORES.sub("_", normalized)
    return normalized.strip("_").lower()


def title_to_url(title: str) -> str:
    """Convert an article title to its Wikipedia URL."""
    if not title:
        return WIKIPEDIA_BASE_URL

    url_title = _WHITESPACE.sub("_", title)
    # Wikipedia capitalizes the first letter of every article
    url_title = url_title[0].upper() + url_title[1:]
    return urljoin(WIKIPEDIA_BASE_URL, quote(url_title, safe=""))


def href_to_title(href: str | None) -> str | None:
    """
    Extract an article title from a link target.

    Handles full URLs, /wiki/ paths, ./ and ../ relative paths (as produced
    by the REST HTML endpoints) and bare titles.

    Returns:
        Decoded title with spaces instead of underscores, or None
    """
    if not href:
        return None

    path: str | None = None
    if "://" in href:
        parsed = urlparse(href)
        if parsed.path.startswith("/wiki/"):
            path = parsed.path[len("/wiki/"):]
    elif "/wiki/" in href:
        match = ARTICLE_PATTERN.search(href)
        if match:
            path = match.group(1)
    elif href.startswith("./") or href.startswith("../"):
        path = re.sub(r"^\.\.?/", "", href)
    elif not href.startswith("#"):
        path = href

    if path is None:
        return None

    path = path.split("#")[0].split("?")[0]
    title = unquote(path).replace("_", " ").strip()
    return title or None


def is_navigable_link(href: str | None) -> bool:
    """
    Check whether a link points to an article the player may navigate to.

    External links, citation anchors, media files and special namespaces
    are not navigable.
    """
    if not href:
        return False

    if "://" in href or href.startswith("//"):
        return False

    if (
        href.startswith("#cite")
        or href.startswith("#ref")
        or "cite_note" in href
        or "cite-ref" in href
    ):
        return False

    title = href_to_title(href)
    if title and title.startswith(EXCLUDED_PREFIXES):
        return False

    return (
        "/wiki/" in href
        or href.startswith("./")
        or href.startswith("../")
        or href.startswith("/")
    )
