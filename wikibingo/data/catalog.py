"""
Curated article catalog: categories of articles plus per-group caps.

The catalog is plain data. Hosts usually build it once with load_catalog()
and hand the same Catalog to every game session.

Payload format (curatedArticles.json):
    {
        "groups": {"occupations": {"maxPerGame": 1, "categories": [...]}},
        "categories": [
            {"name": "Painters", "group": "occupations",
             "articles": ["Claude Monet", {"title": "Frida Kahlo", "url": "..."}]}
        ]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wikibingo.config import CATALOG_PATH
from wikibingo.errors import CatalogUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
    """
    A themed list of article titles.

    Attributes:
        name: Display name of the category
        articles: Article titles belonging to the category
        group: Optional group name used for per-game caps
    """

    name: str
    articles: tuple[str, ...]
    group: str | None = None


@dataclass(frozen=True)
class GroupConstraint:
    """At most `max_per_game` categories of group `name` may appear in one game."""

    name: str
    max_per_game: int


@dataclass(frozen=True)
class Catalog:
    """All categories and group constraints available for game generation."""

    categories: tuple[Category, ...]
    groups: dict[str, GroupConstraint] = field(default_factory=dict)

    @property
    def article_count(self) -> int:
        return sum(len(category.articles) for category in self.categories)

    @property
    def playable_categories(self) -> tuple[Category, ...]:
        """Categories with at least one article."""
        return tuple(category for category in self.categories if category.articles)

    def all_titles(self) -> list[str]:
        return [title for category in self.categories for title in category.articles]

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Catalog:
        """
        Build a catalog from the JSON payload format.

        Raises:
            CatalogUnavailable: If the payload holds no categories
        """
        if not isinstance(payload, dict):
            raise CatalogUnavailable("Catalog payload must be a JSON object")

        raw_categories = payload.get("categories") or []
        categories = []
        for raw in raw_categories:
            articles = tuple(
                title for title in (_article_title(a) for a in raw.get("articles") or []) if title
            )
            categories.append(
                Category(
                    name=raw.get("name", ""),
                    articles=articles,
                    group=raw.get("group") or None,
                )
            )

        groups = {
            name: GroupConstraint(name=name, max_per_game=int(info.get("maxPerGame", 0)))
            for name, info in (payload.get("groups") or {}).items()
        }

        if not categories:
            raise CatalogUnavailable("Catalog contains no categories")

        return cls(categories=tuple(categories), groups=groups)


def _article_title(article: Any) -> str | None:
    """Articles are stored either as bare titles or as {"title": ..., "url": ...}."""
    if isinstance(article, str):
        return article.strip() or None
    if isinstance(article, dict):
        title = article.get("title")
        return title.strip() if isinstance(title, str) and title.strip() else None
    return None


def load_catalog(path: Path = CATALOG_PATH) -> Catalog:
    """
    Load and parse a catalog JSON file.

    Raises:
        CatalogUnavailable: If the file is missing, unreadable or empty
    """
    logger.info(f"Loading article catalog from {path}...")
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogUnavailable(f"Failed to load catalog {path}: {e}") from e

    catalog = Catalog.from_payload(payload)
    logger.info(
        f"Loaded {len(catalog.categories):,} categories, "
        f"{catalog.article_count:,} articles, {len(catalog.groups)} groups"
    )
    return catalog
