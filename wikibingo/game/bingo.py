"""
Bingo set generation.

A bingo set is 26 distinct article titles drawn from distinct catalog
categories: the first 25 fill the grid, the last is the starting article.
Group constraints cap how many categories of one group (e.g. "occupations")
appear in a single game.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from typing import Iterable, Mapping, Sequence

from wikibingo.config import BINGO_MAX_ATTEMPTS, REPLACEMENT_MAX_ATTEMPTS, STARTING_POOL_SIZE
from wikibingo.data.catalog import Category, GroupConstraint
from wikibingo.errors import CatalogUnavailable, ConstraintExhaustion
from wikibingo.wikipedia.titles import normalize_title

logger = logging.getLogger(__name__)


class BingoSet(list):
    """
    Ordered list of titles; index 25 is the starting article.

    constraints_relaxed is True when group caps had to be ignored to fill
    the set.
    """

    def __init__(self, titles: Iterable[str] = (), constraints_relaxed: bool = False) -> None:
        super().__init__(titles)
        self.constraints_relaxed = constraints_relaxed

    @property
    def grid_titles(self) -> list[str]:
        return list(self[:-1])

    @property
    def starting_title(self) -> str:
        return self[-1]


def _group_caps(
    group_constraints: Mapping[str, GroupConstraint | int] | Iterable[GroupConstraint] | None,
) -> dict[str, int]:
    """Accept a name->GroupConstraint/int mapping or an iterable of GroupConstraint."""
    if not group_constraints:
        return {}
    if isinstance(group_constraints, Mapping):
        return {
            name: value.max_per_game if isinstance(value, GroupConstraint) else int(value)
            for name, value in group_constraints.items()
        }
    return {constraint.name: constraint.max_per_game for constraint in group_constraints}


def _draw(
    categories: Sequence[Category],
    caps: dict[str, int],
    count: int,
    rng: random.Random,
    respect_caps: bool,
) -> list[str]:
    """One shuffled pass over the categories, one article per accepted category."""
    order = list(categories)
    rng.shuffle(order)

    group_counts: Counter[str] = Counter()
    used: set[str] = set()
    selected: list[str] = []

    for category in order:
        if len(selected) >= count:
            break

        if respect_caps and category.group is not None:
            cap = caps.get(category.group)
            if cap is not None and group_counts[category.group] >= cap:
                continue

        candidates = [
            title
            for title in category.articles
            if normalize_title(title) and normalize_title(title) not in used
        ]
        if not candidates:
            continue

        title = rng.choice(candidates)
        used.add(normalize_title(title))
        selected.append(title)
        if category.group is not None:
            group_counts[category.group] += 1

    return selected


def generate_bingo_set(
    categories: Sequence[Category],
    group_constraints: Mapping[str, GroupConstraint | int] | Iterable[GroupConstraint] | None = None,
    count: int = STARTING_POOL_SIZE,
    rng: random.Random | None = None,
    max_attempts: int = BINGO_MAX_ATTEMPTS,
) -> BingoSet:
    """
    Draw `count` distinct titles from distinct categories.

    Group caps are honoured for up to `max_attempts` shuffled passes. If no
    pass fills the set, the caps are ignored (ConstraintExhaustion is logged)
    and generation is retried with the same budget.

    Args:
        categories: Catalog categories to draw from
        group_constraints: Per-group caps
        count: Number of titles to draw (26 for a full game)
        rng: Random source (a fresh one if omitted)
        max_attempts: Passes per phase

    Returns:
        BingoSet of `count` titles in random order

    Raises:
        CatalogUnavailable: If the catalog cannot supply `count` distinct
            titles even without group caps
    """
    rng = rng or random.Random()
    playable = [category for category in categories if category.articles]
    if not playable:
        raise CatalogUnavailable("No categories with articles available")

    caps = _group_caps(group_constraints)

    for attempt in range(1, max_attempts + 1):
        selected = _draw(playable, caps, count, rng, respect_caps=True)
        if len(selected) == count:
            rng.shuffle(selected)
            logger.debug(f"Generated bingo set on attempt {attempt}")
            return BingoSet(selected)
        logger.debug(
            f"Attempt {attempt}/{max_attempts}: only {len(selected)}/{count} titles "
            "within group constraints"
        )

    exhaustion = ConstraintExhaustion(
        f"Could not draw {count} titles within group constraints after "
        f"{max_attempts} attempts; ignoring group caps"
    )
    logger.warning(str(exhaustion))

    for attempt in range(1, max_attempts + 1):
        selected = _draw(playable, caps, count, rng, respect_caps=False)
        if len(selected) == count:
            rng.shuffle(selected)
            return BingoSet(selected, constraints_relaxed=True)

    raise CatalogUnavailable(
        f"Failed to generate enough unique articles for bingo set. "
        f"Need {count} from {len(playable)} categories."
    ) from exhaustion


def pick_replacement_article(
    categories: Sequence[Category],
    exclude: Iterable[str] = (),
    rng: random.Random | None = None,
    max_attempts: int = REPLACEMENT_MAX_ATTEMPTS,
) -> str:
    """
    Pick a random catalog title whose normalized form is not in `exclude`.

    After `max_attempts` misses any title is returned.

    Raises:
        CatalogUnavailable: If no category has articles
    """
    rng = rng or random.Random()
    playable = [category for category in categories if category.articles]
    if not playable:
        raise CatalogUnavailable("No categories with articles available")

    excluded = {normalize_title(title) for title in exclude}

    for _ in range(max_attempts):
        title = rng.choice(rng.choice(playable).articles)
        if normalize_title(title) not in excluded:
            return title

    # Exhaustive scan before giving up on uniqueness
    unused = [
        title
        for category in playable
        for title in category.articles
        if normalize_title(title) not in excluded
    ]
    if unused:
        return rng.choice(unused)

    logger.warning("No unused catalog article left; reusing one")
    return rng.choice(rng.choice(playable).articles)
