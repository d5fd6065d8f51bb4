#!/usr/bin/env python3
"""
Validate the curated article catalog.

Checks that the catalog file loads, reports its size, and draws sample
bingo sets to confirm group constraints can be satisfied.

Usage:
    python scripts/validate_catalog.py
    python scripts/validate_catalog.py --catalog path/to/catalog.json --draws 500
"""

import argparse
import logging
import random
import sys
from collections import Counter
from pathlib import Path

# Fix Windows console encoding for Unicode output
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from wikibingo.config import CATALOG_PATH, STARTING_POOL_SIZE, validate_catalog_file  # noqa: E402
from wikibingo.data import Catalog, load_catalog  # noqa: E402
from wikibingo.errors import CatalogUnavailable  # noqa: E402
from wikibingo.game import generate_bingo_set  # noqa: E402
from wikibingo.wikipedia import normalize_title  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def check_catalog_file(path: Path) -> bool:
    """Check that the catalog file exists."""
    print("\n=== Checking Catalog File ===\n")

    status = validate_catalog_file(path)
    if not status["exists"]:
        print(f"✗ {path}: NOT FOUND")
        return False

    size_kb = path.stat().st_size / 1024
    print(f"✓ {path.name}: {size_kb:,.1f} KB")
    return status["non_empty"]


def report_stats(catalog: Catalog) -> bool:
    """Print catalog statistics and structural warnings."""
    print("\n=== Catalog Statistics ===\n")
    print(f"  categories: {len(catalog.categories):,}")
    print(f"  playable categories: {len(catalog.playable_categories):,}")
    print(f"  articles: {catalog.article_count:,}")
    print(f"  groups: {len(catalog.groups)}")

    titles = catalog.all_titles()
    duplicates = [
        title for title, count in Counter(normalize_title(t) for t in titles).items() if count > 1
    ]
    if duplicates:
        print(f"  ! {len(duplicates)} titles appear in more than one category")

    unknown_groups = {
        category.group
        for category in catalog.categories
        if category.group and category.group not in catalog.groups
    }
    for group in sorted(unknown_groups):
        print(f"  ! category group '{group}' has no maxPerGame entry (uncapped)")

    return len(catalog.playable_categories) >= STARTING_POOL_SIZE


def sample_draws(catalog: Catalog, draws: int, seed: int) -> bool:
    """Generate bingo sets and verify uniqueness and group caps."""
    print(f"\n=== Sampling {draws} Bingo Sets ===\n")

    rng = random.Random(seed)
    group_of = {
        title: category.group for category in catalog.categories for title in category.articles
    }
    relaxed = 0

    for _ in range(draws):
        try:
            bingo = generate_bingo_set(catalog.categories, catalog.groups, rng=rng)
        except CatalogUnavailable as e:
            print(f"  ✗ generation failed: {e}")
            return False

        if len({normalize_title(title) for title in bingo}) != STARTING_POOL_SIZE:
            print(f"  ✗ duplicate titles in set: {list(bingo)}")
            return False

        if bingo.constraints_relaxed:
            relaxed += 1
            continue

        counts = Counter(group_of.get(title) for title in bingo if group_of.get(title))
        for group, count in counts.items():
            cap = catalog.groups.get(group)
            if cap is not None and count > cap.max_per_game:
                print(f"  ✗ group '{group}' used {count} times (max {cap.max_per_game})")
                return False

    print(f"  ✓ {draws} sets generated, {relaxed} needed relaxed group caps")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate the curated article catalog")
    parser.add_argument("--catalog", type=Path, default=CATALOG_PATH)
    parser.add_argument("--draws", type=int, default=200)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    if not check_catalog_file(args.catalog):
        return 1

    try:
        catalog = load_catalog(args.catalog)
    except CatalogUnavailable as e:
        print(f"✗ {e}")
        return 1

    ok = report_stats(catalog)
    ok = sample_draws(catalog, args.draws, args.seed) and ok

    print("\n" + ("All checks passed" if ok else "Some checks FAILED"))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
