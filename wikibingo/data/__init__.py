"""
Data loading module.

Provides the curated article catalog used to build bingo sets.

Usage:
    from wikibingo.data import load_catalog

    catalog = load_catalog()
    catalog.playable_categories
"""

from wikibingo.data.catalog import Catalog, Category, GroupConstraint, load_catalog

__all__ = ["Catalog", "Category", "GroupConstraint", "load_catalog"]
