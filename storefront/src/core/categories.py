"""
Static product category reference data.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Category:
    """A product category as exposed in URLs and stored on products."""

    path: str
    db_value: str
    label: str


# Matches the category links in the storefront navigation
CATEGORIES: Tuple[Category, ...] = (
    Category(path="shower", db_value="shower", label="Shower"),
    Category(path="bath", db_value="bath", label="Bath"),
    Category(path="sink", db_value="sink", label="Sink"),
    Category(path="accessories", db_value="accessories", label="Accessories"),
)


def get_category_by_path(path: str) -> Optional[Category]:
    """Find a category by its URL path."""
    return next((cat for cat in CATEGORIES if cat.path == path), None)


def get_category_by_db_value(db_value: str) -> Optional[Category]:
    """Find a category by the value stored on products."""
    return next((cat for cat in CATEGORIES if cat.db_value == db_value), None)


def resolve_category_filter(value: Optional[str]) -> Optional[str]:
    """
    Translate a category value received from a URL into a stored value.

    Known paths map to their database value. Anything else passes through
    unchanged, so an unknown category matches no rows instead of failing.

    Args:
        value: Category path or database value, possibly empty

    Returns:
        Database value to filter on, or None for no category filter
    """
    if not value:
        return None
    category = get_category_by_path(value) or get_category_by_db_value(value)
    return category.db_value if category else value
