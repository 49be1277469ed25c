"""
Grouping of fetched items by category.
"""

from typing import Iterable

from smart_rss.models import DEFAULT_CATEGORY, ContentItem

CategoryGroups = dict[str, list[ContentItem]]


def category_of(item: ContentItem) -> str:
    """Return the grouping label of an item."""
    return (item.category or "").strip() or DEFAULT_CATEGORY


def _recency_key(item: ContentItem) -> tuple[int, float]:
    # Undated items go after every dated one
    if item.published_at is None:
        return (1, 0.0)
    return (0, -item.published_at.timestamp())


def sort_by_recency(items: Iterable[ContentItem]) -> list[ContentItem]:
    """Sort items newest first, undated items last.

    ``sorted`` is stable, so items with equal timestamps (and undated items)
    keep their input order.
    """
    return sorted(items, key=_recency_key)


def categorize(items: Iterable[ContentItem]) -> CategoryGroups:
    """Group items by category label.

    Args:
        items: Merged items from all sources

    Returns:
        Mapping of category label to items sorted newest first. Labels
        appear in the order they were first seen.
    """
    groups: CategoryGroups = {}

    for item in items:
        groups.setdefault(category_of(item), []).append(item)

    return {category: sort_by_recency(group) for category, group in groups.items()}
