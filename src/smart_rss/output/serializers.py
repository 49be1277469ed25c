"""
Serializer functions for converting models to JSON-ready dictionaries.
"""

import re
from datetime import datetime
from typing import Optional

from smart_rss.models import ContentItem


def serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO format string.

    Args:
        dt: Datetime object or None

    Returns:
        ISO format string or None
    """
    return dt.isoformat() if dt else None


def slugify(label: str) -> str:
    """Build a filesystem-safe name from a category label.

    Lowercases the label and collapses every run of characters outside
    ``[a-z0-9]`` into a single hyphen.
    """
    return re.sub(r"[^a-z0-9]+", "-", label.lower())


def item_to_dict(item: ContentItem) -> dict:
    """Convert ContentItem to dictionary.

    Args:
        item: ContentItem instance

    Returns:
        Dictionary representation
    """
    return {
        "title": item.title,
        "link": item.link,
        "description": item.body,
        "pubDate": serialize_datetime(item.published_at),
        "feedTitle": item.source_title,
        "category": item.category,
    }
