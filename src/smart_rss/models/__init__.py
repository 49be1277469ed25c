"""Data models for Smart RSS."""

from smart_rss.models.feed import (
    DEFAULT_CATEGORY,
    DateWindow,
    SourceDescriptor,
    SubscriptionList,
)
from smart_rss.models.item import (
    EMPTY_CATEGORY_OVERVIEW,
    FAILED_SUMMARY_OVERVIEW,
    CategorySummary,
    ContentItem,
    SummaryPayload,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "DateWindow",
    "SourceDescriptor",
    "SubscriptionList",
    "EMPTY_CATEGORY_OVERVIEW",
    "FAILED_SUMMARY_OVERVIEW",
    "CategorySummary",
    "ContentItem",
    "SummaryPayload",
]
