"""Core pipeline stages: fetch, aggregate, categorize, enrich."""

from smart_rss.core.aggregator import FeedAggregator, create_aggregator
from smart_rss.core.categorizer import CategoryGroups, categorize, sort_by_recency
from smart_rss.core.enrichment import CategoryEnricher
from smart_rss.core.fetcher import FeedFetcher, FetchOutcome, FetchStats, create_fetcher
from smart_rss.core.opml import parse_opml, parse_opml_file
from smart_rss.core.parser import FeedVariant, ParsedFeed, RawEntry, parse_feed
from smart_rss.core.retry import RetryOutcome, RetryPolicy, RetryState, run_with_retry
from smart_rss.core.summarizer import (
    AISummarizer,
    CategorySummarizer,
    build_prompt,
    create_summarizer,
    parse_summary_response,
)

__all__ = [
    # Fetching
    "FeedFetcher",
    "FetchOutcome",
    "FetchStats",
    "create_fetcher",
    "FeedAggregator",
    "create_aggregator",
    # Parsing
    "FeedVariant",
    "ParsedFeed",
    "RawEntry",
    "parse_feed",
    "parse_opml",
    "parse_opml_file",
    # Categorization
    "CategoryGroups",
    "categorize",
    "sort_by_recency",
    # Enrichment
    "CategoryEnricher",
    "CategorySummarizer",
    "AISummarizer",
    "build_prompt",
    "create_summarizer",
    "parse_summary_response",
    "RetryOutcome",
    "RetryPolicy",
    "RetryState",
    "run_with_retry",
]
