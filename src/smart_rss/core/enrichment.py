"""
Per-category enrichment with retries.

Categories are summarized one after another because the completion API is
a shared, rate-limited dependency. Every category yields exactly one
``CategorySummary``: empty categories and categories whose summarization
keeps failing get a placeholder overview instead of being dropped.
"""

import time
from typing import Callable, Mapping, Optional, Sequence

from smart_rss.config import SummarizerConfig
from smart_rss.core.retry import RetryPolicy, run_with_retry
from smart_rss.core.summarizer import CategorySummarizer
from smart_rss.exceptions import EnrichmentExhausted
from smart_rss.logger import get_logger
from smart_rss.models import (
    EMPTY_CATEGORY_OVERVIEW,
    FAILED_SUMMARY_OVERVIEW,
    CategorySummary,
    ContentItem,
)

logger = get_logger(__name__)

EnrichProgressCallback = Callable[[int, int, str], None]

DEFAULT_MAX_PROMPT_ITEMS = 50


class CategoryEnricher:
    """Drives the summarizer over every category in order."""

    def __init__(
        self,
        summarizer: CategorySummarizer,
        policy: Optional[RetryPolicy] = None,
        max_prompt_items: int = DEFAULT_MAX_PROMPT_ITEMS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the enricher.

        Args:
            summarizer: Client used for each category
            policy: Attempt limit and backoff unit
            max_prompt_items: Items sent to the summarizer per category
            sleep: Sleeping primitive used between attempts
        """
        self.summarizer = summarizer
        self.policy = policy or RetryPolicy()
        self.max_prompt_items = max_prompt_items
        self.sleep = sleep

    @classmethod
    def from_config(
        cls,
        summarizer: CategorySummarizer,
        config: SummarizerConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "CategoryEnricher":
        return cls(
            summarizer,
            policy=RetryPolicy(
                max_attempts=config.max_attempts,
                base_delay=config.retry_delay_seconds,
            ),
            max_prompt_items=config.max_items_per_prompt,
            sleep=sleep,
        )

    def enrich_all(
        self,
        groups: Mapping[str, Sequence[ContentItem]],
        on_progress: Optional[EnrichProgressCallback] = None,
    ) -> list[CategorySummary]:
        """Summarize every category.

        Args:
            groups: Category label to sorted items, in processing order
            on_progress: Called as ``on_progress(completed, total, category)``
                right after each category is finished

        Returns:
            One CategorySummary per category, in the order of ``groups``
        """
        categories = list(groups)
        total = len(categories)
        summaries: list[CategorySummary] = []

        for index, category in enumerate(categories, start=1):
            summaries.append(self.enrich_category(category, groups[category]))

            if on_progress is not None:
                on_progress(index, total, category)

        degraded = sum(1 for summary in summaries if summary.degraded)
        logger.info(f"Summarized {total} categories ({degraded} with placeholder summaries)")

        return summaries

    def enrich_category(self, category: str, items: Sequence[ContentItem]) -> CategorySummary:
        """Summarize a single category.

        Args:
            category: Category label
            items: Items of the category, newest first

        Returns:
            CategorySummary carrying the full item list
        """
        items = tuple(items)

        if not items:
            return CategorySummary(category=category, overview=EMPTY_CATEGORY_OVERVIEW)

        prompt_items = items[: self.max_prompt_items]
        outcome = run_with_retry(
            lambda: self.summarizer.summarize(category, prompt_items),
            policy=self.policy,
            sleep=self.sleep,
            label=f"category {category!r}",
        )

        if outcome.succeeded:
            payload = outcome.value
            return CategorySummary(
                category=category,
                overview=payload.overview,
                highlights=tuple(payload.highlights),
                items=items,
            )

        logger.error(str(EnrichmentExhausted(category, outcome.attempts, outcome.last_error)))
        return CategorySummary(
            category=category,
            overview=FAILED_SUMMARY_OVERVIEW,
            items=items,
            degraded=True,
        )
