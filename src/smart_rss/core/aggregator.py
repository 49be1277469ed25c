"""
Concurrent aggregation of many feeds.

Every source is fetched in its own worker thread. Each worker produces
exactly one ``FetchOutcome``; outcomes are collected as they complete and
the successful item lists are merged once all workers have finished.
"""

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Optional

from smart_rss.core.fetcher import FeedFetcher, FetchOutcome, FetchStats, create_fetcher
from smart_rss.logger import get_logger
from smart_rss.models import ContentItem, DateWindow, SourceDescriptor

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class FeedAggregator:
    """Fans out one fetch per source and merges the results."""

    def __init__(
        self,
        fetcher: Optional[FeedFetcher] = None,
        max_workers: Optional[int] = None,
    ):
        """Initialize the aggregator.

        Args:
            fetcher: Fetcher used for every source
            max_workers: Worker thread cap; None runs every source at once
        """
        self.fetcher = fetcher or create_fetcher()
        self.max_workers = max_workers
        self.stats = FetchStats()

    def fetch_all(
        self,
        sources: Iterable[SourceDescriptor],
        window: Optional[DateWindow] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[ContentItem]:
        """Fetch every source and merge the items of the successful ones.

        Args:
            sources: Sources to fetch
            window: Publication date filter applied to every source
            on_progress: Called as ``on_progress(completed, total)`` once per
                finished source, in completion order

        Returns:
            Items of all successful sources, in fetch completion order
        """
        items: list[ContentItem] = []

        for outcome in self.fetch_outcomes(sources, window, on_progress):
            if outcome.success:
                items.extend(outcome.items)

        return items

    def fetch_outcomes(
        self,
        sources: Iterable[SourceDescriptor],
        window: Optional[DateWindow] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[FetchOutcome]:
        """Fetch every source concurrently and return one outcome per source.

        Args:
            sources: Sources to fetch
            window: Publication date filter applied to every source
            on_progress: Progress callback, see ``fetch_all``

        Returns:
            List of FetchOutcome instances in completion order
        """
        sources = list(sources)
        window = window or DateWindow()
        total = len(sources)
        self.stats = FetchStats()

        if not sources:
            return []

        logger.info(f"Fetching {total} feeds")

        outcomes: list[FetchOutcome] = []
        workers = self.max_workers or total

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed-fetch") as executor:
            futures: dict[Future, SourceDescriptor] = {
                executor.submit(self.fetcher.fetch_source, source, window): source
                for source in sources
            }

            for completed, future in enumerate(as_completed(futures), start=1):
                outcome = self._collect(future, futures[future])
                outcomes.append(outcome)
                self.stats.add_outcome(outcome)

                if on_progress is not None:
                    on_progress(completed, total)

        logger.info(
            f"Fetched {self.stats.total_items} items from {total} feeds: "
            f"{self.stats.successful_fetches} successful, {self.stats.failed_fetches} failed"
        )
        if self.stats.errors_by_type:
            logger.info(f"Fetch failures by type: {self.stats.errors_by_type}")

        return outcomes

    def _collect(self, future: Future, source: SourceDescriptor) -> FetchOutcome:
        """Turn a finished future into an outcome, even if the worker raised."""
        try:
            return future.result()
        except Exception as e:
            logger.exception(f"Unexpected error fetching {source.url}: {e}")
            return FetchOutcome.failed(
                source, error=f"Unexpected error: {type(e).__name__}: {e}"
            )


def create_aggregator(
    fetcher: Optional[FeedFetcher] = None,
    max_workers: Optional[int] = None,
) -> FeedAggregator:
    """Create a FeedAggregator.

    Args:
        fetcher: Fetcher to use (a default one is created if omitted)
        max_workers: Optional worker thread cap

    Returns:
        Configured FeedAggregator instance
    """
    return FeedAggregator(fetcher=fetcher, max_workers=max_workers)
