"""End-to-end tests of the fetch, categorize and enrich pipeline.

HTTP is patched at the httpx client; everything else runs for real.
"""

import io
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest
from loguru import logger as _logger

from smart_rss.config import FetcherConfig
from smart_rss.core import CategoryEnricher, CategorySummarizer, FeedAggregator, FeedFetcher, categorize
from smart_rss.models import (
    FAILED_SUMMARY_OVERVIEW,
    DateWindow,
    SourceDescriptor,
    SummaryPayload,
)

JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)

FAST_URL = "https://fast.example.com/feed.xml"
SMALL_URL = "https://small.example.com/feed.xml"
SLOW_URL = "https://slow.example.com/feed.xml"


def _rss(title: str, entries: list[tuple[str, datetime]]) -> bytes:
    items = "".join(
        f"<item><title>{name}</title><link>https://example.com/{name}</link>"
        f"<description>{name} body</description>"
        f"<pubDate>{format_datetime(published, usegmt=True)}</pubDate></item>"
        for name, published in entries
    )
    return (
        f'<?xml version="1.0"?><rss version="2.0"><channel><title>{title}</title>'
        f"<link>https://example.com</link><description>{title}</description>{items}</channel></rss>"
    ).encode()


# Five items at midnight on Jan 1-5 and three at noon on Jan 1-3
FAST_FEED = _rss("Fast", [(f"fast-{d}", JAN_1 + timedelta(days=d - 1)) for d in range(1, 6)])
SMALL_FEED = _rss("Small", [(f"small-{d}", JAN_1 + timedelta(days=d - 1, hours=12)) for d in range(1, 4)])


@pytest.fixture
def sources():
    """Three sources in category A; the last one times out."""
    return [
        SourceDescriptor(url=FAST_URL, title="Fast", category="A"),
        SourceDescriptor(url=SMALL_URL, title="Small", category="A"),
        SourceDescriptor(url=SLOW_URL, title="Slow", category="A"),
    ]


@pytest.fixture
def mock_http():
    """Serve the two feeds and time out on the slow source."""
    bodies = {FAST_URL: FAST_FEED, SMALL_URL: SMALL_FEED}

    def get(url):
        if url == SLOW_URL:
            raise httpx.ReadTimeout("Read timed out")
        response = MagicMock()
        response.status_code = 200
        response.content = bodies[url]
        return response

    with patch("smart_rss.core.fetcher.httpx.Client") as mock_client_class:
        mock_client = MagicMock()
        mock_client.get.side_effect = get
        mock_client.__enter__ = Mock(return_value=mock_client)
        mock_client.__exit__ = Mock(return_value=False)
        mock_client_class.return_value = mock_client
        yield mock_client_class


@pytest.fixture
def log_output():
    """Capture WARNING and above."""
    output = io.StringIO()
    handler_id = _logger.add(output, format="{level} | {message}", level="WARNING")
    yield output
    _logger.remove(handler_id)


class EchoSummarizer(CategorySummarizer):
    """Summarizer that lists the titles it was given."""

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = 0

    def summarize(self, category, items):
        self.calls += 1
        if self.fail:
            raise ConnectionError("completion service down")
        return SummaryPayload(overview=f"{len(items)} items", highlights=[item.title for item in items])


@pytest.mark.integration
class TestPipeline:
    """End-to-end pipeline tests."""

    def test_window_and_timeout(self, sources, mock_http, log_output):
        """Test the windowed items of the healthy sources, newest first."""
        aggregator = FeedAggregator(fetcher=FeedFetcher(config=FetcherConfig()))
        progress = []
        window = DateWindow(since=datetime(2024, 1, 3, tzinfo=timezone.utc))

        items = aggregator.fetch_all(sources, window, on_progress=lambda d, t: progress.append((d, t)))
        groups = categorize(items)

        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert list(groups) == ["A"]
        assert [item.title for item in groups["A"]] == ["fast-5", "fast-4", "small-3", "fast-3"]
        assert {item.source_title for item in groups["A"]} == {"Fast", "Small"}

        assert aggregator.stats.successful_fetches == 2
        assert aggregator.stats.failed_fetches == 1
        assert SLOW_URL in log_output.getvalue()
        assert "timed out" in log_output.getvalue()

    def test_enrichment_over_fetched_groups(self, sources, mock_http):
        """Test the enriched summary carries the full sorted group."""
        items = FeedAggregator(fetcher=FeedFetcher(config=FetcherConfig())).fetch_all(sources)
        groups = categorize(items)
        summarizer = EchoSummarizer()

        summaries = CategoryEnricher(summarizer, sleep=lambda _: None).enrich_all(groups)

        assert len(summaries) == 1
        assert summaries[0].overview == "8 items"
        assert summaries[0].highlights[0] == "fast-5"
        assert [item.title for item in summaries[0].items] == [item.title for item in groups["A"]]

    def test_enrichment_exhaustion_is_not_fatal(self, sources, mock_http, log_output):
        """Test a dead completion service degrades to the placeholder."""
        groups = categorize(FeedAggregator(fetcher=FeedFetcher(config=FetcherConfig())).fetch_all(sources))
        summarizer = EchoSummarizer(fail=True)
        delays = []

        summaries = CategoryEnricher(summarizer, sleep=delays.append).enrich_all(groups)

        assert summarizer.calls == 3
        assert delays == [1.0, 2.0]
        assert summaries[0].overview == FAILED_SUMMARY_OVERVIEW
        assert len(summaries[0].items) == 8
        assert "failed after 3 attempts" in log_output.getvalue()
