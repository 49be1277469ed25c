"""
RSS/Atom/JSON feed fetcher.

A fetch never raises: timeouts, HTTP errors and unparseable documents are
logged and reported as a failed ``FetchOutcome`` with no items.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

import httpx

from smart_rss.config import FetcherConfig, get_config
from smart_rss.core.parser import (
    ParsedFeed,
    normalize_title,
    parse_feed,
    resolve_timestamp,
    strip_xml_invalid,
)
from smart_rss.exceptions import SourceError, SourceUnavailable, SourceUnparseable
from smart_rss.logger import get_logger
from smart_rss.models import ContentItem, DateWindow, SourceDescriptor

logger = get_logger(__name__)


@dataclass
class FetchOutcome:
    """Result of fetching one source: either items or a failure reason."""

    source: SourceDescriptor
    success: bool
    items: list[ContentItem] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    http_status: Optional[int] = None
    entries_seen: int = 0
    fetch_time_seconds: float = 0.0

    def __post_init__(self):
        """Validate fetch outcome."""
        if self.success and self.error:
            raise ValueError("Successful fetch cannot have an error")
        if not self.success:
            if self.items:
                raise ValueError("Failed fetch cannot carry items")
            if not self.error:
                self.error = "Unknown error"

    @classmethod
    def failed(
        cls,
        source: SourceDescriptor,
        error: str,
        error_kind: str = "unexpected",
        http_status: Optional[int] = None,
        fetch_time_seconds: float = 0.0,
    ) -> "FetchOutcome":
        return cls(
            source=source,
            success=False,
            error=error,
            error_kind=error_kind,
            http_status=http_status,
            fetch_time_seconds=fetch_time_seconds,
        )


@dataclass
class FetchStats:
    """Statistics for one batch of feed fetches."""

    total_sources: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    total_items: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)

    def add_outcome(self, outcome: FetchOutcome) -> None:
        """Add a fetch outcome to statistics.

        Args:
            outcome: FetchOutcome to add
        """
        self.total_sources += 1
        self.total_time_seconds += outcome.fetch_time_seconds

        if outcome.success:
            self.successful_fetches += 1
            self.total_items += len(outcome.items)
        else:
            self.failed_fetches += 1
            error_type = outcome.error_kind or "unknown"
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_sources == 0:
            return 0.0
        return self.successful_fetches / self.total_sources


class FeedFetcher:
    """Fetches a single feed with a per-phase HTTP timeout."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        config: Optional[FetcherConfig] = None,
    ):
        """Initialize feed fetcher.

        Args:
            timeout_seconds: HTTP timeout in seconds for each phase of a request
            user_agent: User-Agent header for HTTP requests
            config: Fetcher settings (defaults to the global config)
        """
        config = config or get_config().fetcher

        self.timeout_seconds = timeout_seconds or config.timeout_seconds
        self.user_agent = user_agent or config.user_agent
        self.follow_redirects = config.follow_redirects
        self.max_redirects = config.max_redirects

    def fetch(self, source: SourceDescriptor, window: Optional[DateWindow] = None) -> list[ContentItem]:
        """Fetch the items of a source that fall inside ``window``.

        Args:
            source: Source to fetch
            window: Publication date filter

        Returns:
            List of items, empty on any failure
        """
        return self.fetch_source(source, window).items

    def fetch_source(
        self, source: SourceDescriptor, window: Optional[DateWindow] = None
    ) -> FetchOutcome:
        """Fetch a single source.

        Args:
            source: Source to fetch
            window: Publication date filter

        Returns:
            FetchOutcome with items or error
        """
        window = window or DateWindow()
        start_time = time.monotonic()

        logger.debug(f"Fetching feed: {source.title} ({source.url})")

        try:
            response = self._fetch_http(source.url)
            parsed = parse_feed(response.content)
            if parsed is None:
                raise SourceUnparseable(source.url, "not a recognisable RSS, Atom or JSON feed")

            items = self._build_items(parsed, source, window)

        except SourceError as e:
            logger.warning(f"Skipping feed {source.title}: {e}")
            return FetchOutcome.failed(
                source,
                error=str(e),
                error_kind=e.kind,
                http_status=getattr(e, "status_code", None),
                fetch_time_seconds=time.monotonic() - start_time,
            )

        except Exception as e:
            logger.error(f"Error fetching {source.url}: {type(e).__name__}: {e}")
            return FetchOutcome.failed(
                source,
                error=f"Unexpected error: {type(e).__name__}: {e}",
                fetch_time_seconds=time.monotonic() - start_time,
            )

        fetch_time = time.monotonic() - start_time
        logger.info(
            f"Fetched {len(items)}/{len(parsed.entries)} entries from {source.title} "
            f"({parsed.variant.value}) in {fetch_time:.2f}s"
        )

        return FetchOutcome(
            source=source,
            success=True,
            items=items,
            http_status=response.status_code,
            entries_seen=len(parsed.entries),
            fetch_time_seconds=fetch_time,
        )

    def _fetch_http(self, url: str) -> httpx.Response:
        """Fetch URL with HTTP client.

        ``timeout_seconds`` bounds each phase of the request separately
        (connect, each socket read, each write and waiting for a pooled
        connection). There is no deadline on the request as a whole, so a
        server that keeps trickling bytes within the limit is not cut off.

        Args:
            url: URL to fetch

        Returns:
            httpx Response

        Raises:
            SourceUnavailable: On timeout, network error or non-2xx status
        """
        try:
            with httpx.Client(
                timeout=httpx.Timeout(self.timeout_seconds),
                follow_redirects=self.follow_redirects,
                max_redirects=self.max_redirects,
                headers={"User-Agent": self.user_agent},
            ) as client:
                response = client.get(url)
                response.raise_for_status()
                return response

        except httpx.TimeoutException as e:
            raise SourceUnavailable(url, f"timed out after {self.timeout_seconds:g}s") from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise SourceUnavailable(url, f"HTTP {status}", status_code=status) from e

        except httpx.RequestError as e:
            raise SourceUnavailable(url, f"network error: {type(e).__name__}: {e}") from e

    def _build_items(
        self, parsed: ParsedFeed, source: SourceDescriptor, window: DateWindow
    ) -> list[ContentItem]:
        """Convert parsed entries to items, dropping those outside ``window``."""
        feed_title = normalize_title(parsed.title) or source.title
        items = []

        for entry in parsed.entries:
            published_at = resolve_timestamp(entry.date_candidates)
            if not window.contains(published_at):
                continue

            items.append(
                ContentItem(
                    title=normalize_title(entry.title) or "Untitled",
                    link=strip_xml_invalid(entry.link).strip(),
                    body=strip_xml_invalid(entry.content) if isinstance(entry.content, str) else "",
                    published_at=published_at,
                    source_title=feed_title,
                    category=source.category,
                )
            )

        return items


def create_fetcher(config: Optional[FetcherConfig] = None) -> FeedFetcher:
    """Create a configured FeedFetcher instance.

    Args:
        config: Fetcher settings (defaults to the global config)

    Returns:
        Configured FeedFetcher instance
    """
    return FeedFetcher(config=config)
