"""
Exception hierarchy for Smart RSS.

Fetch and enrichment errors never escape the pipeline stages that raise
them; they are caught at the stage boundary and turned into an empty
result or a placeholder summary. Only the configuration and OPML errors
reach the command line.
"""

from typing import Optional


class SmartRSSError(Exception):
    """Base class for all Smart RSS errors."""


class ConfigError(SmartRSSError):
    """Raised when configuration cannot be loaded or lacks a required key."""


class OPMLParseError(SmartRSSError):
    """Raised when the subscription list cannot be read or parsed."""


class SourceError(SmartRSSError):
    """Base class for per-source fetch failures."""

    kind = "source"

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class SourceUnavailable(SourceError):
    """Timeout, network failure or non-2xx response for a source."""

    kind = "unavailable"

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(url, reason)


class SourceUnparseable(SourceError):
    """The source responded but the document is not a recognisable feed."""

    kind = "unparseable"


class EnrichmentTransientFailure(SmartRSSError):
    """A single summarization attempt failed."""


class EnrichmentExhausted(SmartRSSError):
    """Every summarization attempt for a category failed."""

    def __init__(self, category: str, attempts: int, last_error: Optional[BaseException] = None):
        self.category = category
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Summarization of {category!r} failed after {attempts} attempts: {last_error}"
        )
