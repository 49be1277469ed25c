"""
Feed document parser.

Turns raw feed bytes into a ``ParsedFeed``. Every supported format has its
own adapter that maps the format's entry shape onto ``RawEntry``, so the
fetcher never has to probe optional fields itself.
"""

import json
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from html import unescape
from typing import Any, Iterable, Optional

import feedparser
from bs4 import BeautifulSoup

from smart_rss.logger import get_logger
from smart_rss.models.feed import ensure_utc

logger = get_logger(__name__)

# Complement of the XML 1.0 Char production
_XML_INVALID_CHARS = re.compile(r"[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010FFFF]")


class FeedVariant(str, Enum):
    """Feed formats understood by the parser."""

    RSS = "rss"
    ATOM = "atom"
    JSON_FEED = "json"


@dataclass
class RawEntry:
    """Format-independent view of one feed entry."""

    title: Optional[str] = None
    link: Optional[str] = None
    content: Optional[str] = None
    # Candidate publication dates in order of preference
    date_candidates: tuple = ()


@dataclass
class ParsedFeed:
    """Result of parsing a feed document."""

    variant: FeedVariant
    title: Optional[str] = None
    entries: list[RawEntry] = field(default_factory=list)


def parse_feed(raw: bytes) -> Optional[ParsedFeed]:
    """Parse a feed document.

    Args:
        raw: Response body as bytes

    Returns:
        ParsedFeed, or None if the document is not a recognisable feed
    """
    if not raw or not raw.strip():
        return None

    if _looks_like_json(raw):
        return _parse_json_feed(raw)

    parsed = feedparser.parse(raw)
    version = parsed.get("version") or ""
    entries = parsed.get("entries") or []

    if not version:
        if parsed.get("bozo") and not entries:
            logger.debug(f"Unparseable feed document: {parsed.get('bozo_exception')}")
            return None
        if not entries:
            return None

    if parsed.get("bozo"):
        # feedparser still recovers entries from many slightly broken feeds
        logger.debug(f"Feed parsed with errors: {parsed.get('bozo_exception')}")

    variant = FeedVariant.ATOM if version.startswith("atom") else FeedVariant.RSS
    adapter = _adapt_atom_entry if variant is FeedVariant.ATOM else _adapt_rss_entry

    return ParsedFeed(
        variant=variant,
        title=parsed.feed.get("title"),
        entries=[adapter(entry) for entry in entries],
    )


def _looks_like_json(raw: bytes) -> bool:
    return raw.lstrip()[:1] in (b"{", b"[")


def _parse_json_feed(raw: bytes) -> Optional[ParsedFeed]:
    """Parse a JSON Feed (https://jsonfeed.org) document."""
    try:
        document = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug(f"Invalid JSON feed document: {e}")
        return None

    if not isinstance(document, dict):
        return None
    if "jsonfeed.org" not in str(document.get("version", "")):
        return None

    items = document.get("items")
    if not isinstance(items, list):
        items = []

    return ParsedFeed(
        variant=FeedVariant.JSON_FEED,
        title=document.get("title"),
        entries=[_adapt_json_feed_item(item) for item in items if isinstance(item, dict)],
    )


def _first_content_value(entry: Any) -> Optional[str]:
    contents = entry.get("content")
    if contents and isinstance(contents, list):
        value = contents[0].get("value")
        if isinstance(value, str):
            return value
    return None


def _adapt_rss_entry(entry: Any) -> RawEntry:
    """Map a feedparser RSS entry onto RawEntry."""
    return RawEntry(
        title=entry.get("title"),
        link=entry.get("link"),
        content=entry.get("summary") or entry.get("description") or _first_content_value(entry),
        date_candidates=(
            entry.get("published_parsed"),
            entry.get("published"),
            entry.get("updated_parsed"),
            entry.get("updated"),
            entry.get("created_parsed"),
        ),
    )


def _adapt_atom_entry(entry: Any) -> RawEntry:
    """Map a feedparser Atom entry onto RawEntry."""
    return RawEntry(
        title=entry.get("title"),
        link=entry.get("link"),
        content=entry.get("summary") or _first_content_value(entry),
        date_candidates=(
            entry.get("published_parsed"),
            entry.get("published"),
            entry.get("updated_parsed"),
            entry.get("updated"),
        ),
    )


def _adapt_json_feed_item(item: dict) -> RawEntry:
    """Map a JSON Feed item onto RawEntry."""
    return RawEntry(
        title=item.get("title"),
        link=item.get("url") or item.get("external_url"),
        content=item.get("summary") or item.get("content_html") or item.get("content_text"),
        date_candidates=(item.get("date_published"), item.get("date_modified")),
    )


def resolve_timestamp(candidates: Iterable[Any]) -> Optional[datetime]:
    """Return the first candidate that parses as a date.

    Args:
        candidates: Date values in order of preference. Each may be a
            ``time.struct_time`` (feedparser), a datetime or a string.

    Returns:
        Aware UTC datetime, or None if no candidate could be parsed
    """
    for value in candidates:
        if not value:
            continue
        parsed = _coerce_datetime(value)
        if parsed is not None:
            return parsed
    return None


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, (time.struct_time, tuple)):
        # feedparser normalises *_parsed values to UTC
        try:
            return datetime(*value[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return None

    if isinstance(value, str):
        return parse_date_string(value)

    return None


def parse_date_string(date_str: str) -> Optional[datetime]:
    """Parse an RFC 2822 or ISO 8601 date string.

    Args:
        date_str: Date string

    Returns:
        Aware UTC datetime, or None if the string is not a date
    """
    date_str = date_str.strip()
    if not date_str:
        return None

    try:
        return ensure_utc(parsedate_to_datetime(date_str))
    except (TypeError, ValueError, IndexError, OverflowError):
        pass

    iso = date_str[:-1] + "+00:00" if date_str.endswith(("Z", "z")) else date_str
    try:
        return ensure_utc(datetime.fromisoformat(iso))
    except ValueError:
        pass

    logger.debug(f"Failed to parse date: {date_str}")
    return None


def strip_xml_invalid(text: Optional[str]) -> str:
    """Remove characters that XML 1.0 documents cannot contain.

    JSON feeds and loosely parsed XML can carry control characters such as
    U+0001, which lxml refuses to serialize.
    """
    if not text:
        return ""
    return _XML_INVALID_CHARS.sub("", text)


def normalize_title(title: Optional[str]) -> Optional[str]:
    """Unescape HTML entities and collapse whitespace in a title."""
    if not title:
        return None

    title = strip_xml_invalid(unescape(str(title)))
    title = re.sub(r"\s+", " ", title.strip())

    return title if title else None


def html_to_text(html: Optional[str]) -> str:
    """Strip HTML tags from an entry body.

    Args:
        html: HTML or plain text

    Returns:
        Plain text with normalised whitespace
    """
    if not html:
        return ""

    if "<" not in html:
        return re.sub(r"\s+", " ", unescape(html)).strip()

    soup = BeautifulSoup(html, "html.parser")

    for element in soup(["script", "style", "noscript"]):
        element.decompose()

    text = soup.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()
