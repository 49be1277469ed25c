"""
OPML subscription list parser.

Nested outlines are flattened into sources. A source inherits the label of
its nearest enclosing group outline, or ``Uncategorized`` at the top level.
"""

from pathlib import Path
from typing import Union

from bs4 import BeautifulSoup, Tag

from smart_rss.exceptions import OPMLParseError
from smart_rss.logger import get_logger
from smart_rss.models import DEFAULT_CATEGORY, SourceDescriptor, SubscriptionList

logger = get_logger(__name__)


def _attr(outline: Tag, name: str) -> str:
    value = outline.get(name)
    return value.strip() if isinstance(value, str) else ""


def _child_outlines(node: Tag) -> list[Tag]:
    return node.find_all("outline", recursive=False)


def _extract_sources(outlines: list[Tag], category: str) -> list[SourceDescriptor]:
    sources = []

    for outline in outlines:
        url = _attr(outline, "xmlUrl")
        if url:
            sources.append(
                SourceDescriptor(
                    url=url,
                    title=_attr(outline, "title") or _attr(outline, "text") or "Untitled",
                    category=category,
                )
            )

        children = _child_outlines(outline)
        if children:
            child_category = _attr(outline, "text") or _attr(outline, "title") or category
            sources.extend(_extract_sources(children, child_category))

    return sources


def parse_opml(content: Union[str, bytes]) -> SubscriptionList:
    """Parse an OPML document.

    Args:
        content: OPML document

    Returns:
        SubscriptionList with the flattened sources

    Raises:
        OPMLParseError: If the document is not OPML
    """
    soup = BeautifulSoup(content, "xml")
    root = soup.find("opml")
    if root is None:
        raise OPMLParseError("Failed to parse OPML file: no <opml> root element")

    body = root.find("body")
    if body is None:
        raise OPMLParseError("Failed to parse OPML file: no <body> element")

    head = root.find("head", recursive=False)
    head_title = head.find("title") if head is not None else None
    title = head_title.get_text(strip=True) if head_title is not None else ""

    sources = _extract_sources(_child_outlines(body), DEFAULT_CATEGORY)
    logger.debug(f"Parsed {len(sources)} sources from OPML")

    return SubscriptionList(title=title or "RSS Feeds", sources=tuple(sources))


def parse_opml_file(path: Union[str, Path]) -> SubscriptionList:
    """Read and parse an OPML file.

    Raises:
        OPMLParseError: If the file cannot be read or is not OPML
    """
    opml_path = Path(path)
    try:
        content = opml_path.read_bytes()
    except OSError as e:
        raise OPMLParseError(f"Cannot read OPML file {opml_path}: {e}") from e

    return parse_opml(content)
