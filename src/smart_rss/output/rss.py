"""
RSS rendering with feedgen.

With summaries, each category feed gets one digest entry per run. Without
summaries, each article becomes its own entry.
"""

from datetime import date, datetime, time, timezone
from html import escape
from pathlib import Path
from typing import Iterable, Mapping, Sequence, Union

from feedgen.feed import FeedGenerator

from smart_rss.core.parser import strip_xml_invalid
from smart_rss.models import CategorySummary, ContentItem
from smart_rss.output.serializers import slugify
from smart_rss.output.writer import MARKDOWN_DIR, RSS_DIR

DEFAULT_BASE_URL = "http://localhost/smart-rss"


def _new_feed(category: str, base_url: str, description: str) -> FeedGenerator:
    slug = slugify(category)
    fg = FeedGenerator()
    fg.id(f"{base_url}/{RSS_DIR}/{slug}.xml")
    fg.title(strip_xml_invalid(f"{category} - smart-rss"))
    fg.link(href=f"{base_url}/{RSS_DIR}/{slug}.xml", rel="self")
    fg.link(href=base_url, rel="alternate")
    fg.description(strip_xml_invalid(description))
    fg.language("en")
    fg.generator("smart-rss")
    fg.lastBuildDate(datetime.now(timezone.utc))
    return fg


def _rss_path(output_dir: Union[str, Path], category: str) -> Path:
    path = Path(output_dir) / RSS_DIR / f"{slugify(category)}.xml"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _article_list_html(items: Sequence[ContentItem]) -> str:
    entries = []
    for item in items:
        title = escape(item.title)
        link = f'<a href="{escape(item.link, quote=True)}">{title}</a>' if item.link else title
        source = f" ({escape(item.source_title)})" if item.source_title else ""
        entries.append(f"<li>{link}{source}</li>")
    return "<ul>" + "".join(entries) + "</ul>"


def render_digest_html(summary: CategorySummary) -> str:
    """HTML body of a digest entry."""
    parts = [f"<p>{escape(summary.overview)}</p>"]
    if summary.highlights:
        parts.append("<h3>Highlights</h3>")
        parts.append("<ul>" + "".join(f"<li>{escape(h)}</li>" for h in summary.highlights) + "</ul>")
    if summary.items:
        parts.append(f"<h3>Articles ({len(summary.items)})</h3>")
        parts.append(_article_list_html(summary.items))
    return "".join(parts)


def write_rss_output(
    summaries: Iterable[CategorySummary],
    output_dir: Union[str, Path],
    day: date,
    base_url: str = DEFAULT_BASE_URL,
) -> list[Path]:
    """Write one RSS feed per category containing the day's digest.

    Returns:
        Paths of the written files
    """
    base_url = base_url.rstrip("/")
    published = datetime.combine(day, time.min, tzinfo=timezone.utc)
    written = []

    for summary in summaries:
        slug = slugify(summary.category)
        fg = _new_feed(summary.category, base_url, f"Daily digest of {summary.category} feeds")

        fe = fg.add_entry()
        fe.id(f"{base_url}/{MARKDOWN_DIR}/{day.isoformat()}-{slug}.md")
        fe.guid(f"smart-rss-{slug}-{day.isoformat()}", permalink=False)
        fe.title(strip_xml_invalid(f"{summary.category} digest - {day.isoformat()}"))
        fe.link(href=f"{base_url}/{MARKDOWN_DIR}/{day.isoformat()}-{slug}.md")
        fe.description(strip_xml_invalid(render_digest_html(summary)))
        fe.pubDate(published)

        path = _rss_path(output_dir, summary.category)
        fg.rss_file(str(path), pretty=True)
        written.append(path)

    return written


def write_rss_without_summary(
    groups: Mapping[str, Sequence[ContentItem]],
    output_dir: Union[str, Path],
    day: date,
    base_url: str = DEFAULT_BASE_URL,
) -> list[Path]:
    """Write one RSS feed per category with an entry per article.

    Returns:
        Paths of the written files
    """
    base_url = base_url.rstrip("/")
    written = []

    for category, items in groups.items():
        fg = _new_feed(category, base_url, f"Articles collected for {category} on {day.isoformat()}")

        for item in items:
            # append keeps the newest-first order of the group
            fe = fg.add_entry(order="append")
            link = strip_xml_invalid(item.link)
            guid = link or f"smart-rss-{slugify(category)}-{slugify(item.title)}"
            fe.id(guid)
            fe.guid(guid, permalink=bool(link))
            fe.title(strip_xml_invalid(item.title) or "Untitled")
            if link:
                fe.link(href=link)
            fe.description(strip_xml_invalid(item.body) or " ")
            if item.published_at:
                fe.pubDate(item.published_at)

        path = _rss_path(output_dir, category)
        fg.rss_file(str(path), pretty=True)
        written.append(path)

    return written
