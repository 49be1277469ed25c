"""
Markdown digest rendering.
"""

from datetime import date
from pathlib import Path
from typing import Iterable, Mapping, Sequence, Union

from smart_rss.models import CategorySummary, ContentItem
from smart_rss.output.serializers import slugify
from smart_rss.output.writer import MARKDOWN_DIR, write_text


def _escape(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def _article_line(item: ContentItem) -> str:
    title = _escape(item.title)
    line = f"- [{title}]({item.link})" if item.link else f"- {title}"

    details = [f"*{item.source_title}*"] if item.source_title else []
    if item.published_at:
        details.append(item.published_at.strftime("%Y-%m-%d"))
    if details:
        line += " - " + ", ".join(details)
    return line


def markdown_path(output_dir: Union[str, Path], category: str, day: date) -> Path:
    return Path(output_dir) / MARKDOWN_DIR / f"{day.isoformat()}-{slugify(category)}.md"


def render_summary(summary: CategorySummary, day: date) -> str:
    """Render a category digest as Markdown."""
    lines = [f"# {summary.category} - {day.isoformat()}", "", "## Overview", "", summary.overview, ""]

    if summary.highlights:
        lines += ["## Highlights", ""]
        lines += [f"- {highlight}" for highlight in summary.highlights]
        lines.append("")

    lines += [f"## Articles ({len(summary.items)})", ""]
    lines += [_article_line(item) for item in summary.items]

    return "\n".join(lines).rstrip() + "\n"


def render_items(category: str, items: Sequence[ContentItem], day: date) -> str:
    """Render a plain article list for a category."""
    lines = [f"# {category} - {day.isoformat()}", "", f"## Articles ({len(items)})", ""]
    lines += [_article_line(item) for item in items]
    return "\n".join(lines).rstrip() + "\n"


def write_markdown_output(
    summaries: Iterable[CategorySummary],
    output_dir: Union[str, Path],
    day: date,
) -> list[Path]:
    """Write one Markdown digest per category summary.

    Returns:
        Paths of the written files
    """
    return [
        write_text(markdown_path(output_dir, summary.category, day), render_summary(summary, day))
        for summary in summaries
    ]


def write_markdown_without_summary(
    groups: Mapping[str, Sequence[ContentItem]],
    output_dir: Union[str, Path],
    day: date,
) -> list[Path]:
    """Write one Markdown article list per category.

    Returns:
        Paths of the written files
    """
    return [
        write_text(markdown_path(output_dir, category, day), render_items(category, items, day))
        for category, items in groups.items()
    ]
