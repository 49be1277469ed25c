"""Report writers: raw JSON, Markdown and RSS."""

from smart_rss.output.markdown import write_markdown_output, write_markdown_without_summary
from smart_rss.output.rss import write_rss_output, write_rss_without_summary
from smart_rss.output.serializers import item_to_dict, slugify
from smart_rss.output.writer import ensure_output_directories, save_categorized_items

__all__ = [
    "ensure_output_directories",
    "save_categorized_items",
    "write_markdown_output",
    "write_markdown_without_summary",
    "write_rss_output",
    "write_rss_without_summary",
    "item_to_dict",
    "slugify",
]
