"""
Output directory layout and raw JSON dumps of categorized items.
"""

import json
from pathlib import Path
from typing import Mapping, Sequence, Union

from smart_rss.logger import get_logger
from smart_rss.models import ContentItem
from smart_rss.output.serializers import item_to_dict, slugify

logger = get_logger(__name__)

RAW_DIR = "raw"
MARKDOWN_DIR = "markdown"
RSS_DIR = "rss"


def ensure_output_directories(output_dir: Union[str, Path]) -> Path:
    """Create the output directory and its sub-directories.

    Args:
        output_dir: Root output directory

    Returns:
        Root output directory as a Path
    """
    root = Path(output_dir)
    for name in (RAW_DIR, MARKDOWN_DIR, RSS_DIR):
        (root / name).mkdir(parents=True, exist_ok=True)
    return root


def write_text(path: Path, content: str) -> Path:
    """Write a UTF-8 text file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def save_categorized_items(
    groups: Mapping[str, Sequence[ContentItem]],
    output_dir: Union[str, Path],
) -> list[Path]:
    """Write one JSON document per category under ``raw/``.

    Args:
        groups: Category label to items
        output_dir: Root output directory

    Returns:
        Paths of the written files
    """
    raw_dir = Path(output_dir) / RAW_DIR
    written = []

    for category, items in groups.items():
        path = raw_dir / f"{slugify(category)}.json"
        payload = [item_to_dict(item) for item in items]
        write_text(path, json.dumps(payload, indent=2, ensure_ascii=False))
        written.append(path)

    logger.info(f"Saved raw items for {len(written)} categories to {raw_dir}")
    return written
