"""
Command line entry point.

    smart-rss -i feeds.opml [-o DIR] [-s DATE] [-u DATE] [--no-summary] [-f FORMAT]
"""

import argparse
import sys
from datetime import date, datetime
from typing import Optional, Sequence

from pydantic import ValidationError

from smart_rss import __version__
from smart_rss.config import OUTPUT_FORMATS, Config, get_config, reload_config
from smart_rss.core import (
    AISummarizer,
    CategoryEnricher,
    CategorySummarizer,
    FeedAggregator,
    FeedFetcher,
    categorize,
    parse_opml_file,
)
from smart_rss.exceptions import ConfigError, OPMLParseError
from smart_rss.logger import setup_logger
from smart_rss.models import DateWindow
from smart_rss.models.feed import ensure_utc
from smart_rss.output import (
    ensure_output_directories,
    save_categorized_items,
    write_markdown_output,
    write_markdown_without_summary,
    write_rss_output,
    write_rss_without_summary,
)

EXAMPLES = """
Examples:
  smart-rss -i feeds.opml
  smart-rss -i feeds.opml --since 2024-01-11
  smart-rss -i feeds.opml -o ./my-output --no-summary
"""


def parse_date_arg(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime given on the command line.

    Date-only values mean midnight; values without an offset are UTC.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date format: {value!r} (expected ISO 8601)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-rss",
        description="Generate AI-powered summaries of your RSS feeds",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-i", "--input", required=True, help="OPML file path")
    parser.add_argument("-o", "--output", help="Output directory (default: ./output)")
    parser.add_argument("-s", "--since", type=parse_date_arg, help="Keep items published on or after this date (ISO 8601)")
    parser.add_argument("-u", "--until", type=parse_date_arg, help="Keep items published on or before this date (ISO 8601)")
    parser.add_argument(
        "--summary",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Generate AI summaries (use --no-summary to skip)",
    )
    parser.add_argument("-f", "--format", choices=OUTPUT_FORMATS, help="Output format (default: all)")
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run(
    args: argparse.Namespace,
    config: Config,
    window: DateWindow,
    summarizer: Optional[CategorySummarizer] = None,
) -> int:
    """Run the digest pipeline for parsed arguments.

    Returns:
        Process exit status
    """
    output_dir = args.output or config.output.directory
    output_format = args.format or config.output.format
    today = date.today()

    print("smart-rss - RSS Feed Summarizer\n")

    print(f"Parsing OPML file: {args.input}")
    subscriptions = parse_opml_file(args.input)
    print(f"   Found {len(subscriptions.sources)} feeds\n")

    print("Fetching RSS feeds...")
    aggregator = FeedAggregator(fetcher=FeedFetcher(config=config.fetcher))
    items = aggregator.fetch_all(
        subscriptions.sources,
        window,
        on_progress=lambda completed, total: print(
            f"\r   Progress: {completed}/{total} feeds", end="", flush=True
        ),
    )
    print(f"\n   Fetched {len(items)} items\n")

    print("Categorizing items...")
    groups = categorize(items)
    print(f"   Found {len(groups)} categories: {', '.join(groups)}\n")

    ensure_output_directories(output_dir)

    print("Saving raw categorized data...")
    save_categorized_items(groups, output_dir)

    written = []
    want_markdown = output_format in ("markdown", "all")
    want_rss = output_format in ("rss", "all")

    if summarizer is not None:
        print("\nGenerating AI summaries...")
        enricher = CategoryEnricher.from_config(summarizer, config.summarizer)
        summaries = enricher.enrich_all(
            groups,
            on_progress=lambda completed, total, category: print(
                f"   [{completed}/{total}] Summarized: {category}"
            ),
        )

        if want_markdown:
            print("\nGenerating Markdown files...")
            written += write_markdown_output(summaries, output_dir, today)
        if want_rss:
            print("Generating RSS feeds...")
            written += write_rss_output(summaries, output_dir, today, base_url=config.output.base_url)
    else:
        print("\nSkipping AI summarization (--no-summary)")

        if want_markdown:
            print("\nGenerating Markdown files...")
            written += write_markdown_without_summary(groups, output_dir, today)
        if want_rss:
            print("Generating RSS feeds...")
            written += write_rss_without_summary(groups, output_dir, today, base_url=config.output.base_url)

    print("\nDone!\n")
    print("Output files:")
    for path in written:
        print(f"   {path}")

    print("\nStatistics:")
    print(f"   Feeds processed: {len(subscriptions.sources)}")
    print(f"   Feeds failed: {aggregator.stats.failed_fetches}")
    print(f"   Items fetched: {len(items)}")
    print(f"   Categories: {len(groups)}")
    print(f"   Files generated: {len(written)}")

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console script entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        window = DateWindow(since=args.since, until=args.until)
    except ValidationError:
        parser.error("--since must not be later than --until")

    try:
        config = reload_config(args.config) if args.config else get_config()
    except (ConfigError, FileNotFoundError, ValidationError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logger(level="DEBUG" if args.verbose else None, log_config=config.logging)

    summarizer = None
    if args.summary:
        try:
            summarizer = AISummarizer(config.summarizer)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    try:
        return run(args, config, window, summarizer)
    except OPMLParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
