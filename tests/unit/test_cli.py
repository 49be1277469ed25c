"""Unit tests for the command line interface."""

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from smart_rss import config as config_module
from smart_rss.cli import build_parser, main, parse_date_arg
from smart_rss.config import Config, LoggingConfig, OutputConfig, SummarizerConfig

OPML = """<?xml version="1.0"?>
<opml version="2.0">
  <head><title>Test</title></head>
  <body>
    <outline text="Tech">
      <outline text="Example" xmlUrl="https://example.com/feed.xml"/>
      <outline text="Broken" xmlUrl="https://broken.example.com/feed.xml"/>
    </outline>
  </body>
</opml>
"""

FEED = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>Example Feed</title><link>https://example.com</link>
<description>Example</description>
<item><title>Recent</title><link>https://example.com/recent</link><description>New</description>
<pubDate>Sat, 13 Jan 2024 10:00:00 GMT</pubDate></item>
<item><title>Old</title><link>https://example.com/old</link><description>Old</description>
<pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate></item>
</channel></rss>
"""


@pytest.fixture
def opml_file(tmp_path):
    """Write a small subscription list."""
    path = tmp_path / "feeds.opml"
    path.write_text(OPML, encoding="utf-8")
    return path


@pytest.fixture
def app_config(monkeypatch, tmp_path):
    """Install a global config with quiet logging and no retry delay."""
    config = Config(
        summarizer=SummarizerConfig(api_key="test-key", retry_delay_seconds=0),
        logging=LoggingConfig(console_enabled=False, file_enabled=False),
        output=OutputConfig(directory=str(tmp_path / "default-output")),
    )
    monkeypatch.setattr(config_module, "_config", config)
    return config


@pytest.fixture
def mock_http():
    """Serve FEED for the example source and a 404 for the broken one."""
    with patch("smart_rss.core.fetcher.httpx.Client") as mock_client_class:
        def get(url):
            response = MagicMock()
            response.content = FEED
            response.status_code = 200
            if "broken" in url:
                response.status_code = 404
                response.raise_for_status.side_effect = httpx.HTTPStatusError(
                    "Not found", request=Mock(), response=Mock(status_code=404)
                )
            return response

        mock_client = MagicMock()
        mock_client.get.side_effect = get
        mock_client.__enter__ = Mock(return_value=mock_client)
        mock_client.__exit__ = Mock(return_value=False)
        mock_client_class.return_value = mock_client
        yield mock_client_class


class TestParseDateArg:
    """Tests for parse_date_arg."""

    def test_date_only_is_midnight_utc(self):
        """Test a bare date means midnight UTC."""
        assert parse_date_arg("2024-01-11") == datetime(2024, 1, 11, tzinfo=timezone.utc)

    def test_datetime_with_offset(self):
        """Test offsets are converted to UTC."""
        assert parse_date_arg("2024-01-11T12:00:00+02:00") == datetime(2024, 1, 11, 10, 0, tzinfo=timezone.utc)
        assert parse_date_arg("2024-01-11T12:00:00Z") == datetime(2024, 1, 11, 12, 0, tzinfo=timezone.utc)

    def test_invalid_date(self):
        """Test unparseable dates are argument errors."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_date_arg("last tuesday")


class TestArgumentParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test defaults for optional flags."""
        args = build_parser().parse_args(["-i", "feeds.opml"])

        assert args.input == "feeds.opml"
        assert args.output is None
        assert args.since is None
        assert args.summary is True
        assert args.format is None

    def test_all_flags(self):
        """Test every short flag."""
        args = build_parser().parse_args(
            ["-i", "f.opml", "-o", "out", "-s", "2024-01-01", "-u", "2024-01-31", "--no-summary", "-f", "rss"]
        )

        assert args.output == "out"
        assert args.since == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert args.until == datetime(2024, 1, 31, tzinfo=timezone.utc)
        assert args.summary is False
        assert args.format == "rss"

    def test_missing_input(self, capsys):
        """Test the input flag is required."""
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
        assert "usage:" in capsys.readouterr().err

    def test_invalid_since(self, capsys):
        """Test an unparseable date exits with a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-i", "feeds.opml", "--since", "not-a-date"])

        assert exc_info.value.code == 2
        assert "Invalid date format" in capsys.readouterr().err

    def test_reversed_window(self, capsys):
        """Test since later than until is rejected."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-i", "feeds.opml", "-s", "2024-02-01", "-u", "2024-01-01"])

        assert exc_info.value.code == 2

    def test_invalid_format(self):
        """Test unknown output formats are rejected."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-i", "feeds.opml", "-f", "pdf"])


class TestMain:
    """Tests for the main entry point."""

    def test_missing_api_key(self, app_config, opml_file, capsys):
        """Test summaries without an API key fail fast."""
        app_config.summarizer.api_key = None

        assert main(["-i", str(opml_file)]) == 1
        assert "SUMMARIZER_API_KEY" in capsys.readouterr().err

    def test_unreadable_opml(self, app_config, tmp_path, capsys):
        """Test a missing OPML file exits with status 1."""
        assert main(["-i", str(tmp_path / "missing.opml"), "--no-summary"]) == 1
        assert "Cannot read OPML file" in capsys.readouterr().err

    def test_malformed_config_file(self, app_config, opml_file, tmp_path, capsys):
        """Test a config file with broken YAML exits with status 1."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("fetcher: [unclosed\n", encoding="utf-8")

        assert main(["-i", str(opml_file), "-c", str(config_file), "--no-summary", "-o", str(tmp_path / "out")]) == 1
        assert "invalid configuration" in capsys.readouterr().err
        assert not (tmp_path / "out").exists()

    def test_config_file_with_list_section(self, app_config, opml_file, tmp_path, capsys):
        """Test a config section that is not a mapping exits with status 1."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("output:\n  - rss\n", encoding="utf-8")

        assert main(["-i", str(opml_file), "-c", str(config_file), "--no-summary"]) == 1
        assert "section 'output' must be a mapping" in capsys.readouterr().err

    def test_run_without_summary(self, app_config, opml_file, mock_http, tmp_path, capsys):
        """Test a full run that skips summarization."""
        out = tmp_path / "out"

        code = main(["-i", str(opml_file), "-o", str(out), "--no-summary", "--since", "2024-01-10"])

        assert code == 0
        raw = json.loads((out / "raw" / "tech.json").read_text(encoding="utf-8"))
        assert [item["title"] for item in raw] == ["Recent"]
        assert raw[0]["feedTitle"] == "Example Feed"
        assert len(list((out / "markdown").glob("*-tech.md"))) == 1
        assert (out / "rss" / "tech.xml").exists()

        stdout = capsys.readouterr().out
        assert "Progress: 2/2 feeds" in stdout
        assert "Feeds processed: 2" in stdout
        assert "Feeds failed: 1" in stdout
        assert "Items fetched: 1" in stdout
        assert "Files generated: 2" in stdout

    def test_run_markdown_only(self, app_config, opml_file, mock_http, tmp_path):
        """Test the format flag limits the rendered outputs."""
        out = tmp_path / "out"

        assert main(["-i", str(opml_file), "-o", str(out), "--no-summary", "-f", "markdown"]) == 0

        assert list((out / "rss").iterdir()) == []
        assert len(list((out / "markdown").iterdir())) == 1

    @patch("smart_rss.core.summarizer.ZhipuAI")
    def test_run_with_summary(self, mock_zhipu, app_config, opml_file, mock_http, tmp_path, capsys):
        """Test a full run with AI summaries."""
        message = MagicMock()
        message.content = '{"overview": "Quiet week in tech.", "highlights": ["Recent shipped"]}'
        mock_zhipu.return_value.chat.completions.create.return_value = MagicMock(
            choices=[MagicMock(message=message)]
        )
        out = tmp_path / "out"

        assert main(["-i", str(opml_file), "-o", str(out)]) == 0

        mock_zhipu.assert_called_once_with(api_key="test-key")
        markdown = next((out / "markdown").glob("*-tech.md")).read_text(encoding="utf-8")
        assert "Quiet week in tech." in markdown
        assert "- Recent shipped" in markdown
        assert "## Articles (2)" in markdown
        assert "Quiet week in tech." in (out / "rss" / "tech.xml").read_text(encoding="utf-8")
        assert "[1/1] Summarized: Tech" in capsys.readouterr().out

    @patch("smart_rss.core.summarizer.ZhipuAI")
    def test_summary_failure_does_not_fail_run(self, mock_zhipu, app_config, opml_file, mock_http, tmp_path):
        """Test exhausted summarization still writes placeholder digests."""
        mock_zhipu.return_value.chat.completions.create.side_effect = ConnectionError("down")
        out = tmp_path / "out"

        assert main(["-i", str(opml_file), "-o", str(out), "-f", "markdown"]) == 0

        assert mock_zhipu.return_value.chat.completions.create.call_count == 3
        markdown = next((out / "markdown").glob("*-tech.md")).read_text(encoding="utf-8")
        assert "Summary could not be generated." in markdown

    def test_default_output_directory(self, app_config, opml_file, mock_http):
        """Test the configured directory is used without -o."""
        assert main(["-i", str(opml_file), "--no-summary", "-f", "rss"]) == 0

        assert (Path(app_config.output.directory) / "rss" / "tech.xml").exists()
