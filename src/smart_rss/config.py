"""
Configuration management for Smart RSS.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smart_rss.exceptions import ConfigError

OUTPUT_FORMATS = ("markdown", "rss", "all")


class FetcherConfig(BaseSettings):
    """RSS/Atom fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    # HTTP settings
    timeout_seconds: float = Field(
        default=30, gt=0, le=300, description="HTTP timeout applied to connect, each read, each write and pool waits"
    )
    user_agent: str = Field(default="smart-rss/1.0", description="User-Agent header")

    # Follow redirects
    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)


class SummarizerConfig(BaseSettings):
    """Category summarization configuration.

    The API key is only required when summaries are requested; the CLI
    checks for it before the enrichment stage starts.
    """

    model_config = SettingsConfigDict(env_prefix="SUMMARIZER_")

    api_key: Optional[str] = Field(default=None, description="API key for the completion service")
    model: str = Field(default="glm-4-flash", description="Model used for category digests")
    base_url: Optional[str] = Field(default=None, description="Override the completion API base URL")
    max_tokens: int = Field(default=1000, ge=50, le=8000, description="Max tokens per digest")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    # Retry settings
    max_attempts: int = Field(default=3, ge=1, le=10, description="Attempts per category")
    retry_delay_seconds: float = Field(default=1.0, ge=0.0, description="Linear backoff unit")

    # Prompt size limits
    max_items_per_prompt: int = Field(default=50, ge=1, le=500)
    description_chars: int = Field(default=500, ge=0, le=5000)


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_path: str = Field(default="logs/smart_rss.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size")
    retention: str = Field(default="14 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class OutputConfig(BaseSettings):
    """Report output configuration."""

    model_config = SettingsConfigDict(env_prefix="OUTPUT_")

    directory: str = Field(default="./output", description="Output directory")
    format: str = Field(default="all", description="Output format: markdown, rss, all")
    base_url: str = Field(
        default="http://localhost/smart-rss",
        description="Public URL the output directory is served from (used in RSS links)",
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate output format."""
        v = v.lower().strip()
        if v not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output format: {v!r}. Must be one of {list(OUTPUT_FORMATS)}")
        return v


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SMART_RSS_",
        case_sensitive=False,
    )

    # Sub-configurations
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


_SECTIONS = {
    "fetcher": FetcherConfig,
    "summarizer": SummarizerConfig,
    "logging": LoggingConfig,
    "output": OutputConfig,
}

# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Values from the file take precedence over environment variables for the
    keys they set; every other key still falls back to the environment.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file cannot be read or is not a YAML mapping
            of section names to mappings.
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    try:
        with yaml_file.open("r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read configuration file {yaml_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {yaml_path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError(f"{yaml_path}: expected a mapping of sections, got {type(config_dict).__name__}")

    unknown = sorted(str(key) for key in config_dict if key not in _SECTIONS)
    if unknown:
        raise ConfigError(f"{yaml_path}: unknown sections {unknown}; expected {list(_SECTIONS)}")

    # Nested sections are built individually so their env vars still apply
    sections = {}
    for key, config_class in _SECTIONS.items():
        values = config_dict.get(key) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"{yaml_path}: section '{key}' must be a mapping, got {type(values).__name__}")
        sections[key] = config_class(**values)

    return Config(**sections)


def reload_config(yaml_path: Optional[str] = None) -> Config:
    """Reload configuration from environment and an optional YAML file."""
    global _config
    _config = None

    if yaml_path:
        _config = load_config_from_yaml(yaml_path)
    else:
        _config = Config()

    return _config
