"""
Category summarization through a chat-completion API (Zhipu AI SDK).

A summarizer takes one category and its items and returns a
``SummaryPayload``. Every failure of a single call is raised as
``EnrichmentTransientFailure``; retrying is left to the caller.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from pydantic import ValidationError
from zhipuai import ZhipuAI

from smart_rss.config import SummarizerConfig, get_config
from smart_rss.core.parser import html_to_text
from smart_rss.exceptions import ConfigError, EnrichmentTransientFailure
from smart_rss.logger import get_logger
from smart_rss.models import ContentItem, SummaryPayload

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class CategorySummarizer(ABC):
    """Produces an overview and highlights for one category."""

    @abstractmethod
    def summarize(self, category: str, items: Sequence[ContentItem]) -> SummaryPayload:
        """Summarize the items of a category.

        Raises:
            EnrichmentTransientFailure: If this attempt failed
        """


def build_prompt(category: str, items: Sequence[ContentItem], description_chars: int = 500) -> str:
    """Build the completion prompt for a category.

    Args:
        category: Category label
        items: Items to include (already capped by the caller)
        description_chars: Maximum characters of each item's body

    Returns:
        Prompt string
    """
    lines = []
    for index, item in enumerate(items, start=1):
        date = item.published_at.strftime("%Y-%m-%d") if item.published_at else "Unknown date"
        description = html_to_text(item.body)[:description_chars] or "No description"
        lines.append(f'{index}. "{item.title}" ({item.source_title}, {date})\n   {description}')

    articles_text = "\n\n".join(lines)

    return f"""You are a content curator summarizing RSS feed articles for the category "{category}".

Here are the articles:

{articles_text}

Please provide:
1. A concise overview paragraph (2-3 sentences) summarizing the main themes and trends in this category
2. 3-5 key highlights, each as a single sentence mentioning specific articles with their titles

Format your response as JSON:
{{
  "overview": "Your overview paragraph here",
  "highlights": ["Highlight 1", "Highlight 2", "Highlight 3"]
}}

Only respond with valid JSON, no additional text."""


def parse_summary_response(raw: Optional[str]) -> SummaryPayload:
    """Parse and validate the model's JSON answer.

    Expected object with keys ``overview`` (string) and ``highlights``
    (list of strings). Either key may be missing.

    Raises:
        EnrichmentTransientFailure: If the answer is empty or not a valid object
    """
    if not raw or not raw.strip():
        raise EnrichmentTransientFailure("Empty AI response")

    text = _CODE_FENCE.sub("", raw.strip())
    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        raise EnrichmentTransientFailure("No JSON object found in AI response")

    try:
        obj = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise EnrichmentTransientFailure(f"Invalid JSON in AI response: {e}") from e

    try:
        return SummaryPayload.model_validate(obj)
    except ValidationError as e:
        raise EnrichmentTransientFailure(f"Unexpected AI response shape: {e}") from e


class AISummarizer(CategorySummarizer):
    """Summarizer backed by a chat-completion endpoint."""

    def __init__(self, config: SummarizerConfig, client: Optional[Any] = None) -> None:
        """Initialize the AI summarizer.

        Args:
            config: Summarizer settings (model, limits, credentials)
            client: Pre-built completion client; built from ``config`` if omitted

        Raises:
            ConfigError: If no client is given and no API key is configured
        """
        self.model = config.model
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature
        self.description_chars = config.description_chars

        if client is None:
            if not config.api_key:
                raise ConfigError(
                    "SUMMARIZER_API_KEY environment variable is required for AI summarization"
                )
            client_kwargs = {"api_key": config.api_key}
            if config.base_url:
                client_kwargs["base_url"] = config.base_url
            client = ZhipuAI(**client_kwargs)

        self._client = client
        logger.info(f"AI summarizer initialized with model: {self.model}")

    def summarize(self, category: str, items: Sequence[ContentItem]) -> SummaryPayload:
        prompt = build_prompt(category, items, self.description_chars)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as e:
            raise EnrichmentTransientFailure(f"AI request failed: {type(e).__name__}: {e}") from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise EnrichmentTransientFailure("No response content from AI")

        return parse_summary_response(content)


def create_summarizer(config: Optional[SummarizerConfig] = None) -> AISummarizer:
    """Factory function to create the AI summarizer.

    Args:
        config: Summarizer settings (defaults to the global config)

    Returns:
        Configured AISummarizer instance
    """
    return AISummarizer(config or get_config().summarizer)
