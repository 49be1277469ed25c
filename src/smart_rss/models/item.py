"""
Content item and category summary models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMPTY_CATEGORY_OVERVIEW = "No articles in this category."
FAILED_SUMMARY_OVERVIEW = "Summary could not be generated."


class ContentItem(BaseModel):
    """A single feed entry, normalised across feed formats."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="Untitled")
    link: str = Field(default="")
    body: str = Field(default="", description="Entry description or content")
    published_at: Optional[datetime] = Field(default=None, description="Publication time (UTC)")
    source_title: str = Field(default="", description="Title of the feed the item came from")
    category: str = Field(default="", description="Category label inherited from the source")


class SummaryPayload(BaseModel):
    """Structured response of the summarization call.

    Missing fields degrade individually: an absent overview becomes the
    placeholder text and absent highlights become an empty list.
    """

    overview: str = FAILED_SUMMARY_OVERVIEW
    highlights: list[str] = Field(default_factory=list)

    @field_validator("overview", mode="before")
    @classmethod
    def default_overview(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return FAILED_SUMMARY_OVERVIEW
        return v

    @field_validator("highlights", mode="before")
    @classmethod
    def default_highlights(cls, v):
        if v is None:
            return []
        return v


class CategorySummary(BaseModel):
    """Digest of one category, with every item of that category attached."""

    model_config = ConfigDict(frozen=True)

    category: str
    overview: str
    highlights: tuple[str, ...] = Field(default_factory=tuple)
    items: tuple[ContentItem, ...] = Field(default_factory=tuple)
    degraded: bool = Field(default=False, description="True when the overview is a placeholder")
