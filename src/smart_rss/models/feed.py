"""
Feed subscription models: sources, subscription lists and date windows.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CATEGORY = "Uncategorized"


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SourceDescriptor(BaseModel):
    """One configured remote feed."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1, description="Feed address")
    title: str = Field(default="Untitled", description="Display name from the subscription list")
    category: str = Field(default=DEFAULT_CATEGORY, description="Inherited category label")


class SubscriptionList(BaseModel):
    """Flattened subscription list as read from an OPML document."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="RSS Feeds")
    sources: tuple[SourceDescriptor, ...] = Field(default_factory=tuple)


class DateWindow(BaseModel):
    """Publication date filter applied while fetching.

    Both bounds are inclusive. An item without a timestamp always passes,
    since there is nothing to compare.
    """

    model_config = ConfigDict(frozen=True)

    since: Optional[datetime] = None
    until: Optional[datetime] = None

    @field_validator("since", "until")
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store bounds as aware UTC datetimes."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_order(self) -> "DateWindow":
        """Reject windows whose lower bound is after the upper bound."""
        if self.since and self.until and self.since > self.until:
            raise ValueError("'since' must not be later than 'until'")
        return self

    def contains(self, published_at: Optional[datetime]) -> bool:
        """Check whether a publication timestamp falls inside the window."""
        if published_at is None:
            return True

        published_at = ensure_utc(published_at)
        if self.since is not None and published_at < self.since:
            return False
        if self.until is not None and published_at > self.until:
            return False
        return True
