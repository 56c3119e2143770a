"""Data models for the SQLite news store."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import Field, field_validator

from src.data_model import StrictBaseModel, utc_now


# Uniqueness bucket used for digests that are not bound to a topic
GLOBAL_TARGET_KEY = "global"


def new_id() -> str:
    """Generate a new record identifier."""
    return str(uuid.uuid4())


class DigestKind(str, Enum):
    """Digest cadence.

    - daily: Covers the trailing lookback window before the date key
    - weekly: Reserved cadence; shares the same uniqueness rules
    """

    DAILY = "daily"
    WEEKLY = "weekly"


class Topic(StrictBaseModel):
    """Stored topic from the fixed taxonomy."""

    id: Annotated[str, Field(min_length=1)] = Field(default_factory=new_id)
    name: Annotated[str, Field(min_length=1, max_length=100)]
    slug: Annotated[str, Field(min_length=1, max_length=50)]
    description: str | None = None
    sort_order: int = 0
    created_at: datetime = Field(default_factory=utc_now)


class Article(StrictBaseModel):
    """Stored news item.

    The fingerprint is globally unique; the topic is assigned once, before
    insert, by the classification cascade.
    """

    id: Annotated[str, Field(min_length=1)] = Field(default_factory=new_id)
    topic_id: str | None = Field(default=None, description="Assigned topic (nullable)")
    source_name: str | None = Field(default=None, description="Feed the item came from")
    title: Annotated[str, Field(min_length=1)]
    description: str | None = None
    content: str | None = None
    publisher_name: str | None = None
    url: Annotated[str, Field(min_length=1)]
    fingerprint: Annotated[
        str, Field(min_length=64, max_length=64, description="SHA-256 of normalized URL")
    ]
    image_url: str | None = None
    published_at: datetime = Field(description="Publication timestamp from the source")
    ingested_at: datetime = Field(
        default_factory=utc_now, description="System clock at insert"
    )


class Digest(StrictBaseModel):
    """Stored narrative summary for one (kind, scope, date) bucket."""

    id: Annotated[str, Field(min_length=1)] = Field(default_factory=new_id)
    kind: DigestKind = DigestKind.DAILY
    topic_id: str | None = Field(default=None, description="None means global scope")
    date: datetime = Field(description="Date key, truncated to midnight UTC")
    title: str | None = None
    content: Annotated[str, Field(min_length=1)]
    image_url: str | None = None
    model: str | None = Field(default=None, description="Backend that produced it")
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("date")
    @classmethod
    def validate_day_granularity(cls, v: datetime) -> datetime:
        """Reject date keys that carry a time-of-day component."""
        if (v.hour, v.minute, v.second, v.microsecond) != (0, 0, 0, 0):
            msg = f"Digest date must be truncated to the day: {v.isoformat()}"
            raise ValueError(msg)
        return v

    @property
    def target_key(self) -> str:
        """Uniqueness bucket for the digest scope."""
        return self.topic_id or GLOBAL_TARGET_KEY


class TopicArticleCount(StrictBaseModel):
    """Number of stored articles assigned to one topic."""

    topic: str
    slug: str
    count: Annotated[int, Field(ge=0)]
