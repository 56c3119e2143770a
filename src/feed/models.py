"""Data models for content feed items and queries."""

from datetime import datetime
from typing import Annotated

from pydantic import Field

from src.data_model import StrictBaseModel


DEFAULT_FEED_QUERY = "technology OR tech OR software OR AI OR startup"


class FeedArticle(StrictBaseModel):
    """One item returned by the content feed.

    Attributes:
        title: Headline.
        description: Short summary.
        content: Body excerpt.
        url: Link to the original article.
        image_url: Lead image URL.
        published_at: Publication timestamp (timezone-aware).
        source_name: Publisher display name.
    """

    title: Annotated[str, Field(min_length=1)]
    description: str | None = None
    content: str | None = None
    url: Annotated[str, Field(min_length=1)]
    image_url: str | None = None
    published_at: datetime
    source_name: str | None = None


class FeedQuery(StrictBaseModel):
    """Search parameters sent with every feed call."""

    query: Annotated[str, Field(min_length=1)] = DEFAULT_FEED_QUERY
    language: Annotated[str, Field(min_length=2, max_length=5)] = "en"
    region: Annotated[str, Field(min_length=2, max_length=5)] = "us"
