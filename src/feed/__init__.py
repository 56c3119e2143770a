"""Content feed client and models."""

from src.feed.errors import FeedConfigError, FeedError
from src.feed.gnews import GNewsClient
from src.feed.models import DEFAULT_FEED_QUERY, FeedArticle, FeedQuery
from src.feed.protocols import FeedClient


__all__ = [
    "DEFAULT_FEED_QUERY",
    "FeedArticle",
    "FeedClient",
    "FeedConfigError",
    "FeedError",
    "FeedQuery",
    "GNewsClient",
]
