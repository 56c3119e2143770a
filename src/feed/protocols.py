"""Protocol interface for content feed clients."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from src.feed.models import FeedArticle


@runtime_checkable
class FeedClient(Protocol):
    """Protocol for content feed clients.

    Implementations filter by recency on the server side using ``since``;
    callers do not re-filter the returned items by time.
    """

    def fetch(
        self,
        query: str,
        language: str,
        region: str,
        max_items: int,
        since: datetime,
    ) -> list[FeedArticle]:
        """Fetch recent items.

        Args:
            query: Search expression.
            language: Two-letter language code.
            region: Two-letter country code.
            max_items: Maximum number of items.
            since: Only items published at or after this instant.

        Returns:
            Items in feed order.

        Raises:
            FeedError: If the call fails.
        """
        ...
