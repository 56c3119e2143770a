"""Domain exceptions for the news store.

This module defines a hierarchy of exceptions for the store layer,
separating infrastructure errors (database issues) from domain errors
(missing records).
"""


class NewsStoreError(Exception):
    """Base exception for all news store errors.

    All exceptions raised by the store should inherit from this class
    to enable consistent error handling at the application level.
    """


class ConnectionError(NewsStoreError):
    """Raised when database connection fails or is not established."""

    def __init__(self, message: str = "Database not connected") -> None:
        """Initialize the connection error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class TopicNotFoundError(NewsStoreError):
    """Raised when a topic reference does not resolve to a stored topic."""

    def __init__(self, topic_ref: str) -> None:
        """Initialize the error with the missing topic id or slug.

        Args:
            topic_ref: The topic id or slug that was not found.
        """
        self.topic_ref = topic_ref
        super().__init__(f"Topic not found: {topic_ref}")


class MigrationError(NewsStoreError):
    """Raised when a schema migration fails."""

    def __init__(self, version: int, message: str) -> None:
        """Initialize the migration error.

        Args:
            version: The migration version that failed.
            message: Human-readable error message.
        """
        self.version = version
        super().__init__(f"Migration {version} failed: {message}")
