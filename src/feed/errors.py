"""Error types for the content feed client."""


class FeedError(Exception):
    """Feed call failure.

    Attributes:
        status_code: HTTP status code, or None for transport errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FeedConfigError(FeedError):
    """Feed credential is missing."""
