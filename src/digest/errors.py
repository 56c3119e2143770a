"""Error types for digest synthesis."""


class DigestGenerationError(Exception):
    """Summarization failed; nothing was written for the target."""
