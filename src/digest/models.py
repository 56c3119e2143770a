"""Data models for digest synthesis."""

from dataclasses import dataclass, field


DEFAULT_DIGEST_TITLE = "Daily Digest"


@dataclass(frozen=True)
class ImageOutcome:
    """Outcome of best-effort digest illustration.

    Exactly one of ``path`` and ``reason`` is set.

    Attributes:
        path: Saved image location when generated.
        reason: Why no image is attached when absent.
    """

    path: str | None = None
    reason: str | None = None

    @classmethod
    def generated(cls, path: str) -> "ImageOutcome":
        """An image was generated and saved."""
        return cls(path=path)

    @classmethod
    def absent(cls, reason: str) -> "ImageOutcome":
        """No image is attached."""
        return cls(reason=reason)

    @property
    def is_generated(self) -> bool:
        """Whether an image is attached."""
        return self.path is not None


@dataclass(frozen=True)
class SynthesisResult:
    """Result of synthesizing one digest target.

    On a cache hit ``item_count`` is 0 and ``is_new`` is False, even though
    the stored digest was built from a non-empty item set.

    Attributes:
        digest_id: Stored digest ID.
        title: Digest title (``Daily Digest`` when the stored title is empty).
        item_count: Number of candidate items summarized in this call.
        is_new: Whether this call wrote the digest.
        image_path: Attached image location, if any.
    """

    digest_id: str
    title: str
    item_count: int
    is_new: bool
    image_path: str | None = None

    def to_dict(self) -> dict[str, str | int | bool | None]:
        """Convert result to dictionary."""
        return {
            "digest_id": self.digest_id,
            "title": self.title,
            "item_count": self.item_count,
            "is_new": self.is_new,
            "image_path": self.image_path,
        }


@dataclass
class BatchDigestResult:
    """Result of synthesizing the global digest and every topic digest.

    Attributes:
        global_result: Global digest result, or None when skipped or failed.
        topic_results: Results for topics that produced a digest, in
            taxonomy order.
        errors: Human-readable per-target errors.
        cancelled: Whether the batch stopped issuing targets early.
    """

    global_result: SynthesisResult | None = None
    topic_results: list[SynthesisResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict[str, object]:
        """Convert result to dictionary."""
        return {
            "global": self.global_result.to_dict() if self.global_result else None,
            "topics": [r.to_dict() for r in self.topic_results],
            "errors": list(self.errors),
            "cancelled": self.cancelled,
        }
