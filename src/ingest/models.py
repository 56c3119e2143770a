"""Data models for ingestion runs."""

from dataclasses import dataclass, field
from enum import Enum

from src.tagging.models import Provenance, TagResult


class ItemOutcomeKind(str, Enum):
    """What happened to one feed item."""

    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    ERROR = "error"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of processing a single feed item.

    Attributes:
        kind: Outcome category.
        title: Item title, for error labels and logs.
        tag: Resolved tag (inserted items only).
        topic_id: Stored topic reference (inserted items only).
        error: Human-readable error (error outcomes only).
    """

    kind: ItemOutcomeKind
    title: str
    tag: TagResult | None = None
    topic_id: str | None = None
    error: str | None = None


@dataclass
class RunStats:
    """Additive counters returned by one ingestion call.

    Never persisted.

    Attributes:
        fetched: Items returned by the feed.
        inserted: Items stored.
        duplicates: Items skipped because their fingerprint was already stored.
        tagged_by_rule: Inserted items tagged by the rule classifier.
        tagged_by_ai: Inserted items tagged by the AI classifier.
        untagged: Inserted items without a topic.
        errors: Human-readable per-item and feed-level errors.
    """

    fetched: int = 0
    inserted: int = 0
    duplicates: int = 0
    tagged_by_rule: int = 0
    tagged_by_ai: int = 0
    untagged: int = 0
    errors: list[str] = field(default_factory=list)

    def record(self, outcome: ItemOutcome) -> None:
        """Fold one item outcome into the counters."""
        if outcome.kind is ItemOutcomeKind.DUPLICATE:
            self.duplicates += 1
            return
        if outcome.kind is ItemOutcomeKind.ERROR:
            self.errors.append(outcome.error or f'Failed to process "{outcome.title}"')
            return

        self.inserted += 1
        if outcome.topic_id is None or outcome.tag is None:
            self.untagged += 1
        elif outcome.tag.provenance is Provenance.AI:
            self.tagged_by_ai += 1
        else:
            self.tagged_by_rule += 1

    @property
    def success(self) -> bool:
        """Whether the run finished without any error."""
        return not self.errors

    def to_dict(self) -> dict[str, int | list[str]]:
        """Convert stats to dictionary."""
        return {
            "fetched": self.fetched,
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "tagged_by_rule": self.tagged_by_rule,
            "tagged_by_ai": self.tagged_by_ai,
            "untagged": self.untagged,
            "errors": list(self.errors),
        }
