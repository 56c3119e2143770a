"""Data models for topic tagging."""

from dataclasses import dataclass, field
from enum import Enum


class Provenance(str, Enum):
    """Which stage of the cascade produced a tag."""

    RULE = "rule"
    AI = "ai"


class CascadeRoute(str, Enum):
    """Routing decision taken by the classification cascade.

    - rule_confident: Rule result met the threshold; no network call
    - rule_only: Low-confidence rule result returned because AI is unavailable
    - ai_fallback: External classifier consulted
    """

    RULE_CONFIDENT = "rule_confident"
    RULE_ONLY = "rule_only"
    AI_FALLBACK = "ai_fallback"


@dataclass(frozen=True)
class TagResult:
    """Topic assignment for a single article.

    Attributes:
        topic_slug: Assigned taxonomy slug, or None when untagged.
        confidence: Confidence in [0, 1].
        provenance: Stage that produced the result.
        matched_keywords: Keywords counted for the winning topic (rule only).
        rationale: Short explanation (AI only).
    """

    topic_slug: str | None
    confidence: float
    provenance: Provenance
    matched_keywords: tuple[str, ...] = field(default_factory=tuple)
    rationale: str | None = None

    @property
    def is_tagged(self) -> bool:
        """Whether a topic was assigned."""
        return self.topic_slug is not None

    @classmethod
    def untagged_rule(cls) -> "TagResult":
        """Rule result for text that matched no topic."""
        return cls(topic_slug=None, confidence=0.0, provenance=Provenance.RULE)
