"""Deterministic keyword classifier.

Scores free text against the fixed taxonomy by counting keyword phrases
that occur as substrings of the lowercased title and description.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from src.tagging.models import Provenance, TagResult
from src.taxonomy import TAXONOMY, TopicDefinition


DEFAULT_SATURATION_MATCHES = 3


@dataclass(frozen=True)
class CompiledTopic:
    """A topic with its keywords prepared for matching.

    Attributes:
        slug: Topic slug.
        keywords: Lowercased keyword phrases.
    """

    slug: str
    keywords: tuple[str, ...]


def build_text_blob(title: str, description: str | None = None) -> str:
    """Join title and optional description into one lowercased blob."""
    if description:
        return f"{title} {description}".lower()
    return title.lower()


class RuleClassifier:
    """Classifies text by keyword counts over an ordered taxonomy.

    Pure and deterministic: the same inputs always give the same
    TagResult. Ties on match count keep the topic that comes first
    in taxonomy order.
    """

    def __init__(
        self,
        taxonomy: Sequence[TopicDefinition] = TAXONOMY,
        saturation_matches: int = DEFAULT_SATURATION_MATCHES,
    ) -> None:
        """Initialize the classifier.

        Args:
            taxonomy: Ordered topic definitions.
            saturation_matches: Match count at which confidence reaches 1.0.
        """
        if saturation_matches < 1:
            msg = "saturation_matches must be at least 1"
            raise ValueError(msg)

        self._saturation = saturation_matches
        self._topics = tuple(
            CompiledTopic(
                slug=topic.slug,
                keywords=tuple(kw.lower() for kw in topic.keywords),
            )
            for topic in taxonomy
        )

    @property
    def topic_count(self) -> int:
        """Get number of configured topics."""
        return len(self._topics)

    def match_keywords(self, text: str) -> dict[str, tuple[str, ...]]:
        """Find matched keywords per topic.

        Args:
            text: Lowercased text blob.

        Returns:
            Mapping of slug to matched keywords, in taxonomy order.
        """
        return {
            topic.slug: tuple(kw for kw in topic.keywords if kw in text)
            for topic in self._topics
        }

    def classify(self, title: str, description: str | None = None) -> TagResult:
        """Classify an article by keyword counts.

        Args:
            title: Article title.
            description: Optional article description.

        Returns:
            TagResult with provenance ``rule``.
        """
        text = build_text_blob(title, description)

        best_slug: str | None = None
        best_matches: tuple[str, ...] = ()
        for slug, matched in self.match_keywords(text).items():
            if len(matched) > len(best_matches):
                best_slug = slug
                best_matches = matched

        if best_slug is None:
            return TagResult.untagged_rule()

        return TagResult(
            topic_slug=best_slug,
            confidence=min(len(best_matches) / self._saturation, 1.0),
            provenance=Provenance.RULE,
            matched_keywords=best_matches,
        )
