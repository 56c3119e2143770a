"""Unit tests for the keyword rule classifier."""

import pytest

from src.tagging.models import Provenance
from src.tagging.rules import RuleClassifier, build_text_blob
from src.taxonomy import TopicDefinition


@pytest.fixture
def classifier() -> RuleClassifier:
    """Classifier over the default taxonomy."""
    return RuleClassifier()


class TestRuleClassifier:
    """Tests for RuleClassifier.classify."""

    def test_saturates_at_three_matches(self, classifier: RuleClassifier) -> None:
        """Three or more keyword hits give confidence 1.0 exactly."""
        result = classifier.classify("New neural network model beats GPT-4 benchmark")

        assert result.topic_slug == "ai-ml"
        assert result.confidence == 1.0
        assert result.provenance is Provenance.RULE
        assert len(result.matched_keywords) >= 3

    def test_no_match_is_untagged(self, classifier: RuleClassifier) -> None:
        """Text without keyword hits is untagged with zero confidence."""
        result = classifier.classify("Company announces new product")

        assert result.topic_slug is None
        assert not result.is_tagged
        assert result.confidence == 0.0
        assert result.provenance is Provenance.RULE
        assert result.matched_keywords == ()

    def test_single_match_confidence(self, classifier: RuleClassifier) -> None:
        """One hit gives one third confidence."""
        result = classifier.classify("Ransomware gang claims another victim")

        assert result.topic_slug == "cybersecurity"
        assert result.matched_keywords == ("ransomware",)
        assert result.confidence == pytest.approx(1 / 3)

    def test_description_is_included(self, classifier: RuleClassifier) -> None:
        """Keywords in the description count."""
        without = classifier.classify("Quarterly update")
        with_description = classifier.classify(
            "Quarterly update", "The bitcoin price and ethereum staking rose"
        )

        assert without.topic_slug is None
        assert with_description.topic_slug == "crypto"
        assert with_description.confidence == 1.0

    def test_case_insensitive(self, classifier: RuleClassifier) -> None:
        """Matching ignores case."""
        result = classifier.classify("NASA LAUNCHES ROCKET")
        assert result.topic_slug == "science"

    def test_tie_keeps_earlier_topic(self) -> None:
        """Equal counts resolve to the topic evaluated first."""
        taxonomy = [
            TopicDefinition(slug="first", name="First", sort_order=1, keywords=("alpha",)),
            TopicDefinition(slug="second", name="Second", sort_order=2, keywords=("beta",)),
        ]
        classifier = RuleClassifier(taxonomy)

        assert classifier.classify("alpha beta").topic_slug == "first"
        assert classifier.classify("beta alpha").topic_slug == "first"

    def test_greatest_count_wins(self) -> None:
        """A later topic with strictly more hits wins."""
        taxonomy = [
            TopicDefinition(slug="first", name="First", sort_order=1, keywords=("alpha",)),
            TopicDefinition(
                slug="second", name="Second", sort_order=2, keywords=("beta", "gamma")
            ),
        ]
        result = RuleClassifier(taxonomy).classify("alpha beta gamma")

        assert result.topic_slug == "second"
        assert result.confidence == pytest.approx(2 / 3)

    def test_configurable_saturation(self) -> None:
        """The saturation count is a tunable parameter."""
        classifier = RuleClassifier(saturation_matches=1)
        assert classifier.classify("Ransomware strikes").confidence == 1.0

    def test_rejects_zero_saturation(self) -> None:
        """Saturation below one is rejected."""
        with pytest.raises(ValueError, match="at least 1"):
            RuleClassifier(saturation_matches=0)

    def test_deterministic(self, classifier: RuleClassifier) -> None:
        """Same input always gives the same result."""
        title = "Apple and Google face new privacy breach claims"
        assert classifier.classify(title) == classifier.classify(title)

    def test_topic_count(self, classifier: RuleClassifier) -> None:
        """All eight topics are compiled."""
        assert classifier.topic_count == 8


class TestBuildTextBlob:
    """Tests for build_text_blob."""

    def test_title_only(self) -> None:
        """Title alone is lowercased."""
        assert build_text_blob("Hello World") == "hello world"

    def test_title_and_description(self) -> None:
        """Title and description are joined with a space."""
        assert build_text_blob("Hello", "World") == "hello world"
