"""Topic tagging: rule classifier, AI classifier, and the cascade."""

from src.tagging.ai_classifier import AiTopicClassifier
from src.tagging.cascade import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    ClassificationCascade,
    TopicClassifier,
    decide_route,
)
from src.tagging.models import CascadeRoute, Provenance, TagResult
from src.tagging.rules import RuleClassifier


__all__ = [
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "AiTopicClassifier",
    "CascadeRoute",
    "ClassificationCascade",
    "Provenance",
    "RuleClassifier",
    "TagResult",
    "TopicClassifier",
    "decide_route",
]
