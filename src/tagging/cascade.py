"""Two-stage classification cascade.

The rule classifier runs first. Only a low-confidence rule result with the
AI fallback enabled and configured reaches the external classifier, and any
failure there falls back to the rule result.
"""

from typing import Protocol

import structlog

from src.observability.metrics import PipelineMetrics
from src.tagging.models import CascadeRoute, TagResult
from src.tagging.rules import RuleClassifier


logger = structlog.get_logger()

DEFAULT_CONFIDENCE_THRESHOLD = 0.33


class TopicClassifier(Protocol):
    """External text-classification collaborator."""

    def classify(self, title: str, description: str | None = None) -> TagResult:
        """Classify one article; may perform network I/O."""
        ...


def decide_route(
    rule_result: TagResult,
    threshold: float,
    ai_enabled: bool,
    ai_configured: bool,
) -> CascadeRoute:
    """Decide which cascade branch handles a rule result.

    Args:
        rule_result: Output of the rule classifier.
        threshold: Minimum rule confidence that skips the AI stage.
        ai_enabled: Caller-level switch for the AI fallback.
        ai_configured: Whether an AI classifier is available.

    Returns:
        The route to take.
    """
    if rule_result.confidence >= threshold:
        return CascadeRoute.RULE_CONFIDENT
    if not ai_enabled or not ai_configured:
        return CascadeRoute.RULE_ONLY
    return CascadeRoute.AI_FALLBACK


class ClassificationCascade:
    """Resolves the topic tag for an article."""

    def __init__(
        self,
        rules: RuleClassifier,
        ai_classifier: TopicClassifier | None = None,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        """Initialize the cascade.

        Args:
            rules: Deterministic first-stage classifier.
            ai_classifier: External classifier, or None when not configured.
            threshold: Rule confidence at or above which the rule result wins.
        """
        if not 0.0 <= threshold <= 1.0:
            msg = f"threshold must be within [0, 1], got {threshold}"
            raise ValueError(msg)

        self._rules = rules
        self._ai = ai_classifier
        self._threshold = threshold
        self._metrics = PipelineMetrics.get_instance()
        self._log = logger.bind(component="tagging", subcomponent="cascade")

    @property
    def threshold(self) -> float:
        """Rule confidence threshold."""
        return self._threshold

    @property
    def ai_configured(self) -> bool:
        """Whether an AI classifier is wired in."""
        return self._ai is not None

    def resolve_tag(
        self,
        title: str,
        description: str | None = None,
        ai_enabled: bool = True,
    ) -> TagResult:
        """Resolve the tag for one article.

        Never raises for AI failures.

        Args:
            title: Article title.
            description: Optional article description.
            ai_enabled: Allow the AI fallback for this call.

        Returns:
            The rule result, or the AI result when the fallback succeeded.
        """
        rule_result = self._rules.classify(title, description)
        route = decide_route(
            rule_result,
            threshold=self._threshold,
            ai_enabled=ai_enabled,
            ai_configured=self._ai is not None,
        )
        self._metrics.record_cascade_route(route.value)

        if route is not CascadeRoute.AI_FALLBACK or self._ai is None:
            return rule_result

        try:
            return self._ai.classify(title, description)
        except Exception as exc:  # noqa: BLE001
            self._metrics.record_ai_failure()
            self._log.warning(
                "cascade_ai_fallback_failed",
                title=title[:80],
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return rule_result
