"""Text-classification collaborator backed by an LLM."""

from collections.abc import Sequence

import structlog

from src.llm.errors import LlmProcessingError
from src.llm.json_utils import parse_json_object
from src.llm.protocols import LlmClient
from src.tagging.models import Provenance, TagResult
from src.tagging.prompts import SYSTEM_INSTRUCTION, build_classification_prompt
from src.taxonomy import TAXONOMY, TopicDefinition


logger = structlog.get_logger()

# Spellings the model uses for "no topic"
_NULL_SLUGS = frozenset({"", "null", "none"})


class AiTopicClassifier:
    """Asks an LLM to pick one taxonomy topic for an article.

    Responses that name an unknown slug or carry a confidence outside
    [0, 1] are rejected with LlmProcessingError rather than coerced.
    """

    def __init__(
        self,
        llm_client: LlmClient,
        taxonomy: Sequence[TopicDefinition] = TAXONOMY,
    ) -> None:
        """Initialize the classifier.

        Args:
            llm_client: Text generation client.
            taxonomy: Ordered topic definitions offered to the model.
        """
        self._client = llm_client
        self._taxonomy = tuple(taxonomy)
        self._slugs = frozenset(topic.slug for topic in self._taxonomy)
        self._log = logger.bind(component="tagging", subcomponent="ai_classifier")

    def classify(self, title: str, description: str | None = None) -> TagResult:
        """Classify one article.

        Args:
            title: Article title.
            description: Optional article description.

        Returns:
            TagResult with provenance ``ai``.

        Raises:
            LlmApiError: If the backend call fails.
            LlmProcessingError: If the response is malformed.
        """
        prompt = build_classification_prompt(self._taxonomy, title, description)
        raw_response = self._client.generate_content(
            prompt=prompt,
            system_instruction=SYSTEM_INSTRUCTION,
        )
        result = self._parse_response(raw_response)
        self._log.debug(
            "ai_classification_complete",
            topic=result.topic_slug,
            confidence=result.confidence,
        )
        return result

    def _parse_response(self, raw_response: str) -> TagResult:
        """Parse and validate the model's JSON answer.

        Args:
            raw_response: Raw text from the model.

        Returns:
            Validated TagResult.

        Raises:
            LlmProcessingError: If the response violates the contract.
        """
        parsed = parse_json_object(raw_response)
        if parsed is None:
            msg = f"Could not parse classification response: {raw_response[:200]}"
            raise LlmProcessingError(msg)

        slug = self._parse_slug(parsed.get("topic_slug"))

        confidence = parsed.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, int | float):
            msg = f"Confidence is not a number: {confidence!r}"
            raise LlmProcessingError(msg)
        if not 0.0 <= confidence <= 1.0:
            msg = f"Confidence out of range: {confidence}"
            raise LlmProcessingError(msg)

        rationale = parsed.get("rationale") or parsed.get("reasoning")

        return TagResult(
            topic_slug=slug,
            confidence=float(confidence),
            provenance=Provenance.AI,
            rationale=str(rationale) if rationale is not None else None,
        )

    def _parse_slug(self, value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            msg = f"Topic slug is not a string: {value!r}"
            raise LlmProcessingError(msg)

        slug = value.strip().lower()
        if slug in _NULL_SLUGS:
            return None
        if slug not in self._slugs:
            msg = f"Unknown topic slug: {value!r}"
            raise LlmProcessingError(msg)
        return slug
