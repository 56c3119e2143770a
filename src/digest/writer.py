"""Summarization collaborator backed by an LLM."""

import re
from collections.abc import Sequence
from datetime import datetime

import structlog

from src.digest.prompts import build_digest_prompt, build_title_prompt
from src.llm.errors import LlmProcessingError
from src.llm.protocols import LlmClient
from src.store.models import Article


logger = structlog.get_logger()

_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


def clean_title(raw: str) -> str:
    """Trim whitespace and one pair of surrounding quotes."""
    return _SURROUNDING_QUOTES.sub("", raw.strip()).strip()


class DigestWriter:
    """Writes digest narratives and titles.

    Titles can come from a cheaper model than the narrative.
    """

    def __init__(
        self,
        llm_client: LlmClient,
        title_client: LlmClient | None = None,
        model_label: str | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            llm_client: Client used for narratives.
            title_client: Client used for titles (defaults to ``llm_client``).
            model_label: Label recorded on stored digests (defaults to the
                narrative client's model).
        """
        self._client = llm_client
        self._title_client = title_client or llm_client
        self._model_label = model_label or getattr(llm_client, "model", None)
        self._log = logger.bind(component="digest", subcomponent="writer")

    @property
    def model_label(self) -> str | None:
        """Backend label recorded on digests."""
        return self._model_label

    def summarize(
        self,
        items: Sequence[Article],
        scope_label: str | None,
        date: datetime,
    ) -> str:
        """Write the narrative for a set of items.

        Args:
            items: Candidate items, newest first.
            scope_label: Topic display name, or None for global.
            date: Digest date key.

        Returns:
            Narrative text.

        Raises:
            LlmApiError: If the backend call fails.
            LlmProcessingError: If the backend returns only whitespace.
        """
        prompt = build_digest_prompt(items, scope_label, date)
        narrative = self._client.generate_content(prompt=prompt).strip()
        if not narrative:
            msg = "Summarization returned empty text"
            raise LlmProcessingError(msg)

        self._log.debug(
            "digest_narrative_written",
            scope=scope_label or "global",
            items=len(items),
            chars=len(narrative),
        )
        return narrative

    def title_for(self, narrative: str) -> str:
        """Derive a short title from a narrative.

        Returns:
            Cleaned title; may be empty if the backend returned only quotes.
        """
        raw = self._title_client.generate_content(prompt=build_title_prompt(narrative))
        return clean_title(raw)
