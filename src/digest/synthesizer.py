"""Idempotent, date-windowed digest synthesis for one scope."""

import time
from datetime import UTC, datetime, timedelta

import structlog

from src.digest.errors import DigestGenerationError
from src.digest.illustrator import DigestIllustrator
from src.digest.models import DEFAULT_DIGEST_TITLE, ImageOutcome, SynthesisResult
from src.digest.writer import DigestWriter
from src.observability.metrics import PipelineMetrics
from src.store.errors import TopicNotFoundError
from src.store.models import Digest, DigestKind
from src.store.store import NewsStore


logger = structlog.get_logger()

DEFAULT_LOOKBACK_HOURS = 24
DEFAULT_MAX_ITEMS = 70


def truncate_to_day(value: datetime) -> datetime:
    """Truncate to midnight UTC; naive values are treated as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


class DigestSynthesizer:
    """Synthesizes the daily digest for one scope and date.

    A scope is a topic ID or None for the global digest. At most one digest
    exists per (kind, scope, date); repeated calls return the stored one
    unless regeneration is forced.
    """

    def __init__(
        self,
        store: NewsStore,
        writer: DigestWriter,
        illustrator: DigestIllustrator | None = None,
        lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
        max_items: int = DEFAULT_MAX_ITEMS,
    ) -> None:
        """Initialize the synthesizer.

        Args:
            store: News store.
            writer: Summarization collaborator.
            illustrator: Optional image collaborator.
            lookback_hours: Window length ending at the date key.
            max_items: Default cap on candidate items.
        """
        if max_items < 1:
            msg = "max_items must be at least 1"
            raise ValueError(msg)

        self._store = store
        self._writer = writer
        self._illustrator = illustrator
        self._lookback = timedelta(hours=lookback_hours)
        self._max_items = max_items
        self._metrics = PipelineMetrics.get_instance()
        self._log = logger.bind(component="digest", subcomponent="synthesizer")

    def synthesize(
        self,
        topic_id: str | None = None,
        as_of: datetime | None = None,
        force_regenerate: bool = False,
        max_items: int | None = None,
    ) -> SynthesisResult | None:
        """Synthesize (or fetch) the daily digest for a scope.

        Args:
            topic_id: Topic scope, or None for the global digest.
            as_of: Reference time; truncated to the day for the date key.
            force_regenerate: Replace an existing digest for the same key.
            max_items: Cap on candidate items (defaults to the configured cap).

        Returns:
            The synthesis result, or None when there are no candidate items.

        Raises:
            TopicNotFoundError: If ``topic_id`` is not a stored topic.
            DigestGenerationError: If summarization fails. Nothing is written.
        """
        date_key = truncate_to_day(as_of or datetime.now(UTC))
        scope_label = self._scope_label(topic_id)
        log = self._log.bind(scope=scope_label or "global", date=date_key.date().isoformat())

        existing = self._store.find_digest(DigestKind.DAILY, topic_id, date_key)
        if existing is not None and not force_regenerate:
            self._metrics.record_digest("cached")
            log.info("digest_cache_hit", digest_id=existing.id)
            return SynthesisResult(
                digest_id=existing.id,
                title=existing.title or DEFAULT_DIGEST_TITLE,
                item_count=0,
                is_new=False,
                image_path=existing.image_url,
            )

        candidates = self._store.find_articles_in_window(
            start=date_key - self._lookback,
            end=date_key,
            topic_id=topic_id,
            limit=max_items or self._max_items,
        )
        if not candidates:
            self._metrics.record_digest("empty")
            log.info("digest_no_candidates")
            return None

        start_ns = time.perf_counter_ns()
        try:
            narrative = self._writer.summarize(candidates, scope_label, date_key)
            title = self._writer.title_for(narrative)
        except Exception as exc:
            self._metrics.record_digest("failed")
            log.error(
                "digest_generation_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            msg = f"Failed to generate digest: {exc}"
            raise DigestGenerationError(msg) from exc

        image = self._illustrate(narrative, scope_label)

        digest = Digest(
            kind=DigestKind.DAILY,
            topic_id=topic_id,
            date=date_key,
            title=title or None,
            content=narrative,
            image_url=image.path,
            model=self._writer.model_label,
        )
        self._store.replace_digest(
            digest, replaces_id=existing.id if existing is not None else None
        )

        self._metrics.record_digest("generated")
        log.info(
            "digest_generated",
            digest_id=digest.id,
            items=len(candidates),
            replaced=existing.id if existing is not None else None,
            has_image=image.is_generated,
            duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
        )
        return SynthesisResult(
            digest_id=digest.id,
            title=title or DEFAULT_DIGEST_TITLE,
            item_count=len(candidates),
            is_new=True,
            image_path=image.path,
        )

    def _scope_label(self, topic_id: str | None) -> str | None:
        if topic_id is None:
            return None
        topic = self._store.get_topic(topic_id)
        if topic is None:
            raise TopicNotFoundError(topic_id)
        return topic.name

    def _illustrate(self, narrative: str, scope_label: str | None) -> ImageOutcome:
        if self._illustrator is None:
            return ImageOutcome.absent("image generation disabled")
        return self._illustrator.illustrate(narrative, scope_label)
