"""Batch ingestion with per-item failure isolation."""

import time
import uuid
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import structlog

from src.feed.models import FeedArticle, FeedQuery
from src.feed.protocols import FeedClient
from src.ingest.models import ItemOutcome, ItemOutcomeKind, RunStats
from src.observability.metrics import PipelineMetrics
from src.store.fingerprint import fingerprint
from src.store.models import Article
from src.store.store import NewsStore
from src.tagging.cascade import ClassificationCascade
from src.taxonomy import TAXONOMY, TopicDefinition


logger = structlog.get_logger()

DEFAULT_SOURCE_NAME = "gnews"


def fetch_error_message(exc: BaseException) -> str:
    """Label for a feed-level or seeding failure."""
    return f"Fetch failed: {exc}"


def item_error_message(title: str, exc: BaseException) -> str:
    """Label for a per-item processing failure."""
    return f'Failed to process "{title}": {exc}'


class IngestionOrchestrator:
    """Pulls a batch from the feed, deduplicates, tags, and stores it.

    Items are processed independently: one item's failure is recorded
    and the batch continues. With ``max_workers > 1`` items are processed
    on a thread pool; the store's unique fingerprint constraint makes a
    fingerprint that appears twice in one batch resolve to one stored row.
    """

    def __init__(  # noqa: PLR0913
        self,
        store: NewsStore,
        feed: FeedClient,
        cascade: ClassificationCascade,
        feed_query: FeedQuery | None = None,
        lookback_hours: int = 24,
        max_workers: int = 1,
        taxonomy: Sequence[TopicDefinition] = TAXONOMY,
        source_name: str = DEFAULT_SOURCE_NAME,
        run_id: str | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: News store.
            feed: Content feed client.
            cascade: Classification cascade.
            feed_query: Search parameters for the feed.
            lookback_hours: Recency window requested from the feed.
            max_workers: Item-level parallelism (1 = sequential).
            taxonomy: Topics to seed before each run.
            source_name: Label stored as each article's source.
            run_id: Optional run ID for logging context.
        """
        if max_workers < 1:
            msg = "max_workers must be at least 1"
            raise ValueError(msg)

        self._store = store
        self._feed = feed
        self._cascade = cascade
        self._query = feed_query or FeedQuery()
        self._lookback = timedelta(hours=lookback_hours)
        self._max_workers = max_workers
        self._taxonomy = tuple(taxonomy)
        self._source_name = source_name
        self._run_id = run_id or str(uuid.uuid4())
        self._metrics = PipelineMetrics.get_instance()
        self._log = logger.bind(component="ingest", run_id=self._run_id)

    def ingest(
        self,
        max_items: int = 50,
        use_ai: bool = True,
        now: datetime | None = None,
    ) -> RunStats:
        """Run one ingestion batch.

        Args:
            max_items: Maximum items requested from the feed.
            use_ai: Allow the AI fallback in the cascade.
            now: Reference time for the recency window (defaults to now).

        Returns:
            RunStats with counters and error strings. Never raises for
            feed, seeding, or per-item failures.
        """
        now = now or datetime.now(UTC)
        since = now - self._lookback
        start_ns = time.perf_counter_ns()
        stats = RunStats()

        self._log.info(
            "ingest_started",
            max_items=max_items,
            use_ai=use_ai,
            since=since.isoformat(),
            max_workers=self._max_workers,
        )

        try:
            created = self._store.seed_topics(self._taxonomy)
            topic_ids = self._store.topic_ids_by_slug()
            items = self._feed.fetch(
                query=self._query.query,
                language=self._query.language,
                region=self._query.region,
                max_items=max_items,
                since=since,
            )
        except Exception as exc:  # noqa: BLE001
            stats.errors.append(fetch_error_message(exc))
            self._metrics.record_ingest_run(feed_failed=True)
            self._log.error(
                "ingest_fetch_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return stats

        stats.fetched = len(items)
        self._log.info("feed_items_received", fetched=stats.fetched, topics_created=created)

        for outcome in self._process_all(items, topic_ids, use_ai):
            stats.record(outcome)
            self._metrics.record_item(outcome.kind.value)

        self._metrics.record_ingest_run()
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._log.info(
            "ingest_complete",
            **{k: v for k, v in stats.to_dict().items() if k != "errors"},
            errors=len(stats.errors),
            duration_ms=round(duration_ms, 2),
        )
        return stats

    def _process_all(
        self,
        items: list[FeedArticle],
        topic_ids: dict[str, str],
        use_ai: bool,
    ) -> list[ItemOutcome]:
        """Process items sequentially or on a thread pool, in feed order."""
        if self._max_workers <= 1 or len(items) <= 1:
            return [self._process_item(item, topic_ids, use_ai) for item in items]

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            return list(
                executor.map(
                    lambda item: self._process_item(item, topic_ids, use_ai),
                    items,
                )
            )

    def _process_item(
        self,
        item: FeedArticle,
        topic_ids: dict[str, str],
        use_ai: bool,
    ) -> ItemOutcome:
        """Deduplicate, tag, and store one item.

        Args:
            item: Feed item.
            topic_ids: Topic slug to stored ID mapping.
            use_ai: Allow the AI fallback.

        Returns:
            The item's outcome. Exceptions are converted to error outcomes.
        """
        try:
            item_fingerprint = fingerprint(item.url)

            if self._store.article_exists(item_fingerprint):
                self._log.debug("item_duplicate", url=item.url)
                return ItemOutcome(kind=ItemOutcomeKind.DUPLICATE, title=item.title)

            tag = self._cascade.resolve_tag(
                item.title, item.description, ai_enabled=use_ai
            )
            topic_id = topic_ids.get(tag.topic_slug) if tag.topic_slug else None

            article = Article(
                topic_id=topic_id,
                source_name=self._source_name,
                title=item.title,
                description=item.description,
                content=item.content,
                publisher_name=item.source_name,
                url=item.url,
                fingerprint=item_fingerprint,
                image_url=item.image_url,
                published_at=item.published_at,
            )

            if not self._store.insert_article(article):
                # Lost the race to a concurrent insert of the same fingerprint
                self._log.debug("item_duplicate", url=item.url, race=True)
                return ItemOutcome(kind=ItemOutcomeKind.DUPLICATE, title=item.title)
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                "item_failed",
                title=item.title[:80],
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ItemOutcome(
                kind=ItemOutcomeKind.ERROR,
                title=item.title,
                error=item_error_message(item.title, exc),
            )

        self._log.info(
            "item_ingested",
            title=item.title[:50],
            topic=tag.topic_slug if topic_id else None,
            provenance=tag.provenance.value,
            confidence=round(tag.confidence, 2),
        )
        return ItemOutcome(
            kind=ItemOutcomeKind.INSERTED,
            title=item.title,
            tag=tag,
            topic_id=topic_id,
        )
