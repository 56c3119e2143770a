"""Metrics collection for the news store."""

import threading
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class StoreMetrics:
    """Metrics for news store operations.

    Attributes:
        articles_inserted_total: Articles written.
        duplicates_rejected_total: Inserts rejected by the fingerprint constraint.
        topics_created_total: Topics created by taxonomy seeding.
        digests_written_total: Digests written.
        digests_deleted_total: Digests deleted (forced regeneration or explicit).
        db_tx_duration_ms: Cumulative transaction duration in milliseconds.
        db_tx_count: Number of committed transactions.
    """

    articles_inserted_total: int = 0
    duplicates_rejected_total: int = 0
    topics_created_total: int = 0
    digests_written_total: int = 0
    digests_deleted_total: int = 0
    db_tx_duration_ms: float = 0.0
    db_tx_count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    _instance: ClassVar["StoreMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "StoreMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_article_inserted(self) -> None:
        """Record a new article."""
        with self._lock:
            self.articles_inserted_total += 1

    def record_duplicate_rejected(self) -> None:
        """Record an insert that lost the fingerprint race."""
        with self._lock:
            self.duplicates_rejected_total += 1

    def record_topics_created(self, count: int) -> None:
        """Record topics created by seeding.

        Args:
            count: Number of topics inserted.
        """
        with self._lock:
            self.topics_created_total += count

    def record_digest_written(self) -> None:
        """Record a digest insert."""
        with self._lock:
            self.digests_written_total += 1

    def record_digest_deleted(self) -> None:
        """Record a digest delete."""
        with self._lock:
            self.digests_deleted_total += 1

    def record_tx_duration(self, duration_ms: float) -> None:
        """Record transaction duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        with self._lock:
            self.db_tx_duration_ms += duration_ms
            self.db_tx_count += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "articles_inserted_total": self.articles_inserted_total,
            "duplicates_rejected_total": self.duplicates_rejected_total,
            "topics_created_total": self.topics_created_total,
            "digests_written_total": self.digests_written_total,
            "digests_deleted_total": self.digests_deleted_total,
            "db_tx_duration_ms": self.db_tx_duration_ms,
            "db_tx_count": self.db_tx_count,
        }


@dataclass
class TransactionContext:
    """Context for a single transaction with timing.

    Attributes:
        tx_id: Unique transaction identifier.
        start_time_ns: Start time in nanoseconds.
        operation: The operation being performed.
    """

    tx_id: str
    start_time_ns: int
    operation: str
    affected_rows: int = field(default=0)

    def add_affected_rows(self, rows: int) -> None:
        """Add to the affected row count.

        Args:
            rows: Number of rows affected.
        """
        self.affected_rows += rows
