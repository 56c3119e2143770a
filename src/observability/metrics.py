"""In-process counters for the ingestion and digest pipelines."""

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class PipelineMetrics:
    """Counters for ingestion runs, tagging routes and digest outcomes.

    Digest targets may run on worker threads, so every mutation goes
    through ``_lock``.

    Attributes:
        ingest_runs_total: Completed ingestion runs.
        ingest_feed_failures_total: Runs that aborted on the feed call.
        items_by_outcome: Per-item outcome counts (inserted, duplicate, error).
        cascade_routes: Classification cascade route counts.
        ai_fallback_failures_total: AI classification calls that failed.
        digests_by_outcome: Digest outcome counts (generated, cached, empty, failed).
        image_failures_total: Best-effort image generations that failed.
    """

    ingest_runs_total: int = 0
    ingest_feed_failures_total: int = 0
    items_by_outcome: Counter[str] = field(default_factory=Counter)
    cascade_routes: Counter[str] = field(default_factory=Counter)
    ai_fallback_failures_total: int = 0
    digests_by_outcome: Counter[str] = field(default_factory=Counter)
    image_failures_total: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    _instance: ClassVar["PipelineMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "PipelineMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_ingest_run(self, feed_failed: bool = False) -> None:
        """Record a finished ingestion run."""
        with self._lock:
            self.ingest_runs_total += 1
            if feed_failed:
                self.ingest_feed_failures_total += 1

    def record_item(self, outcome: str) -> None:
        """Record a per-item ingestion outcome."""
        with self._lock:
            self.items_by_outcome[outcome] += 1

    def record_cascade_route(self, route: str) -> None:
        """Record which branch of the classification cascade ran."""
        with self._lock:
            self.cascade_routes[route] += 1

    def record_ai_failure(self) -> None:
        """Record a failed AI classification call."""
        with self._lock:
            self.ai_fallback_failures_total += 1

    def record_digest(self, outcome: str) -> None:
        """Record a digest synthesis outcome."""
        with self._lock:
            self.digests_by_outcome[outcome] += 1

    def record_image_failure(self) -> None:
        """Record a failed image generation."""
        with self._lock:
            self.image_failures_total += 1

    def to_dict(self) -> dict[str, int | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "ingest_runs_total": self.ingest_runs_total,
                "ingest_feed_failures_total": self.ingest_feed_failures_total,
                "items_by_outcome": dict(self.items_by_outcome),
                "cascade_routes": dict(self.cascade_routes),
                "ai_fallback_failures_total": self.ai_fallback_failures_total,
                "digests_by_outcome": dict(self.digests_by_outcome),
                "image_failures_total": self.image_failures_total,
            }
