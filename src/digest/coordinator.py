"""Batch digest synthesis across the global scope and every topic."""

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from src.digest.models import BatchDigestResult, SynthesisResult
from src.digest.synthesizer import DigestSynthesizer
from src.store.store import NewsStore


logger = structlog.get_logger()


@dataclass(frozen=True)
class DigestTarget:
    """One scope in a batch run.

    Attributes:
        topic_id: Topic ID, or None for the global digest.
        label: Name used in error strings.
    """

    topic_id: str | None
    label: str

    @property
    def error_prefix(self) -> str:
        """Prefix for this target's error string."""
        return "Global digest failed" if self.topic_id is None else f"{self.label} digest failed"


@dataclass(frozen=True)
class TargetOutcome:
    """What happened to one target."""

    target: DigestTarget
    result: SynthesisResult | None = None
    error: str | None = None
    skipped: bool = False


GLOBAL_TARGET = DigestTarget(topic_id=None, label="Global")


class BatchDigestCoordinator:
    """Runs digest synthesis for the global scope and then each topic.

    Every target is isolated: a failure is recorded as a labeled error and
    the batch moves on. Targets occupy distinct uniqueness buckets, so the
    topic targets may run on a thread pool.
    """

    def __init__(
        self,
        synthesizer: DigestSynthesizer,
        store: NewsStore,
        max_workers: int = 1,
    ) -> None:
        """Initialize the coordinator.

        Args:
            synthesizer: Single-target synthesizer.
            store: News store (for the topic list).
            max_workers: Topic-level parallelism (1 = sequential).
        """
        if max_workers < 1:
            msg = "max_workers must be at least 1"
            raise ValueError(msg)

        self._synthesizer = synthesizer
        self._store = store
        self._max_workers = max_workers
        self._log = logger.bind(component="digest", subcomponent="coordinator")

    def synthesize_all(
        self,
        as_of: datetime | None = None,
        force_regenerate: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> BatchDigestResult:
        """Synthesize the global digest and one digest per topic.

        Args:
            as_of: Reference time shared by every target.
            force_regenerate: Replace existing digests.
            cancel_event: When set, no further targets are started;
                targets already running complete.

        Returns:
            BatchDigestResult. Never raises for per-target failures.
        """
        as_of = as_of or datetime.now(UTC)
        cancel_event = cancel_event or threading.Event()
        result = BatchDigestResult()

        def run(target: DigestTarget) -> TargetOutcome:
            return self._run_target(target, as_of, force_regenerate, cancel_event)

        global_outcome = run(GLOBAL_TARGET)
        self._collect(global_outcome, result)

        targets = [
            DigestTarget(topic_id=topic.id, label=topic.name)
            for topic in self._store.list_topics()
        ]
        self._log.info(
            "batch_digest_started",
            topics=len(targets),
            max_workers=self._max_workers,
            force=force_regenerate,
        )

        for outcome in self._run_topics(targets, run):
            self._collect(outcome, result)

        self._log.info(
            "batch_digest_complete",
            global_generated=result.global_result is not None,
            topic_digests=len(result.topic_results),
            errors=len(result.errors),
            cancelled=result.cancelled,
        )
        return result

    def _run_topics(
        self,
        targets: list[DigestTarget],
        run: Callable[[DigestTarget], TargetOutcome],
    ) -> list[TargetOutcome]:
        """Run topic targets in taxonomy order, sequentially or pooled."""
        if self._max_workers <= 1:
            return [run(target) for target in targets]

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures: list[Future[TargetOutcome]] = [
                executor.submit(run, target) for target in targets
            ]
            return [future.result() for future in futures]

    def _run_target(
        self,
        target: DigestTarget,
        as_of: datetime,
        force_regenerate: bool,
        cancel_event: threading.Event,
    ) -> TargetOutcome:
        if cancel_event.is_set():
            return TargetOutcome(target=target, skipped=True)

        try:
            synthesis = self._synthesizer.synthesize(
                topic_id=target.topic_id,
                as_of=as_of,
                force_regenerate=force_regenerate,
            )
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                "digest_target_failed",
                target=target.label,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return TargetOutcome(target=target, error=f"{target.error_prefix}: {exc}")

        return TargetOutcome(target=target, result=synthesis)

    @staticmethod
    def _collect(outcome: TargetOutcome, result: BatchDigestResult) -> None:
        if outcome.skipped:
            result.cancelled = True
            return
        if outcome.error is not None:
            result.errors.append(outcome.error)
            return
        if outcome.target.topic_id is None:
            result.global_result = outcome.result
        elif outcome.result is not None:
            result.topic_results.append(outcome.result)
