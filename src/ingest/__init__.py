"""Feed ingestion pipeline."""

from src.ingest.models import ItemOutcome, ItemOutcomeKind, RunStats
from src.ingest.orchestrator import IngestionOrchestrator


__all__ = [
    "IngestionOrchestrator",
    "ItemOutcome",
    "ItemOutcomeKind",
    "RunStats",
]
