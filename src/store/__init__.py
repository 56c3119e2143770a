"""SQLite news store for topics, articles, and digests.

This module provides persistent storage for:
- The fixed topic taxonomy, seeded idempotently by slug
- Articles deduplicated by normalized-URL fingerprint
- Digests unique per (kind, scope, date) bucket
"""

from src.store.errors import (
    ConnectionError,
    MigrationError,
    NewsStoreError,
    TopicNotFoundError,
)
from src.store.fingerprint import fingerprint, normalize_url
from src.store.metrics import StoreMetrics
from src.store.models import (
    GLOBAL_TARGET_KEY,
    Article,
    Digest,
    DigestKind,
    Topic,
    TopicArticleCount,
    new_id,
)
from src.store.store import ALL_TARGETS, NewsStore, TargetFilter, to_db_timestamp


__all__ = [
    # Errors
    "ConnectionError",
    "MigrationError",
    "NewsStoreError",
    "TopicNotFoundError",
    # Fingerprints
    "fingerprint",
    "normalize_url",
    # Metrics
    "StoreMetrics",
    # Models
    "GLOBAL_TARGET_KEY",
    "Article",
    "Digest",
    "DigestKind",
    "Topic",
    "TopicArticleCount",
    "new_id",
    # Store
    "ALL_TARGETS",
    "NewsStore",
    "TargetFilter",
    "to_db_timestamp",
]
