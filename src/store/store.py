"""SQLite news store implementation."""

import sqlite3
import threading
import time
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

import structlog

from src.store.errors import ConnectionError as StoreConnectionError
from src.store.metrics import StoreMetrics, TransactionContext
from src.store.migrations import CURRENT_VERSION, MigrationManager
from src.store.models import (
    GLOBAL_TARGET_KEY,
    Article,
    Digest,
    DigestKind,
    Topic,
    TopicArticleCount,
)
from src.taxonomy import TopicDefinition


logger = structlog.get_logger()


class _AllTargets:
    """Sentinel type for digest queries that span every scope."""

    def __repr__(self) -> str:
        return "ALL_TARGETS"


ALL_TARGETS: Final = _AllTargets()

# A topic ID, None for the global scope, or ALL_TARGETS
TargetFilter = str | None | _AllTargets


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime as a sortable UTC ISO-8601 string.

    Naive datetimes are treated as UTC. A fixed microsecond precision keeps
    lexicographic order equal to chronological order.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


class NewsStore:
    """SQLite store for topics, articles, and digests.

    Provides the narrow collaborator surface the pipelines rely on:
    existence checks by fingerprint, inserts, windowed reads, lookups by
    uniqueness key, deletes by id, and taxonomy upserts by slug. Uses WAL
    mode and schema migrations. A single connection is shared across
    threads and serialized with a re-entrant lock.
    """

    def __init__(
        self,
        db_path: Path | str,
        run_id: str | None = None,
    ) -> None:
        """Initialize the news store.

        Args:
            db_path: Path to SQLite database file.
            run_id: Optional run ID for logging context.
        """
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._run_id = run_id or str(uuid.uuid4())
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._metrics = StoreMetrics.get_instance()
        self._log = logger.bind(
            component="store",
            run_id=self._run_id,
            db_path=str(self._db_path),
        )

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open connection to database and apply migrations.

        Creates the database file and parent directories if they don't exist.
        """
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._log.info("connecting_to_database")

        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        migration_mgr = MigrationManager(self._conn)
        old_version = migration_mgr.get_current_version()
        applied = migration_mgr.apply_migrations()

        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._log.info("database_closed")

    def __enter__(self) -> "NewsStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        """Ensure database is connected.

        Returns:
            The database connection.

        Raises:
            StoreConnectionError: If not connected.
        """
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    def _query(self, sql: str, params: Sequence[object] = ()) -> list[sqlite3.Row]:
        """Run a read query under the connection lock."""
        with self._lock:
            conn = self._ensure_connected()
            return conn.execute(sql, tuple(params)).fetchall()

    @contextmanager
    def _transaction(
        self, operation: str
    ) -> Iterator[tuple[sqlite3.Connection, TransactionContext]]:
        """Context manager for transactions with timing and logging.

        Args:
            operation: Name of the operation for logging.

        Yields:
            The connection and a transaction context with timing information.
        """
        with self._lock:
            conn = self._ensure_connected()
            tx_id = str(uuid.uuid4())[:8]
            start_ns = time.perf_counter_ns()
            ctx = TransactionContext(
                tx_id=tx_id, start_time_ns=start_ns, operation=operation
            )

            try:
                yield conn, ctx
                conn.commit()
            except Exception:
                conn.rollback()
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                self._log.error(
                    "transaction_failed",
                    tx_id=tx_id,
                    op=operation,
                    duration_ms=round(duration_ms, 2),
                )
                raise

            duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
            self._metrics.record_tx_duration(duration_ms)
            self._log.debug(
                "transaction_complete",
                tx_id=tx_id,
                op=operation,
                affected_rows=ctx.affected_rows,
                duration_ms=round(duration_ms, 2),
            )

    # ===== Topics =====

    def seed_topics(self, definitions: Sequence[TopicDefinition]) -> int:
        """Ensure every taxonomy topic exists, keyed by slug.

        Existing topics are left untouched, so the call is idempotent.

        Args:
            definitions: Ordered taxonomy definitions.

        Returns:
            Number of topics created.
        """
        now = to_db_timestamp(datetime.now(UTC))
        created = 0

        with self._transaction("seed_topics") as (conn, ctx):
            for definition in definitions:
                cursor = conn.execute(
                    """
                    INSERT INTO topics (id, name, slug, description, sort_order, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT DO NOTHING
                    """,
                    (
                        str(uuid.uuid4()),
                        definition.name,
                        definition.slug,
                        definition.description,
                        definition.sort_order,
                        now,
                    ),
                )
                if cursor.rowcount:
                    created += 1
                    self._log.info("topic_created", slug=definition.slug)
            ctx.add_affected_rows(created)

        self._metrics.record_topics_created(created)
        return created

    def list_topics(self) -> list[Topic]:
        """Get all topics in display order."""
        rows = self._query("SELECT * FROM topics ORDER BY sort_order, slug")
        return [self._row_to_topic(row) for row in rows]

    def get_topic(self, topic_id: str) -> Topic | None:
        """Get a topic by ID."""
        rows = self._query("SELECT * FROM topics WHERE id = ?", (topic_id,))
        return self._row_to_topic(rows[0]) if rows else None

    def get_topic_by_slug(self, slug: str) -> Topic | None:
        """Get a topic by slug."""
        rows = self._query("SELECT * FROM topics WHERE slug = ?", (slug,))
        return self._row_to_topic(rows[0]) if rows else None

    def topic_ids_by_slug(self) -> dict[str, str]:
        """Map every topic slug to its stored ID."""
        rows = self._query("SELECT id, slug FROM topics")
        return {row["slug"]: row["id"] for row in rows}

    @staticmethod
    def _row_to_topic(row: sqlite3.Row) -> Topic:
        return Topic(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            sort_order=row["sort_order"],
            created_at=_from_db_timestamp(row["created_at"]),
        )

    # ===== Articles =====

    def article_exists(self, fingerprint: str) -> bool:
        """Check whether an article with this fingerprint is stored."""
        rows = self._query(
            "SELECT 1 FROM articles WHERE fingerprint = ? LIMIT 1", (fingerprint,)
        )
        return bool(rows)

    def insert_article(self, article: Article) -> bool:
        """Insert an article unless its fingerprint is already stored.

        The unique index on ``fingerprint`` makes this a compare-and-swap:
        of two concurrent inserts for the same fingerprint exactly one wins.

        Args:
            article: The article to store.

        Returns:
            True if inserted, False if the fingerprint already existed.
        """
        with self._transaction("insert_article") as (conn, ctx):
            cursor = conn.execute(
                """
                INSERT INTO articles (
                    id, topic_id, source_name, title, description, content,
                    publisher_name, url, fingerprint, image_url,
                    published_at, ingested_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(fingerprint) DO NOTHING
                """,
                (
                    article.id,
                    article.topic_id,
                    article.source_name,
                    article.title,
                    article.description,
                    article.content,
                    article.publisher_name,
                    article.url,
                    article.fingerprint,
                    article.image_url,
                    to_db_timestamp(article.published_at),
                    to_db_timestamp(article.ingested_at),
                ),
            )
            ctx.add_affected_rows(cursor.rowcount)

        if cursor.rowcount == 0:
            self._metrics.record_duplicate_rejected()
            self._log.info("article_fingerprint_conflict", fingerprint=article.fingerprint)
            return False

        self._metrics.record_article_inserted()
        return True

    def get_article(self, article_id: str) -> Article | None:
        """Get an article by ID."""
        rows = self._query("SELECT * FROM articles WHERE id = ?", (article_id,))
        return self._row_to_article(rows[0]) if rows else None

    def get_article_by_fingerprint(self, fingerprint: str) -> Article | None:
        """Get an article by its deduplication fingerprint."""
        rows = self._query(
            "SELECT * FROM articles WHERE fingerprint = ?", (fingerprint,)
        )
        return self._row_to_article(rows[0]) if rows else None

    def list_articles(
        self,
        topic_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Article]:
        """List articles newest-first, optionally for one topic.

        Args:
            topic_id: Restrict to this topic when given.
            limit: Maximum number of rows.
            offset: Rows to skip (for paging).

        Returns:
            Articles ordered by published_at descending.
        """
        if topic_id is None:
            rows = self._query(
                "SELECT * FROM articles ORDER BY published_at DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
        else:
            rows = self._query(
                """
                SELECT * FROM articles WHERE topic_id = ?
                ORDER BY published_at DESC LIMIT ? OFFSET ?
                """,
                (topic_id, limit, offset),
            )
        return [self._row_to_article(row) for row in rows]

    def find_articles_in_window(
        self,
        start: datetime,
        end: datetime | None = None,
        topic_id: str | None = None,
        limit: int | None = None,
    ) -> list[Article]:
        """Find articles published within ``[start, end]``, newest first.

        Args:
            start: Inclusive lower bound on published_at.
            end: Inclusive upper bound on published_at (open when None).
            topic_id: Restrict to this topic when given; all topics otherwise.
            limit: Maximum number of rows.

        Returns:
            Matching articles ordered by published_at descending.
        """
        clauses = ["published_at >= ?"]
        params: list[object] = [to_db_timestamp(start)]

        if end is not None:
            clauses.append("published_at <= ?")
            params.append(to_db_timestamp(end))
        if topic_id is not None:
            clauses.append("topic_id = ?")
            params.append(topic_id)

        sql = f"SELECT * FROM articles WHERE {' AND '.join(clauses)} ORDER BY published_at DESC"  # noqa: S608
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        return [self._row_to_article(row) for row in self._query(sql, params)]

    @staticmethod
    def _row_to_article(row: sqlite3.Row) -> Article:
        return Article(
            id=row["id"],
            topic_id=row["topic_id"],
            source_name=row["source_name"],
            title=row["title"],
            description=row["description"],
            content=row["content"],
            publisher_name=row["publisher_name"],
            url=row["url"],
            fingerprint=row["fingerprint"],
            image_url=row["image_url"],
            published_at=_from_db_timestamp(row["published_at"]),
            ingested_at=_from_db_timestamp(row["ingested_at"]),
        )

    # ===== Digests =====

    def find_digest(
        self,
        kind: DigestKind,
        topic_id: str | None,
        date: datetime,
    ) -> Digest | None:
        """Look up a digest by its (kind, scope, date) uniqueness key.

        Args:
            kind: Digest cadence.
            topic_id: Topic scope, or None for the global scope.
            date: Day-truncated date key.

        Returns:
            The digest, or None if the bucket is empty.
        """
        rows = self._query(
            "SELECT * FROM digests WHERE kind = ? AND target_key = ? AND date = ?",
            (kind.value, topic_id or GLOBAL_TARGET_KEY, to_db_timestamp(date)),
        )
        return self._row_to_digest(rows[0]) if rows else None

    def get_digest(self, digest_id: str) -> Digest | None:
        """Get a digest by ID."""
        rows = self._query("SELECT * FROM digests WHERE id = ?", (digest_id,))
        return self._row_to_digest(rows[0]) if rows else None

    def insert_digest(self, digest: Digest) -> Digest:
        """Insert a digest.

        Raises:
            sqlite3.IntegrityError: If the (kind, scope, date) bucket is taken.
        """
        with self._transaction("insert_digest") as (conn, ctx):
            self._insert_digest_row(conn, digest)
            ctx.add_affected_rows(1)

        self._metrics.record_digest_written()
        return digest

    def replace_digest(self, digest: Digest, replaces_id: str | None) -> Digest:
        """Delete ``replaces_id`` (if any) and insert ``digest`` atomically.

        Args:
            digest: The new digest.
            replaces_id: ID of the digest occupying the same bucket.

        Returns:
            The stored digest.
        """
        deleted = 0
        with self._transaction("replace_digest") as (conn, ctx):
            if replaces_id is not None:
                cursor = conn.execute("DELETE FROM digests WHERE id = ?", (replaces_id,))
                deleted = cursor.rowcount
                ctx.add_affected_rows(deleted)
            self._insert_digest_row(conn, digest)
            ctx.add_affected_rows(1)

        if deleted:
            self._metrics.record_digest_deleted()
        self._metrics.record_digest_written()
        return digest

    def delete_digest(self, digest_id: str) -> bool:
        """Delete a digest by ID.

        Returns:
            True if a row was deleted.
        """
        with self._transaction("delete_digest") as (conn, ctx):
            cursor = conn.execute("DELETE FROM digests WHERE id = ?", (digest_id,))
            ctx.add_affected_rows(cursor.rowcount)

        if cursor.rowcount:
            self._metrics.record_digest_deleted()
        return bool(cursor.rowcount)

    def get_latest_digest(
        self,
        topic_id: str | None = None,
        kind: DigestKind = DigestKind.DAILY,
    ) -> Digest | None:
        """Get the most recently created digest for a scope."""
        rows = self._query(
            """
            SELECT * FROM digests WHERE kind = ? AND target_key = ?
            ORDER BY created_at DESC LIMIT 1
            """,
            (kind.value, topic_id or GLOBAL_TARGET_KEY),
        )
        return self._row_to_digest(rows[0]) if rows else None

    def list_digests(
        self,
        kind: DigestKind = DigestKind.DAILY,
        topic_id: TargetFilter = ALL_TARGETS,
        limit: int = 10,
    ) -> list[Digest]:
        """List digests by date descending.

        Args:
            kind: Digest cadence.
            topic_id: A topic ID, None for global digests only, or
                ``ALL_TARGETS`` for every scope.
            limit: Maximum number of rows.

        Returns:
            Matching digests.
        """
        if isinstance(topic_id, _AllTargets):
            rows = self._query(
                "SELECT * FROM digests WHERE kind = ? ORDER BY date DESC, created_at DESC LIMIT ?",
                (kind.value, limit),
            )
        else:
            rows = self._query(
                """
                SELECT * FROM digests WHERE kind = ? AND target_key = ?
                ORDER BY date DESC, created_at DESC LIMIT ?
                """,
                (kind.value, topic_id or GLOBAL_TARGET_KEY, limit),
            )
        return [self._row_to_digest(row) for row in rows]

    @staticmethod
    def _insert_digest_row(conn: sqlite3.Connection, digest: Digest) -> None:
        conn.execute(
            """
            INSERT INTO digests (
                id, kind, topic_id, target_key, date, title, content,
                image_url, model, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                digest.id,
                digest.kind.value,
                digest.topic_id,
                digest.target_key,
                to_db_timestamp(digest.date),
                digest.title,
                digest.content,
                digest.image_url,
                digest.model,
                to_db_timestamp(digest.created_at),
            ),
        )

    @staticmethod
    def _row_to_digest(row: sqlite3.Row) -> Digest:
        return Digest(
            id=row["id"],
            kind=DigestKind(row["kind"]),
            topic_id=row["topic_id"],
            date=_from_db_timestamp(row["date"]),
            title=row["title"],
            content=row["content"],
            image_url=row["image_url"],
            model=row["model"],
            created_at=_from_db_timestamp(row["created_at"]),
        )

    # ===== Stats =====

    def get_stats(self) -> dict[str, int]:
        """Get row counts for all tables.

        Returns:
            Dictionary mapping table name to row count.
        """
        stats: dict[str, int] = {}
        for table in ("topics", "articles", "digests"):
            rows = self._query(f"SELECT COUNT(*) FROM {table}")  # noqa: S608
            stats[table] = rows[0][0]
        return stats

    def get_topic_article_counts(self) -> list[TopicArticleCount]:
        """Count stored articles per topic, in display order."""
        rows = self._query(
            """
            SELECT t.name AS name, t.slug AS slug, COUNT(a.id) AS count
            FROM topics t LEFT JOIN articles a ON a.topic_id = t.id
            GROUP BY t.id
            ORDER BY t.sort_order, t.slug
            """
        )
        return [
            TopicArticleCount(topic=row["name"], slug=row["slug"], count=row["count"])
            for row in rows
        ]

    def get_schema_version(self) -> int:
        """Get current schema version.

        Returns:
            Current schema version number.
        """
        with self._lock:
            migration_mgr = MigrationManager(self._ensure_connected())
            return migration_mgr.get_current_version()
