"""Integration tests for the news store."""

import sqlite3
import tempfile
import threading
from collections.abc import Generator
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.store.errors import ConnectionError as StoreConnectionError
from src.store.fingerprint import fingerprint
from src.store.metrics import StoreMetrics
from src.store.models import Digest, DigestKind
from src.store.store import ALL_TARGETS, NewsStore, to_db_timestamp
from src.taxonomy import TAXONOMY
from tests.helpers.fakes import make_article
from tests.helpers.time import FIXED_DAY


@pytest.fixture
def temp_db_path() -> Generator[Path]:
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test_news.sqlite"


@pytest.fixture
def store(temp_db_path: Path) -> Generator[NewsStore]:
    """Create a connected news store with the taxonomy seeded."""
    StoreMetrics.reset()
    store = NewsStore(temp_db_path, run_id="test-run-001")
    store.connect()
    store.seed_topics(TAXONOMY)
    yield store
    store.close()


def _digest(topic_id: str | None = None, content: str = "Narrative") -> Digest:
    return Digest(topic_id=topic_id, date=FIXED_DAY, title="Title", content=content)


class TestNewsStoreConnection:
    """Tests for store connection and setup."""

    def test_connect_creates_parent_dirs(self, temp_db_path: Path) -> None:
        """Connecting creates the database and its directories."""
        nested_path = temp_db_path.parent / "subdir" / "news.sqlite"
        store = NewsStore(nested_path)
        store.connect()
        assert nested_path.exists()
        store.close()

    def test_context_manager(self, temp_db_path: Path) -> None:
        """The store works as a context manager."""
        with NewsStore(temp_db_path) as store:
            assert store.is_connected
            assert store.get_schema_version() > 0

        assert not store.is_connected

    def test_operations_require_connection(self, temp_db_path: Path) -> None:
        """Using a closed store raises."""
        with pytest.raises(StoreConnectionError):
            NewsStore(temp_db_path).list_topics()


class TestTopics:
    """Tests for taxonomy seeding and lookups."""

    def test_seed_is_idempotent(self, store: NewsStore) -> None:
        """A second seed creates nothing and keeps IDs stable."""
        before = store.topic_ids_by_slug()

        assert store.seed_topics(TAXONOMY) == 0
        assert store.topic_ids_by_slug() == before

    def test_list_in_sort_order(self, store: NewsStore) -> None:
        """Topics come back in display order."""
        assert [t.slug for t in store.list_topics()] == [t.slug for t in TAXONOMY]

    def test_lookup_by_slug(self, store: NewsStore) -> None:
        """Slug and ID lookups agree."""
        topic = store.get_topic_by_slug("crypto")

        assert topic is not None
        assert topic.name == "Crypto & Web3"
        assert store.get_topic(topic.id) == topic
        assert store.get_topic_by_slug("sports") is None


class TestArticles:
    """Tests for article storage and windowed reads."""

    def test_insert_and_read_back(self, store: NewsStore) -> None:
        """Inserted articles round-trip with UTC timestamps."""
        article = make_article(url="https://example.com/a")

        assert store.insert_article(article)

        stored = store.get_article(article.id)
        assert stored == article
        assert store.article_exists(fingerprint("https://EXAMPLE.com/a/"))

    def test_duplicate_fingerprint_rejected(self, store: NewsStore) -> None:
        """A second insert for a fingerprint returns False."""
        assert store.insert_article(make_article(url="https://example.com/a"))
        assert not store.insert_article(make_article(url="https://example.com/a?utm_medium=x"))

        assert store.get_stats()["articles"] == 1
        assert StoreMetrics.get_instance().duplicates_rejected_total == 1

    def test_concurrent_inserts_single_winner(self, store: NewsStore) -> None:
        """Racing inserts of one fingerprint store exactly one row."""
        outcomes: list[bool] = []
        barrier = threading.Barrier(6)

        def _insert() -> None:
            barrier.wait()
            outcomes.append(store.insert_article(make_article(url="https://example.com/race")))

        threads = [threading.Thread(target=_insert) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count(True) == 1
        assert store.get_stats()["articles"] == 1

    def test_window_query(self, store: NewsStore) -> None:
        """Bounds are inclusive and results are newest first."""
        crypto_id = store.topic_ids_by_slug()["crypto"]
        times = [FIXED_DAY - timedelta(hours=h) for h in (0, 12, 24, 25)]
        for when in times:
            store.insert_article(make_article(published_at=when, topic_id=crypto_id))
        store.insert_article(make_article(published_at=FIXED_DAY - timedelta(hours=1)))

        in_window = store.find_articles_in_window(
            FIXED_DAY - timedelta(hours=24), FIXED_DAY
        )
        crypto_only = store.find_articles_in_window(
            FIXED_DAY - timedelta(hours=24), FIXED_DAY, topic_id=crypto_id
        )
        limited = store.find_articles_in_window(FIXED_DAY - timedelta(hours=48), limit=2)

        assert [a.published_at for a in in_window] == sorted(
            (a.published_at for a in in_window), reverse=True
        )
        assert len(in_window) == 4
        assert len(crypto_only) == 3
        assert [a.published_at for a in limited] == [times[0], FIXED_DAY - timedelta(hours=1)]

    def test_non_utc_timestamps_compare_correctly(self, store: NewsStore) -> None:
        """Offsets are normalized before storage."""
        offset = datetime(2025, 3, 13, 15, 0, tzinfo=timezone(timedelta(hours=-5)))
        store.insert_article(make_article(published_at=offset))

        found = store.find_articles_in_window(
            datetime(2025, 3, 13, 19, 59, tzinfo=UTC), datetime(2025, 3, 13, 20, 1, tzinfo=UTC)
        )

        assert len(found) == 1
        assert to_db_timestamp(offset).endswith("+00:00")

    def test_topic_article_counts(self, store: NewsStore) -> None:
        """Every topic is counted, including empty ones."""
        crypto_id = store.topic_ids_by_slug()["crypto"]
        store.insert_article(make_article(topic_id=crypto_id))
        store.insert_article(make_article(topic_id=None))

        counts = {c.slug: c.count for c in store.get_topic_article_counts()}

        assert counts["crypto"] == 1
        assert counts["ai-ml"] == 0
        assert len(counts) == len(TAXONOMY)


class TestDigests:
    """Tests for digest uniqueness and replacement."""

    def test_find_by_key(self, store: NewsStore) -> None:
        """Digests are found by (kind, scope, date)."""
        crypto_id = store.topic_ids_by_slug()["crypto"]
        global_digest = store.insert_digest(_digest())
        topic_digest = store.insert_digest(_digest(topic_id=crypto_id))

        assert store.find_digest(DigestKind.DAILY, None, FIXED_DAY) == global_digest
        assert store.find_digest(DigestKind.DAILY, crypto_id, FIXED_DAY) == topic_digest
        assert store.find_digest(DigestKind.WEEKLY, None, FIXED_DAY) is None

    def test_global_bucket_is_unique(self, store: NewsStore) -> None:
        """Two global digests for one date violate the unique key."""
        store.insert_digest(_digest())

        with pytest.raises(sqlite3.IntegrityError):
            store.insert_digest(_digest(content="Other"))

    def test_replace_is_atomic(self, store: NewsStore) -> None:
        """Replacement swaps the row in one step."""
        old = store.insert_digest(_digest(content="Old"))
        new = store.replace_digest(_digest(content="New"), replaces_id=old.id)

        assert store.get_digest(old.id) is None
        assert store.find_digest(DigestKind.DAILY, None, FIXED_DAY) == new

    def test_failed_replace_keeps_old(self, store: NewsStore) -> None:
        """A replace that cannot insert rolls back its delete."""
        old = store.insert_digest(_digest(content="Old"))
        bad = _digest(topic_id="no-such-topic")

        with pytest.raises(sqlite3.IntegrityError):
            store.replace_digest(bad, replaces_id=old.id)

        assert store.get_digest(old.id) is not None

    def test_delete(self, store: NewsStore) -> None:
        """Deleting reports whether a row was removed."""
        digest = store.insert_digest(_digest())

        assert store.delete_digest(digest.id)
        assert not store.delete_digest(digest.id)

    def test_list_and_latest(self, store: NewsStore) -> None:
        """Listing filters by scope; latest picks the newest."""
        crypto_id = store.topic_ids_by_slug()["crypto"]
        earlier = Digest(date=FIXED_DAY - timedelta(days=1), content="Yesterday")
        store.insert_digest(earlier)
        today = store.insert_digest(_digest())
        store.insert_digest(_digest(topic_id=crypto_id))

        assert len(store.list_digests(topic_id=ALL_TARGETS)) == 3
        assert [d.id for d in store.list_digests(topic_id=None)] == [today.id, earlier.id]
        assert len(store.list_digests(topic_id=crypto_id)) == 1
        assert len(store.list_digests(topic_id=ALL_TARGETS, limit=1)) == 1
        assert store.get_latest_digest(crypto_id) is not None
        assert store.get_latest_digest() is not None

    def test_cascade_on_topic_delete(self, store: NewsStore) -> None:
        """Topic deletion removes its digests and untags its articles."""
        crypto_id = store.topic_ids_by_slug()["crypto"]
        article = make_article(topic_id=crypto_id)
        store.insert_article(article)
        store.insert_digest(_digest(topic_id=crypto_id))

        with store._transaction("delete_topic") as (conn, _):
            conn.execute("DELETE FROM topics WHERE id = ?", (crypto_id,))

        assert store.list_digests(topic_id=crypto_id) == []
        stored = store.get_article(article.id)
        assert stored is not None
        assert stored.topic_id is None
