"""Unit tests for the news-digest CLI."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from src.cli.main import cli
from src.observability.metrics import PipelineMetrics
from src.store.store import NewsStore
from src.taxonomy import TAXONOMY
from tests.helpers.fakes import FakeFeed, FakeLlmClient, make_article, make_feed_article


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate settings from the environment and return a database path."""
    for name in ("GNEWS_API_KEY", "GEMINI_API_KEY", "NEWS_DB_PATH", "IMAGE_GENERATION_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    PipelineMetrics.reset()
    return tmp_path / "news.sqlite"


def _invoke(db_path: Path, *args: str) -> Result:
    return CliRunner().invoke(cli, ["--db", str(db_path), *args])


def _seed_article(db_path: Path, slug: str | None = None) -> None:
    with NewsStore(db_path) as store:
        store.seed_topics(TAXONOMY)
        topic_id = store.topic_ids_by_slug()[slug] if slug else None
        store.insert_article(make_article(title="Bitcoin rallies", topic_id=topic_id))


class TestTopicCommands:
    """Tests for seed-topics and topics."""

    def test_seed_topics_is_idempotent(self, db_path: Path) -> None:
        """Seeding twice creates topics once."""
        first = _invoke(db_path, "seed-topics")
        second = _invoke(db_path, "seed-topics")

        assert first.exit_code == 0
        assert "Created 8 topics" in first.output
        assert "Created 0 topics" in second.output

    def test_topics_lists_in_order(self, db_path: Path) -> None:
        """Topics print in sort order."""
        _invoke(db_path, "seed-topics")

        result = _invoke(db_path, "topics")

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert "ai-ml" in lines[0]
        assert "science" in lines[-1]

    def test_topics_empty_database(self, db_path: Path) -> None:
        """An empty database suggests seeding."""
        result = _invoke(db_path, "topics")

        assert "seed-topics" in result.output


class TestStatsCommand:
    """Tests for stats."""

    def test_json_output(self, db_path: Path) -> None:
        """JSON output has per-topic counts and table totals."""
        _seed_article(db_path, slug="crypto")

        result = _invoke(db_path, "stats", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total_articles"] == 1
        assert data["tables"]["topics"] == 8
        crypto = next(row for row in data["by_topic"] if row["slug"] == "crypto")
        assert crypto["count"] == 1


class TestFetchCommand:
    """Tests for fetch."""

    def test_missing_key_exits_nonzero(self, db_path: Path) -> None:
        """Without GNEWS_API_KEY the run reports the error and fails."""
        result = _invoke(db_path, "fetch")

        assert result.exit_code == 1
        assert "Fetch failed: GNEWS_API_KEY" in result.output

    @patch("src.cli.main.GNewsClient")
    def test_fetch_stores_articles(
        self, mock_client: MagicMock, db_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A successful run prints counters."""
        monkeypatch.setenv("GNEWS_API_KEY", "key")
        mock_client.return_value = FakeFeed(items=[make_feed_article()])

        result = _invoke(db_path, "fetch", "--max", "5")

        assert result.exit_code == 0
        assert "Inserted:       1" in result.output
        with NewsStore(db_path) as store:
            assert store.get_stats()["articles"] == 1


class TestArticlesCommand:
    """Tests for articles."""

    def test_lists_articles(self, db_path: Path) -> None:
        """Stored articles are listed with their topic."""
        _seed_article(db_path, slug="crypto")

        result = _invoke(db_path, "articles", "--topic", "crypto")

        assert result.exit_code == 0
        assert "[crypto] Bitcoin rallies" in result.output

    def test_unknown_topic(self, db_path: Path) -> None:
        """Unknown slugs exit with an error."""
        _invoke(db_path, "seed-topics")

        result = _invoke(db_path, "articles", "--topic", "sports")

        assert result.exit_code == 1
        assert "Unknown topic 'sports'" in result.output


class TestDigestCommands:
    """Tests for the digest group."""

    def test_generate_without_credentials(self, db_path: Path) -> None:
        """Missing GEMINI_API_KEY is reported."""
        result = _invoke(db_path, "digest", "generate")

        assert result.exit_code == 1
        assert "GEMINI_API_KEY" in result.output

    @patch("src.cli.main.create_llm_client")
    def test_generate_list_latest(self, mock_factory: MagicMock, db_path: Path) -> None:
        """A generated digest shows up in list and latest."""
        _seed_article(db_path)
        mock_factory.return_value = FakeLlmClient(responses=["Crypto surged.", "Crypto Surge"])

        generated = _invoke(db_path, "digest", "generate", "--date", "2025-03-14")
        cached = _invoke(db_path, "digest", "generate", "--date", "2025-03-14")
        listed = _invoke(db_path, "digest", "list")
        latest = _invoke(db_path, "digest", "latest")

        assert generated.exit_code == 0
        assert "Global: Crypto Surge [new, 1 articles]" in generated.output
        assert "[existing, 0 articles]" in cached.output
        assert "2025-03-14" in listed.output
        assert "Crypto Surge" in listed.output
        assert "Crypto surged." in latest.output

    @patch("src.cli.main.create_llm_client")
    def test_generate_empty_window(self, mock_factory: MagicMock, db_path: Path) -> None:
        """No candidates means nothing is generated."""
        _seed_article(db_path)
        mock_factory.return_value = FakeLlmClient()

        result = _invoke(db_path, "digest", "generate", "--date", "2024-01-01")

        assert result.exit_code == 0
        assert "nothing generated" in result.output

    @patch("src.cli.main.create_llm_client")
    def test_generate_all(self, mock_factory: MagicMock, db_path: Path) -> None:
        """Batch generation reports global and topic digests."""
        _seed_article(db_path, slug="crypto")
        mock_factory.return_value = FakeLlmClient(
            responses=["Global text", "Global Title", "Crypto text", "Crypto Title"]
        )

        result = _invoke(db_path, "digest", "generate-all", "--date", "2025-03-14")

        assert result.exit_code == 0
        assert "Global: Global Title" in result.output
        assert "Topic: Crypto Title" in result.output

    def test_list_and_latest_empty(self, db_path: Path) -> None:
        """Empty databases print a friendly message."""
        assert "No digests found." in _invoke(db_path, "digest", "list").output
        assert "No digest found." in _invoke(db_path, "digest", "latest").output

    def test_list_global_scope(self, db_path: Path) -> None:
        """'global' is accepted as a scope filter."""
        result = _invoke(db_path, "digest", "list", "--topic", "global")

        assert result.exit_code == 0
