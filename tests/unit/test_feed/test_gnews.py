"""Unit tests for the GNews client."""

from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import httpx
import pytest

from src.feed.errors import FeedConfigError, FeedError
from src.feed.gnews import GNewsClient, format_since
from src.feed.models import FeedArticle
from tests.helpers.time import FIXED_NOW


def _response(
    status_code: int = 200,
    payload: object = None,
    text: str = "",
) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {"articles": []}
    return response


def _raw_article(**overrides: object) -> dict[str, object]:
    raw: dict[str, object] = {
        "title": "Chipmaker unveils new GPU",
        "description": "A faster accelerator",
        "content": "Full text",
        "url": "https://news.example.com/gpu",
        "image": "https://news.example.com/gpu.png",
        "publishedAt": "2025-03-14T10:30:00Z",
        "source": {"name": "Example Wire", "url": "https://news.example.com"},
    }
    raw.update(overrides)
    return raw


def _fetch(client: GNewsClient, max_items: int = 10) -> list[FeedArticle]:
    return client.fetch(
        query="tech",
        language="en",
        region="us",
        max_items=max_items,
        since=FIXED_NOW - timedelta(hours=24),
    )


class TestFormatSince:
    """Tests for format_since."""

    def test_utc_with_z_suffix(self) -> None:
        """Timestamps are rendered in UTC with a Z suffix."""
        assert format_since(FIXED_NOW) == "2025-03-14T12:00:00Z"

    def test_converts_offsets(self) -> None:
        """Non-UTC instants are converted."""
        plus_two = datetime(2025, 3, 14, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_since(plus_two) == "2025-03-14T12:00:00Z"


class TestGNewsClient:
    """Tests for GNewsClient.fetch."""

    def test_missing_key_raises_config_error(self) -> None:
        """A missing key is reported before any request."""
        with pytest.raises(FeedConfigError, match="GNEWS_API_KEY"):
            GNewsClient(api_key=None)

    @patch("src.feed.gnews.httpx.get")
    def test_parses_articles(self, mock_get: MagicMock) -> None:
        """Entries map to FeedArticle fields."""
        mock_get.return_value = _response(payload={"articles": [_raw_article()]})

        articles = _fetch(GNewsClient(api_key="secret"))

        assert len(articles) == 1
        article = articles[0]
        assert article.title == "Chipmaker unveils new GPU"
        assert article.source_name == "Example Wire"
        assert article.image_url == "https://news.example.com/gpu.png"
        assert article.published_at == datetime(2025, 3, 14, 10, 30, tzinfo=UTC)

    @patch("src.feed.gnews.httpx.get")
    def test_sends_query_params(self, mock_get: MagicMock) -> None:
        """Query, locale, clamped max and since are sent."""
        mock_get.return_value = _response()

        _fetch(GNewsClient(api_key="secret"), max_items=500)

        url = mock_get.call_args[0][0]
        params = mock_get.call_args[1]["params"]
        assert url == "https://gnews.io/api/v4/search"
        assert params["apikey"] == "secret"
        assert params["q"] == "tech"
        assert params["lang"] == "en"
        assert params["country"] == "us"
        assert params["max"] == "100"
        assert params["from"] == "2025-03-13T12:00:00Z"

    @patch("src.feed.gnews.httpx.get")
    def test_skips_malformed_entries(self, mock_get: MagicMock) -> None:
        """Entries without a title or date are dropped."""
        mock_get.return_value = _response(
            payload={
                "articles": [
                    _raw_article(title=""),
                    _raw_article(publishedAt="not a date"),
                    "garbage",
                    _raw_article(url="https://news.example.com/ok"),
                ]
            }
        )

        articles = _fetch(GNewsClient(api_key="secret"))

        assert [a.url for a in articles] == ["https://news.example.com/ok"]

    @patch("src.feed.gnews.httpx.get")
    def test_error_body_is_redacted(self, mock_get: MagicMock) -> None:
        """The API key never appears in raised messages."""
        mock_get.return_value = _response(
            status_code=403,
            text="Forbidden for https://gnews.io/api/v4/search?q=x&apikey=secret",
        )

        with pytest.raises(FeedError) as exc_info:
            _fetch(GNewsClient(api_key="secret"))

        assert exc_info.value.status_code == 403
        assert "403" in str(exc_info.value)
        assert "secret" not in str(exc_info.value)
        assert mock_get.call_count == 1

    @patch("src.feed.gnews.httpx.get")
    def test_transport_error_is_redacted(self, mock_get: MagicMock) -> None:
        """httpx errors embedding the URL are redacted."""
        mock_get.side_effect = httpx.ConnectError(
            "failed https://gnews.io/api/v4/search?apikey=secret&q=x"
        )

        with pytest.raises(FeedError, match="GNews request failed") as exc_info:
            _fetch(GNewsClient(api_key="secret"))

        assert "secret" not in str(exc_info.value)
        assert exc_info.value.__cause__ is None

    @patch("src.feed.gnews.time.sleep")
    @patch("src.feed.gnews.httpx.get")
    def test_retries_server_errors(
        self, mock_get: MagicMock, mock_sleep: MagicMock
    ) -> None:
        """5xx responses are retried until success."""
        mock_get.side_effect = [
            _response(status_code=502),
            _response(payload={"articles": [_raw_article()]}),
        ]

        articles = _fetch(GNewsClient(api_key="secret"))

        assert len(articles) == 1
        assert mock_sleep.call_count == 1

    @patch("src.feed.gnews.time.sleep")
    @patch("src.feed.gnews.httpx.get")
    def test_retries_are_bounded(
        self, mock_get: MagicMock, mock_sleep: MagicMock
    ) -> None:
        """Persistent 429 gives up after max_retries."""
        mock_get.return_value = _response(status_code=429)

        with pytest.raises(FeedError, match="429"):
            _fetch(GNewsClient(api_key="secret", max_retries=2))

        assert mock_get.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("src.feed.gnews.httpx.get")
    def test_missing_articles_list(self, mock_get: MagicMock) -> None:
        """A body without an articles list is an error."""
        mock_get.return_value = _response(payload={"errors": ["bad"]})

        with pytest.raises(FeedError, match="no articles list"):
            _fetch(GNewsClient(api_key="secret"))
