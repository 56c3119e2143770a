"""Unit tests for Gemini API key client."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from src.llm.errors import LlmApiError
from src.llm.gemini_client import GeminiApiKeyClient


def _make_client(
    api_key: str = "test-api-key",  # noqa: S107
    model: str = "gemini-2.5-flash",
    max_retries: int = 2,
) -> GeminiApiKeyClient:
    """Create a test client without request spacing."""
    return GeminiApiKeyClient(
        api_key=api_key,
        model=model,
        timeout_seconds=12.5,
        max_retries=max_retries,
        min_request_interval=0.0,
    )


def _response(status_code: int = 200, text: str = "ok") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return response


class TestGeminiApiKeyClientGenerateContent:
    """Tests for GeminiApiKeyClient.generate_content."""

    @patch("src.llm.gemini_client.httpx.post")
    def test_success_returns_text(self, mock_post: MagicMock) -> None:
        """Should return text from model response."""
        mock_post.return_value = _response(text="Hello world")

        result = _make_client().generate_content("Say hello")

        assert result == "Hello world"

    @patch("src.llm.gemini_client.httpx.post")
    def test_sends_api_key_header(self, mock_post: MagicMock) -> None:
        """Should send x-goog-api-key header."""
        mock_post.return_value = _response()

        _make_client(api_key="my-key-123").generate_content("Test")

        headers = mock_post.call_args[1]["headers"]
        assert headers["x-goog-api-key"] == "my-key-123"

    @patch("src.llm.gemini_client.httpx.post")
    def test_uses_model_endpoint_and_timeout(self, mock_post: MagicMock) -> None:
        """Should call the model's generateContent endpoint with the timeout."""
        mock_post.return_value = _response()

        _make_client(model="gemini-2.5-flash-lite").generate_content("Test")

        url = mock_post.call_args[0][0]
        assert url.endswith("/gemini-2.5-flash-lite:generateContent")
        assert mock_post.call_args[1]["timeout"] == 12.5

    @patch("src.llm.gemini_client.httpx.post")
    def test_sends_system_instruction(self, mock_post: MagicMock) -> None:
        """Should include systemInstruction when provided."""
        mock_post.return_value = _response()

        _make_client().generate_content("Test", system_instruction="Be concise")

        body = mock_post.call_args[1]["json"]
        assert body["systemInstruction"]["parts"][0]["text"] == "Be concise"

    @patch("src.llm.gemini_client.httpx.post")
    def test_401_raises_without_retry(self, mock_post: MagicMock) -> None:
        """Non-retryable statuses raise immediately."""
        mock_post.return_value = _response(status_code=401)

        with pytest.raises(LlmApiError, match="401") as exc_info:
            _make_client().generate_content("Test")

        assert exc_info.value.status_code == 401
        assert mock_post.call_count == 1

    @patch("src.llm.gemini_client.time.sleep")
    @patch("src.llm.gemini_client.httpx.post")
    def test_retries_on_429_then_succeeds(
        self, mock_post: MagicMock, mock_sleep: MagicMock
    ) -> None:
        """429 responses are retried with backoff."""
        mock_post.side_effect = [_response(status_code=429), _response(text="done")]

        assert _make_client().generate_content("Test") == "done"
        assert mock_post.call_count == 2
        mock_sleep.assert_called_once()

    @patch("src.llm.gemini_client.time.sleep")
    @patch("src.llm.gemini_client.httpx.post")
    def test_retries_are_bounded(
        self, mock_post: MagicMock, mock_sleep: MagicMock
    ) -> None:
        """503 forever gives up after max_retries."""
        mock_post.return_value = _response(status_code=503)

        with pytest.raises(LlmApiError, match="503"):
            _make_client(max_retries=2).generate_content("Test")

        assert mock_post.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("src.llm.gemini_client.httpx.post")
    def test_network_error_raises_api_error(self, mock_post: MagicMock) -> None:
        """Should raise LlmApiError on network failure."""
        mock_post.side_effect = httpx.ConnectError("Connection refused")

        with pytest.raises(LlmApiError, match="request failed"):
            _make_client().generate_content("Test")

    @patch("src.llm.gemini_client.httpx.post")
    def test_timeout_raises_api_error(self, mock_post: MagicMock) -> None:
        """Timeouts fail closed."""
        mock_post.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(LlmApiError):
            _make_client().generate_content("Test")

    @patch("src.llm.gemini_client.httpx.post")
    def test_empty_candidates_raises_api_error(self, mock_post: MagicMock) -> None:
        """Should raise LlmApiError when response has no candidates."""
        response = _response()
        response.json.return_value = {"candidates": []}
        mock_post.return_value = response

        with pytest.raises(LlmApiError, match="No candidates"):
            _make_client().generate_content("Test")

    @patch("src.llm.gemini_client.httpx.post")
    def test_empty_text_raises_api_error(self, mock_post: MagicMock) -> None:
        """Should raise LlmApiError when the first part has no text."""
        mock_post.return_value = _response(text="")

        with pytest.raises(LlmApiError, match="Empty text"):
            _make_client().generate_content("Test")
