"""Standard Gemini API client using API key authentication."""

import random
import time
from http import HTTPStatus

import httpx
import structlog

from src.llm.errors import LlmApiError


logger = structlog.get_logger()

BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

DEFAULT_MIN_REQUEST_INTERVAL = 1.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 2.0
RETRYABLE_STATUS_CODES = frozenset(
    {HTTPStatus.TOO_MANY_REQUESTS, HTTPStatus.SERVICE_UNAVAILABLE}
)


def retry_delay(base_delay: float, attempt: int) -> float:
    """Exponential backoff with up to one second of jitter."""
    return base_delay * (2**attempt) + random.uniform(0, 1)  # noqa: S311


class GeminiApiKeyClient:
    """Client for the standard Gemini API using API key authentication.

    Uses the ``generativelanguage.googleapis.com`` endpoint with an
    ``x-goog-api-key`` header. Retries are bounded so a failing backend
    cannot stall a pipeline indefinitely.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout_seconds: float = 60.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        min_request_interval: float = DEFAULT_MIN_REQUEST_INTERVAL,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            model: Gemini model identifier.
            timeout_seconds: Per-request timeout.
            max_retries: Retries after the first attempt on 429/503.
            min_request_interval: Minimum seconds between requests.
            retry_base_delay: Base delay for exponential backoff.
        """
        self._api_key = api_key
        self.model = model
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._min_request_interval = min_request_interval
        self._retry_base_delay = retry_base_delay
        self._last_request_time: float = 0.0
        self._log = logger.bind(component="llm", subcomponent="gemini_api_key")

    def _rate_limit(self) -> None:
        """Enforce minimum interval between requests."""
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if elapsed < self._min_request_interval:
            time.sleep(self._min_request_interval - elapsed)
        self._last_request_time = time.monotonic()

    def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Send a generate content request to the Gemini API.

        Retries with exponential backoff on 429/503 responses.

        Args:
            prompt: User prompt text.
            system_instruction: Optional system instruction.

        Returns:
            Generated text from the model response.

        Raises:
            LlmApiError: If the API call fails after all retries.
        """
        url = f"{BASE_URL}/{self.model}:generateContent"

        request_body: dict[str, object] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system_instruction:
            request_body["systemInstruction"] = {
                "parts": [{"text": system_instruction}]
            }

        response = self._post_with_retries(url, request_body)

        try:
            data = response.json()
        except ValueError as exc:
            msg = "Gemini API returned a non-JSON body"
            raise LlmApiError(msg, status_code=response.status_code) from exc

        candidates = data.get("candidates", [])
        if not candidates:
            msg = "No candidates in Gemini API response"
            raise LlmApiError(msg)

        parts = candidates[0].get("content", {}).get("parts", [])
        if not parts:
            msg = "No parts in first candidate"
            raise LlmApiError(msg)

        text: str = parts[0].get("text", "")
        if not text:
            msg = "Empty text in response"
            raise LlmApiError(msg)

        return text

    def _post_with_retries(
        self, url: str, request_body: dict[str, object]
    ) -> httpx.Response:
        """POST a JSON body, retrying on retryable status codes.

        Args:
            url: Endpoint URL.
            request_body: JSON payload.

        Returns:
            The successful response.

        Raises:
            LlmApiError: On transport errors, non-retryable statuses, or
                when retries are exhausted.
        """
        last_exc: LlmApiError | None = None

        for attempt in range(self._max_retries + 1):
            self._rate_limit()

            try:
                response = httpx.post(
                    url,
                    headers={
                        "x-goog-api-key": self._api_key,
                        "Content-Type": "application/json",
                    },
                    json=request_body,
                    timeout=self._timeout,
                )
            except httpx.HTTPError as exc:
                msg = f"Gemini API request failed: {exc}"
                raise LlmApiError(msg) from exc

            if response.status_code == HTTPStatus.OK:
                return response

            if (
                response.status_code in RETRYABLE_STATUS_CODES
                and attempt < self._max_retries
            ):
                delay = retry_delay(self._retry_base_delay, attempt)
                self._log.warning(
                    "gemini_retryable_error",
                    status=response.status_code,
                    attempt=attempt + 1,
                    retry_delay=round(delay, 1),
                )
                time.sleep(delay)
                last_exc = LlmApiError(
                    f"Gemini API returned {response.status_code}",
                    status_code=response.status_code,
                )
                continue

            msg = f"Gemini API returned {response.status_code}"
            raise LlmApiError(msg, status_code=response.status_code)

        raise last_exc or LlmApiError("All retries exhausted")
