"""GNews v4 search client."""

import random
import time
from datetime import UTC, datetime
from http import HTTPStatus

import httpx
import structlog
from pydantic import ValidationError

from src.feed.errors import FeedConfigError, FeedError
from src.feed.models import FeedArticle
from src.observability.redact import redact_query_secrets


logger = structlog.get_logger()

GNEWS_BASE_URL = "https://gnews.io/api/v4"

# GNews caps ``max`` at 100 on paid plans
MAX_ITEMS_PER_REQUEST = 100
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BASE_DELAY = 1.0
_ERROR_BODY_PREVIEW = 200


def _is_retryable(status_code: int) -> bool:
    return (
        status_code == HTTPStatus.TOO_MANY_REQUESTS
        or status_code >= HTTPStatus.INTERNAL_SERVER_ERROR
    )


def format_since(since: datetime) -> str:
    """Format a timestamp the way GNews expects (UTC, ``Z`` suffix)."""
    if since.tzinfo is None:
        since = since.replace(tzinfo=UTC)
    return since.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class GNewsClient:
    """Fetches articles from the GNews ``/search`` endpoint.

    The API key travels as a query parameter, so every URL or transport
    error is passed through ``redact_query_secrets`` before it is logged
    or raised.
    """

    def __init__(
        self,
        api_key: str | None,
        timeout_seconds: float = 30.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        base_url: str = GNEWS_BASE_URL,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: GNews API key.
            timeout_seconds: Per-request timeout.
            max_retries: Retries after the first attempt on 429/5xx.
            retry_base_delay: Base delay for exponential backoff.
            base_url: API root.

        Raises:
            FeedConfigError: If no API key is provided.
        """
        if not api_key:
            msg = "GNEWS_API_KEY environment variable is not set"
            raise FeedConfigError(msg)

        self._api_key = api_key
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._base_url = base_url.rstrip("/")
        self._log = logger.bind(component="feed", subcomponent="gnews")

    def fetch(
        self,
        query: str,
        language: str,
        region: str,
        max_items: int,
        since: datetime,
    ) -> list[FeedArticle]:
        """Search for recent articles.

        Args:
            query: Search expression.
            language: Two-letter language code.
            region: Two-letter country code.
            max_items: Maximum number of items (clamped to 1..100).
            since: Only items published at or after this instant.

        Returns:
            Parsed articles in feed order. Malformed entries are skipped.

        Raises:
            FeedError: On transport errors, non-200 responses, or an
                unreadable body.
        """
        params = {
            "apikey": self._api_key,
            "q": query,
            "lang": language,
            "country": region,
            "max": str(max(1, min(max_items, MAX_ITEMS_PER_REQUEST))),
            "from": format_since(since),
        }

        response = self._get_with_retries(f"{self._base_url}/search", params)

        try:
            data = response.json()
        except ValueError as exc:
            msg = "GNews returned a non-JSON body"
            raise FeedError(msg, status_code=response.status_code) from exc

        raw_articles = data.get("articles") if isinstance(data, dict) else None
        if not isinstance(raw_articles, list):
            msg = "GNews response has no articles list"
            raise FeedError(msg, status_code=response.status_code)

        articles = [
            article
            for raw in raw_articles
            if (article := self._parse_article(raw)) is not None
        ]

        self._log.info(
            "feed_fetched",
            returned=len(raw_articles),
            parsed=len(articles),
            total_available=data.get("totalArticles"),
        )
        return articles

    def _get_with_retries(
        self, url: str, params: dict[str, str]
    ) -> httpx.Response:
        last_exc: FeedError | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = httpx.get(url, params=params, timeout=self._timeout)
            except httpx.HTTPError as exc:
                msg = f"GNews request failed: {redact_query_secrets(str(exc))}"
                raise FeedError(msg) from None

            if response.status_code == HTTPStatus.OK:
                return response

            body = redact_query_secrets(response.text[:_ERROR_BODY_PREVIEW])
            last_exc = FeedError(
                f"GNews API error ({response.status_code}): {body}",
                status_code=response.status_code,
            )

            if not _is_retryable(response.status_code) or attempt >= self._max_retries:
                raise last_exc

            delay = self._retry_base_delay * (2**attempt) + random.uniform(0, 1)  # noqa: S311
            self._log.warning(
                "feed_retryable_error",
                status=response.status_code,
                attempt=attempt + 1,
                retry_delay=round(delay, 1),
            )
            time.sleep(delay)

        raise last_exc or FeedError("All retries exhausted")

    def _parse_article(self, raw: object) -> FeedArticle | None:
        """Convert one raw GNews entry, or None if it is unusable."""
        if not isinstance(raw, dict):
            return None

        source = raw.get("source")
        source_name = source.get("name") if isinstance(source, dict) else None

        try:
            published_at = datetime.fromisoformat(str(raw.get("publishedAt")))
            if published_at.tzinfo is None:
                published_at = published_at.replace(tzinfo=UTC)
            return FeedArticle(
                title=raw.get("title") or "",
                description=raw.get("description") or None,
                content=raw.get("content") or None,
                url=raw.get("url") or "",
                image_url=raw.get("image") or None,
                published_at=published_at,
                source_name=source_name or None,
            )
        except (ValueError, ValidationError) as exc:
            self._log.warning(
                "feed_item_skipped",
                url=redact_query_secrets(str(raw.get("url"))),
                error=str(exc)[:_ERROR_BODY_PREVIEW],
            )
            return None
