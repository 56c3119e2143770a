"""In-memory stand-ins for external collaborators."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from src.feed.models import FeedArticle
from src.store.fingerprint import fingerprint
from src.store.models import Article, new_id
from tests.helpers.time import FIXED_DAY, FIXED_NOW


@dataclass
class FakeLlmClient:
    """Returns queued responses; an Exception in the queue is raised."""

    responses: list[str | Exception] = field(default_factory=list)
    model: str = "fake-model"
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        self.calls.append((prompt, system_instruction))
        if not self.responses:
            msg = "FakeLlmClient has no queued response"
            raise AssertionError(msg)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@dataclass
class FakeFeed:
    """Returns a fixed item list, or raises ``error`` when set."""

    items: list[FeedArticle] = field(default_factory=list)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    def fetch(
        self,
        query: str,
        language: str,
        region: str,
        max_items: int,
        since: datetime,
    ) -> list[FeedArticle]:
        self.calls.append(
            {
                "query": query,
                "language": language,
                "region": region,
                "max_items": max_items,
                "since": since,
            }
        )
        if self.error is not None:
            raise self.error
        return list(self.items[:max_items])


@dataclass
class FakeImageClient:
    """Returns fixed bytes, or raises ``error`` when set."""

    image: bytes = b"\x89PNG\r\n\x1a\nfake"
    mime_type: str = "image/png"
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    def generate_image(self, prompt: str) -> tuple[bytes, str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.image, self.mime_type


def make_feed_article(
    title: str = "Startup raises Series A funding round",
    url: str = "https://example.com/story",
    description: str | None = None,
    published_at: datetime | None = None,
    source_name: str | None = "Example News",
) -> FeedArticle:
    """Build a feed item published shortly before FIXED_NOW by default."""
    return FeedArticle(
        title=title,
        description=description,
        url=url,
        published_at=published_at or FIXED_NOW - timedelta(hours=1),
        source_name=source_name,
    )


def make_article(
    title: str = "Chipmaker unveils new GPU",
    url: str | None = None,
    published_at: datetime | None = None,
    topic_id: str | None = None,
    publisher_name: str | None = "Example Wire",
) -> Article:
    """Build a stored article published inside the FIXED_DAY window by default."""
    url = url or f"https://example.com/{new_id()}"
    return Article(
        topic_id=topic_id,
        source_name="gnews",
        title=title,
        publisher_name=publisher_name,
        url=url,
        fingerprint=fingerprint(url),
        published_at=published_at or FIXED_DAY - timedelta(hours=1),
    )
