"""Prompt templates for digest writing and illustration."""

from collections.abc import Sequence
from datetime import datetime

from src.store.models import Article


_DIGEST_TEMPLATE = """You are a tech news editor. Write a brief daily digest of today's {scope}.

Date: {date}
{topic_line}
Articles:
{articles_section}

Instructions:
- Write 2-3 short paragraphs MAX (under 150 words total)
- Lead with the biggest story
- Be direct and punchy - no fluff
- Synthesize themes, don't list headlines
- Skip minor stories if needed

Write the digest:"""

_TITLE_TEMPLATE = "Write a catchy 5-7 word title for this digest:\n\n{narrative}\n\nTitle:"

_IMAGE_TEMPLATE = (
    "Editorial illustration for a {scope} digest. Abstract, modern, no text or "
    "logos. Themes: {summary}"
)

_IMAGE_SUMMARY_CHARS = 400


def scope_phrase(scope_label: str | None) -> str:
    """``<topic> news`` for a topic scope, ``tech news`` for the global one."""
    return f"{scope_label} news" if scope_label else "tech news"


def format_digest_date(date: datetime) -> str:
    """Format like ``Tuesday, June 13, 2017``."""
    return f"{date:%A, %B} {date.day}, {date.year}"


def format_article(index: int, article: Article) -> str:
    """Render one numbered article entry."""
    line = f'{index}. "{article.title}"'
    if article.publisher_name:
        line += f" ({article.publisher_name})"
    if article.description:
        line += f"\n   {article.description}"
    return line


def build_digest_prompt(
    articles: Sequence[Article],
    scope_label: str | None,
    date: datetime,
) -> str:
    """Build the summarization prompt.

    Args:
        articles: Candidate items, newest first.
        scope_label: Topic display name, or None for the global digest.
        date: Digest date key.

    Returns:
        Prompt text.
    """
    return _DIGEST_TEMPLATE.format(
        scope=scope_phrase(scope_label),
        date=format_digest_date(date),
        topic_line=f"Topic: {scope_label}\n" if scope_label else "",
        articles_section="\n\n".join(
            format_article(i, article) for i, article in enumerate(articles, start=1)
        ),
    )


def build_title_prompt(narrative: str) -> str:
    """Build the title prompt for a finished narrative."""
    return _TITLE_TEMPLATE.format(narrative=narrative)


def build_image_prompt(narrative: str, scope_label: str | None) -> str:
    """Build the illustration prompt from the narrative's opening."""
    summary = " ".join(narrative.split())[:_IMAGE_SUMMARY_CHARS]
    return _IMAGE_TEMPLATE.format(scope=scope_phrase(scope_label), summary=summary)
