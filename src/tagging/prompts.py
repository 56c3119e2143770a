"""Prompt templates for AI topic classification."""

from collections.abc import Sequence

from src.taxonomy import TopicDefinition


SYSTEM_INSTRUCTION = (
    "You are a tech news categorizer. "
    "Respond ONLY with a JSON object, no markdown fences or extra text."
)

_CLASSIFY_TEMPLATE = """Analyze the following article and assign it to the most appropriate topic.

Available topics:
{topics_section}

Article title: {title}
{description_line}
Rules:
- Choose the single best-matching topic
- If the article doesn't clearly fit any topic, set topic_slug to null
- Confidence should be 0.0-1.0 based on how well it matches
- Provide brief reasoning for your choice

Respond with exactly this JSON shape:
{{"topic_slug": "<slug or null>", "confidence": <0.0-1.0>, "rationale": "<one sentence>"}}"""


def format_topics_section(taxonomy: Sequence[TopicDefinition]) -> str:
    """Render the taxonomy as ``- slug: name`` lines."""
    return "\n".join(f"- {topic.slug}: {topic.name}" for topic in taxonomy)


def build_classification_prompt(
    taxonomy: Sequence[TopicDefinition],
    title: str,
    description: str | None = None,
) -> str:
    """Build the classification prompt for one article.

    Args:
        taxonomy: Ordered topic definitions offered to the model.
        title: Article title.
        description: Optional article description.

    Returns:
        Prompt text.
    """
    description_line = f"Article description: {description}\n" if description else ""
    return _CLASSIFY_TEMPLATE.format(
        topics_section=format_topics_section(taxonomy),
        title=title,
        description_line=description_line,
    )
