"""Fixed topic taxonomy."""

from src.taxonomy.topics import (
    TAXONOMY,
    TopicDefinition,
    get_topic_definition,
    topic_slugs,
)


__all__ = [
    "TAXONOMY",
    "TopicDefinition",
    "get_topic_definition",
    "topic_slugs",
]
