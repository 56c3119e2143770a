"""Ordered, statically defined topic taxonomy.

The table is a tuple so iteration order is fixed. The rule classifier
breaks ties by this order, so reordering entries changes tagging results.
"""

from typing import Annotated

from pydantic import Field, model_validator

from src.data_model import StrictBaseModel


class TopicDefinition(StrictBaseModel):
    """Definition of a single taxonomy topic.

    Attributes:
        slug: Stable identifier used in URLs and AI responses.
        name: Human-readable display name.
        sort_order: Display position.
        keywords: Lowercase phrases counted by the rule classifier.
        description: Optional longer description.
    """

    slug: Annotated[str, Field(min_length=1, max_length=50, pattern=r"^[a-z0-9-]+$")]
    name: Annotated[str, Field(min_length=1, max_length=100)]
    sort_order: Annotated[int, Field(ge=0)]
    keywords: Annotated[tuple[str, ...], Field(min_length=1)]
    description: str | None = None

    @model_validator(mode="after")
    def validate_keywords(self) -> "TopicDefinition":
        """Ensure keywords are non-empty and already lowercase."""
        for keyword in self.keywords:
            if not keyword.strip():
                msg = "Keywords must be non-empty strings"
                raise ValueError(msg)
            if keyword != keyword.lower():
                msg = f"Keyword must be lowercase: {keyword!r}"
                raise ValueError(msg)
        return self


TAXONOMY: tuple[TopicDefinition, ...] = (
    TopicDefinition(
        slug="ai-ml",
        name="AI & Machine Learning",
        sort_order=1,
        keywords=(
            "artificial intelligence",
            "machine learning",
            "deep learning",
            "neural network",
            "neural",
            "chatgpt",
            "gpt",
            "gpt-4",
            "gpt-5",
            "openai",
            "anthropic",
            "claude",
            "gemini",
            "llm",
            "large language model",
            "generative ai",
            "midjourney",
            "stable diffusion",
            "dall-e",
            "copilot",
            "ai model",
            "transformer",
            "nlp",
            "computer vision",
            "tensorflow",
            "pytorch",
        ),
    ),
    TopicDefinition(
        slug="startups",
        name="Startups & Funding",
        sort_order=2,
        keywords=(
            "startup",
            "funding round",
            "series a",
            "series b",
            "series c",
            "seed funding",
            "venture capital",
            "vc",
            "valuation",
            "unicorn",
            "ipo",
            "acquisition",
            "acquired",
            "merger",
            "y combinator",
            "techstars",
            "accelerator",
            "incubator",
            "fundraise",
            "investor",
            "pitch deck",
        ),
    ),
    TopicDefinition(
        slug="programming",
        name="Programming & Dev Tools",
        sort_order=3,
        keywords=(
            "programming",
            "developer",
            "software engineer",
            "javascript",
            "typescript",
            "python",
            "rust",
            "golang",
            "react",
            "vue",
            "angular",
            "node.js",
            "api",
            "github",
            "gitlab",
            "open source",
            "framework",
            "library",
            "sdk",
            "devops",
            "ci/cd",
            "docker",
            "kubernetes",
            "aws",
            "azure",
            "gcp",
            "serverless",
            "database",
            "postgresql",
            "mongodb",
            "redis",
            "graphql",
            "rest api",
            "microservices",
        ),
    ),
    TopicDefinition(
        slug="cybersecurity",
        name="Cybersecurity",
        sort_order=4,
        keywords=(
            "cybersecurity",
            "security",
            "hack",
            "hacker",
            "breach",
            "data leak",
            "vulnerability",
            "malware",
            "ransomware",
            "phishing",
            "zero-day",
            "exploit",
            "encryption",
            "privacy",
            "gdpr",
            "password",
            "authentication",
            "firewall",
            "vpn",
            "ddos",
            "cyber attack",
        ),
    ),
    TopicDefinition(
        slug="big-tech",
        name="Big Tech",
        sort_order=5,
        keywords=(
            "apple",
            "google",
            "microsoft",
            "amazon",
            "meta",
            "facebook",
            "netflix",
            "tesla",
            "nvidia",
            "intel",
            "amd",
            "qualcomm",
            "samsung",
            "iphone",
            "android",
            "windows",
            "macos",
            "ios",
            "pixel",
            "surface",
            "alexa",
            "siri",
            "tim cook",
            "sundar pichai",
            "satya nadella",
            "mark zuckerberg",
            "elon musk",
            "jeff bezos",
        ),
    ),
    TopicDefinition(
        slug="crypto",
        name="Crypto & Web3",
        sort_order=6,
        keywords=(
            "crypto",
            "cryptocurrency",
            "bitcoin",
            "ethereum",
            "blockchain",
            "web3",
            "nft",
            "defi",
            "decentralized",
            "token",
            "wallet",
            "binance",
            "coinbase",
            "solana",
            "cardano",
            "dogecoin",
            "mining",
            "staking",
            "smart contract",
            "dao",
            "metaverse",
        ),
    ),
    TopicDefinition(
        slug="hardware",
        name="Hardware & Gadgets",
        sort_order=7,
        keywords=(
            "hardware",
            "gadget",
            "device",
            "smartphone",
            "laptop",
            "tablet",
            "wearable",
            "smartwatch",
            "headphone",
            "earbuds",
            "vr headset",
            "ar glasses",
            "chip",
            "processor",
            "gpu",
            "cpu",
            "memory",
            "ssd",
            "display",
            "oled",
            "battery",
            "charger",
            "robot",
            "drone",
            "ev",
            "electric vehicle",
        ),
    ),
    TopicDefinition(
        slug="science",
        name="Science & Space",
        sort_order=8,
        keywords=(
            "science",
            "space",
            "nasa",
            "spacex",
            "rocket",
            "satellite",
            "mars",
            "moon",
            "asteroid",
            "telescope",
            "quantum",
            "physics",
            "biology",
            "climate",
            "research",
            "discovery",
            "experiment",
            "laboratory",
            "scientist",
            "breakthrough",
        ),
    ),
)


def topic_slugs() -> tuple[str, ...]:
    """Get taxonomy slugs in iteration order."""
    return tuple(topic.slug for topic in TAXONOMY)


def get_topic_definition(slug: str) -> TopicDefinition | None:
    """Look up a taxonomy topic by slug.

    Args:
        slug: Topic slug.

    Returns:
        The definition, or None if the slug is not in the taxonomy.
    """
    for topic in TAXONOMY:
        if topic.slug == slug:
            return topic
    return None
