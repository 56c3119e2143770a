"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.feed.models import DEFAULT_FEED_QUERY


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    # Credentials
    gnews_api_key: str | None = Field(default=None, validation_alias="GNEWS_API_KEY")
    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")

    # Classification cascade
    ai_fallback_enabled: bool = Field(
        default=True, validation_alias="AI_FALLBACK_ENABLED"
    )
    ai_confidence_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = Field(
        default=0.33, validation_alias="AI_CONFIDENCE_THRESHOLD"
    )
    rule_saturation_matches: Annotated[int, Field(ge=1)] = Field(
        default=3, validation_alias="RULE_SATURATION_MATCHES"
    )

    # Ingestion
    ingest_batch_size: Annotated[int, Field(ge=1, le=100)] = Field(
        default=50, validation_alias="INGEST_BATCH_SIZE"
    )
    ingest_lookback_hours: Annotated[int, Field(ge=1)] = Field(
        default=24, validation_alias="INGEST_LOOKBACK_HOURS"
    )
    feed_query: str = Field(default=DEFAULT_FEED_QUERY, validation_alias="FEED_QUERY")
    feed_language: str = Field(default="en", validation_alias="FEED_LANGUAGE")
    feed_region: str = Field(default="us", validation_alias="FEED_REGION")

    # Digests
    digest_max_items: Annotated[int, Field(ge=1)] = Field(
        default=70, validation_alias="DIGEST_MAX_ITEMS"
    )
    digest_lookback_hours: Annotated[int, Field(ge=1)] = Field(
        default=24, validation_alias="DIGEST_LOOKBACK_HOURS"
    )
    image_generation_enabled: bool = Field(
        default=False, validation_alias="IMAGE_GENERATION_ENABLED"
    )
    image_dir: Path = Field(default=Path("data/images"), validation_alias="IMAGE_DIR")

    # Models
    llm_model: str = Field(default="gemini-2.5-flash", validation_alias="LLM_MODEL")
    llm_title_model: str = Field(
        default="gemini-2.5-flash-lite", validation_alias="LLM_TITLE_MODEL"
    )
    image_model: str = Field(
        default="imagen-4.0-generate-001", validation_alias="IMAGE_MODEL"
    )

    # Timeouts (seconds)
    feed_timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = Field(
        default=30.0, validation_alias="FEED_TIMEOUT_SECONDS"
    )
    llm_timeout_seconds: Annotated[float, Field(gt=0.0, le=600.0)] = Field(
        default=60.0, validation_alias="LLM_TIMEOUT_SECONDS"
    )
    image_timeout_seconds: Annotated[float, Field(gt=0.0, le=600.0)] = Field(
        default=120.0, validation_alias="IMAGE_TIMEOUT_SECONDS"
    )

    # Storage
    db_path: Path = Field(
        default=Path("data/news.sqlite"), validation_alias="NEWS_DB_PATH"
    )

    @property
    def ai_configured(self) -> bool:
        """Whether credentials for the generative backend are present."""
        return bool(self.gemini_api_key)

    @property
    def feed_configured(self) -> bool:
        """Whether the content feed credential is present."""
        return bool(self.gnews_api_key)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
