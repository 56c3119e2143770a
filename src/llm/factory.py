"""Factories for generative clients."""

import structlog

from src.llm.errors import LlmAuthError
from src.llm.gemini_client import GeminiApiKeyClient
from src.llm.image_client import GeminiImageClient
from src.llm.protocols import ImageClient, LlmClient


logger = structlog.get_logger()

_MISSING_KEY_MESSAGE = "No Gemini credentials configured (need GEMINI_API_KEY)"


def create_llm_client(
    *,
    api_key: str | None = None,
    model: str = "gemini-2.5-flash",
    timeout_seconds: float = 60.0,
) -> LlmClient:
    """Create a text generation client.

    Args:
        api_key: Gemini API key.
        model: Gemini model identifier.
        timeout_seconds: Per-request timeout.

    Returns:
        An LlmClient implementation ready for use.

    Raises:
        LlmAuthError: If no API key is provided.
    """
    if not api_key:
        raise LlmAuthError(_MISSING_KEY_MESSAGE)

    logger.bind(component="llm", subcomponent="factory").info(
        "llm_client_created", auth_method="api_key", model=model
    )
    return GeminiApiKeyClient(
        api_key=api_key, model=model, timeout_seconds=timeout_seconds
    )


def create_image_client(
    *,
    api_key: str | None = None,
    model: str = "imagen-4.0-generate-001",
    timeout_seconds: float = 120.0,
) -> ImageClient:
    """Create an image generation client.

    Args:
        api_key: Gemini API key.
        model: Imagen model identifier.
        timeout_seconds: Per-request timeout.

    Returns:
        An ImageClient implementation ready for use.

    Raises:
        LlmAuthError: If no API key is provided.
    """
    if not api_key:
        raise LlmAuthError(_MISSING_KEY_MESSAGE)

    logger.bind(component="llm", subcomponent="factory").info(
        "image_client_created", model=model
    )
    return GeminiImageClient(
        api_key=api_key, model=model, timeout_seconds=timeout_seconds
    )
