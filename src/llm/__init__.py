"""Generative text and image backends."""

from src.llm.errors import LlmApiError, LlmAuthError, LlmProcessingError
from src.llm.factory import create_image_client, create_llm_client
from src.llm.gemini_client import GeminiApiKeyClient
from src.llm.image_client import GeminiImageClient
from src.llm.protocols import ImageClient, LlmClient


__all__ = [
    "GeminiApiKeyClient",
    "GeminiImageClient",
    "ImageClient",
    "LlmApiError",
    "LlmAuthError",
    "LlmClient",
    "LlmProcessingError",
    "create_image_client",
    "create_llm_client",
]
