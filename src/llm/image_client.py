"""Imagen client for digest illustrations."""

import base64
import binascii
from http import HTTPStatus

import httpx
import structlog

from src.llm.errors import LlmApiError
from src.llm.gemini_client import BASE_URL


logger = structlog.get_logger()

DEFAULT_IMAGE_MIME_TYPE = "image/png"


class GeminiImageClient:
    """Generates images through the Imagen ``:predict`` endpoint.

    A single attempt is made per call; illustration is best-effort so
    callers treat any failure as "no image".
    """

    def __init__(
        self,
        api_key: str,
        model: str = "imagen-4.0-generate-001",
        timeout_seconds: float = 120.0,
        aspect_ratio: str = "16:9",
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            model: Imagen model identifier.
            timeout_seconds: Per-request timeout.
            aspect_ratio: Requested aspect ratio.
        """
        self._api_key = api_key
        self.model = model
        self._timeout = timeout_seconds
        self._aspect_ratio = aspect_ratio
        self._log = logger.bind(component="llm", subcomponent="imagen")

    def generate_image(self, prompt: str) -> tuple[bytes, str]:
        """Generate one image.

        Args:
            prompt: Image description.

        Returns:
            Tuple of (decoded image bytes, MIME type).

        Raises:
            LlmApiError: On transport errors, non-200 responses, or a
                response without image data.
        """
        url = f"{BASE_URL}/{self.model}:predict"
        request_body = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": 1, "aspectRatio": self._aspect_ratio},
        }

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
            msg = f"Imagen request failed: {exc}"
            raise LlmApiError(msg) from exc

        if response.status_code != HTTPStatus.OK:
            msg = f"Imagen API returned {response.status_code}"
            raise LlmApiError(msg, status_code=response.status_code)

        predictions = response.json().get("predictions") or []
        if not predictions:
            msg = "No predictions in Imagen response"
            raise LlmApiError(msg)

        encoded = predictions[0].get("bytesBase64Encoded")
        if not encoded:
            msg = "No image bytes in first prediction"
            raise LlmApiError(msg)

        try:
            image = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = "Invalid base64 image payload"
            raise LlmApiError(msg) from exc

        mime_type = predictions[0].get("mimeType") or DEFAULT_IMAGE_MIME_TYPE
        self._log.debug("image_generated", bytes=len(image), mime_type=mime_type)
        return image, mime_type
