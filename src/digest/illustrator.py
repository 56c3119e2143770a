"""Best-effort digest illustration."""

import mimetypes
import uuid
from pathlib import Path

import structlog

from src.digest.models import ImageOutcome
from src.digest.prompts import build_image_prompt
from src.llm.protocols import ImageClient
from src.observability.metrics import PipelineMetrics


logger = structlog.get_logger()


def extension_for(mime_type: str) -> str:
    """File extension for an image MIME type (``.png`` when unknown)."""
    if mime_type == "image/jpeg":
        return ".jpg"
    return mimetypes.guess_extension(mime_type) or ".png"


class DigestIllustrator:
    """Generates and saves an illustration for a digest.

    Never raises: every failure becomes ``ImageOutcome.absent``.
    """

    def __init__(self, image_client: ImageClient, output_dir: Path | str) -> None:
        """Initialize the illustrator.

        Args:
            image_client: Image generation client.
            output_dir: Directory where images are written.
        """
        self._client = image_client
        self._output_dir = Path(output_dir)
        self._metrics = PipelineMetrics.get_instance()
        self._log = logger.bind(component="digest", subcomponent="illustrator")

    def illustrate(self, narrative: str, scope_label: str | None) -> ImageOutcome:
        """Generate an image for a narrative.

        Args:
            narrative: Digest narrative.
            scope_label: Topic display name, or None for global.

        Returns:
            ``generated(path)`` on success, ``absent(reason)`` otherwise.
        """
        prompt = build_image_prompt(narrative, scope_label)

        try:
            image, mime_type = self._client.generate_image(prompt)
            if not image:
                return self._absent("image backend returned no data")

            self._output_dir.mkdir(parents=True, exist_ok=True)
            path = self._output_dir / f"{uuid.uuid4()}{extension_for(mime_type)}"
            path.write_bytes(image)
        except Exception as exc:  # noqa: BLE001
            return self._absent(f"{type(exc).__name__}: {exc}")

        self._log.info("digest_image_saved", path=str(path), bytes=len(image))
        return ImageOutcome.generated(str(path))

    def _absent(self, reason: str) -> ImageOutcome:
        self._metrics.record_image_failure()
        self._log.warning("digest_image_skipped", reason=reason)
        return ImageOutcome.absent(reason)
