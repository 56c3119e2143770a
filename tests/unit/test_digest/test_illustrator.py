"""Unit tests for best-effort digest illustration."""

from pathlib import Path

from src.digest.illustrator import DigestIllustrator, extension_for
from src.llm.errors import LlmApiError
from src.observability.metrics import PipelineMetrics
from tests.helpers.fakes import FakeImageClient


class TestExtensionFor:
    """Tests for extension_for."""

    def test_known_types(self) -> None:
        """Common image types map to their extensions."""
        assert extension_for("image/png") == ".png"
        assert extension_for("image/jpeg") == ".jpg"

    def test_unknown_type_defaults_to_png(self) -> None:
        """Unknown types fall back to .png."""
        assert extension_for("application/x-unknown") == ".png"


class TestDigestIllustrator:
    """Tests for DigestIllustrator.illustrate."""

    def test_saves_image(self, tmp_path: Path) -> None:
        """Generated bytes are written under the output directory."""
        client = FakeImageClient(image=b"jpeg-bytes", mime_type="image/jpeg")
        illustrator = DigestIllustrator(client, tmp_path / "images")

        outcome = illustrator.illustrate("GPUs everywhere", "Hardware & Gadgets")

        assert outcome.is_generated
        assert outcome.path is not None
        path = Path(outcome.path)
        assert path.parent == tmp_path / "images"
        assert path.suffix == ".jpg"
        assert path.read_bytes() == b"jpeg-bytes"
        assert "Hardware & Gadgets news" in client.prompts[0]

    def test_backend_error_is_absent(self, tmp_path: Path) -> None:
        """Errors become an absent outcome with a reason."""
        PipelineMetrics.reset()
        client = FakeImageClient(error=LlmApiError("No predictions in Imagen response"))

        outcome = DigestIllustrator(client, tmp_path).illustrate("Narrative", None)

        assert not outcome.is_generated
        assert outcome.reason is not None
        assert "No predictions" in outcome.reason
        assert PipelineMetrics.get_instance().image_failures_total == 1

    def test_empty_bytes_is_absent(self, tmp_path: Path) -> None:
        """Empty image data is not saved."""
        outcome = DigestIllustrator(FakeImageClient(image=b""), tmp_path).illustrate(
            "Narrative", None
        )

        assert outcome.path is None
        assert list(tmp_path.iterdir()) == []
