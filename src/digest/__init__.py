"""Digest synthesis: writer, illustrator, synthesizer, and batch coordinator."""

from src.digest.coordinator import BatchDigestCoordinator, DigestTarget
from src.digest.errors import DigestGenerationError
from src.digest.illustrator import DigestIllustrator
from src.digest.models import (
    DEFAULT_DIGEST_TITLE,
    BatchDigestResult,
    ImageOutcome,
    SynthesisResult,
)
from src.digest.synthesizer import DigestSynthesizer, truncate_to_day
from src.digest.writer import DigestWriter


__all__ = [
    "DEFAULT_DIGEST_TITLE",
    "BatchDigestCoordinator",
    "BatchDigestResult",
    "DigestGenerationError",
    "DigestIllustrator",
    "DigestSynthesizer",
    "DigestTarget",
    "DigestWriter",
    "ImageOutcome",
    "SynthesisResult",
    "truncate_to_day",
]
