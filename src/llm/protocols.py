"""Protocol interfaces for generative backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class LlmClient(Protocol):
    """Protocol for LLM content generation clients.

    Any client that implements ``generate_content`` with the matching
    signature can be used interchangeably by the classifier and the
    digest writer. Tests substitute simple fakes.
    """

    model: str

    def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Generate text from a prompt.

        Args:
            prompt: User prompt text.
            system_instruction: Optional system-level instruction.

        Returns:
            Generated text from the model.

        Raises:
            LlmApiError: If the API call fails.
        """
        ...


@runtime_checkable
class ImageClient(Protocol):
    """Protocol for image generation clients."""

    def generate_image(self, prompt: str) -> tuple[bytes, str]:
        """Generate a single image from a prompt.

        Args:
            prompt: Image description.

        Returns:
            Tuple of (image bytes, MIME type).

        Raises:
            LlmApiError: If the API call fails.
        """
        ...
