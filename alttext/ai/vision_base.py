"""Abstract base and mock implementation for alt-text providers."""

from abc import ABC, abstractmethod

from alttext.ai.schema import ModelCard


class BaseAltTextProvider(ABC):
    """Abstract base for a vision-language model that describes an image as alt text."""

    @abstractmethod
    def get_model_card(self) -> ModelCard:
        """Return model identity (name, version)."""
        ...

    @abstractmethod
    def describe_image(self, image_bytes: bytes, api_key: str) -> str:
        """
        Send one JPEG image to the model and return the raw text it produced.

        Raises ApiError on transport/status failures and UnexpectedResponseFormat when the
        response does not carry the expected text.
        """
        ...


class MockAltTextProvider(BaseAltTextProvider):
    """Placeholder provider for development and tests. Never calls the network."""

    def __init__(self, text: str = "A placeholder description.") -> None:
        self._text = text
        self.calls = 0

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="mock-provider", version="1.0")

    def describe_image(self, image_bytes: bytes, api_key: str) -> str:
        self.calls += 1
        return self._text
