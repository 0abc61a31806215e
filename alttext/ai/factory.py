"""Factory for alt-text providers."""

from alttext.ai.vision_base import BaseAltTextProvider
from alttext.core.config import Settings


def get_alt_text_provider(provider_name: str, settings: Settings | None = None) -> BaseAltTextProvider:
    """Return an alt-text provider by name, configured from settings when given."""
    if provider_name == "mock":
        from alttext.ai.vision_base import MockAltTextProvider

        return MockAltTextProvider()
    if provider_name == "gemini":
        from alttext.ai.vision_gemini import GeminiAltTextProvider

        if settings is None:
            return GeminiAltTextProvider()
        return GeminiAltTextProvider(
            model=settings.gemini_model,
            endpoint=settings.gemini_endpoint,
            timeout_seconds=settings.api_timeout_seconds,
        )
    raise ValueError(f"Unknown alt-text provider: {provider_name}")
