"""AI module: provider contracts and the Gemini alt-text provider."""

from alttext.ai.schema import ALT_TEXT_PROMPT, GenerateContentRequest, ModelCard
from alttext.ai.vision_base import BaseAltTextProvider, MockAltTextProvider
from alttext.ai.factory import get_alt_text_provider

__all__ = [
    "ALT_TEXT_PROMPT",
    "BaseAltTextProvider",
    "GenerateContentRequest",
    "MockAltTextProvider",
    "ModelCard",
    "get_alt_text_provider",
]
