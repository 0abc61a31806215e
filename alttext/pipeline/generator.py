"""Alt-text generator: resolve image, guard on existing alt text, call the provider, persist.

Every invocation performs at most one image fetch, one provider call and one metadata
write. Failures are terminal for the invocation and are returned as a failed outcome;
nothing is retried here.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from alttext.ai.vision_base import BaseAltTextProvider
from alttext.core.errors import (
    AltTextError,
    ConfigurationError,
    ResolutionError,
    UnexpectedResponseFormat,
)
from alttext.core.fetch import ImageFetcher
from alttext.core.sanitize import sanitize_alt_text
from alttext.models.entities import IMAGE_MIME_PREFIX
from alttext.repository.image_repo import ImageRepository

_log = logging.getLogger(__name__)


class GenerationStatus(str, Enum):
    generated = "generated"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True)
class GenerationOutcome:
    """Result of one generate() call. alt_text is set for generated and skipped; error for failed."""

    image_id: int
    status: GenerationStatus
    alt_text: str | None = None
    error: AltTextError | None = None

    @property
    def ok(self) -> bool:
        return self.status != GenerationStatus.failed

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error is not None else None

    @classmethod
    def generated(cls, image_id: int, alt_text: str) -> "GenerationOutcome":
        return cls(image_id=image_id, status=GenerationStatus.generated, alt_text=alt_text)

    @classmethod
    def skipped(cls, image_id: int, alt_text: str | None) -> "GenerationOutcome":
        return cls(image_id=image_id, status=GenerationStatus.skipped, alt_text=alt_text)

    @classmethod
    def failed(cls, image_id: int, error: AltTextError) -> "GenerationOutcome":
        return cls(image_id=image_id, status=GenerationStatus.failed, error=error)


class AltTextGenerator:
    """
    Generate and store alt text for one image at a time.

    api_key_resolver is called on every invocation so that a key saved through the settings
    surface takes effect without a restart.
    """

    def __init__(
        self,
        image_repo: ImageRepository,
        provider: BaseAltTextProvider,
        api_key_resolver: Callable[[], str | None],
        fetcher: ImageFetcher | None = None,
    ) -> None:
        self._images = image_repo
        self._provider = provider
        self._resolve_api_key = api_key_resolver
        self._fetcher = fetcher if fetcher is not None else ImageFetcher()

    def generate(self, image_id: int, force: bool = False) -> GenerationOutcome:
        """
        Run the pipeline for image_id and return its outcome. Never raises AltTextError.

        When force is False (the default) an image that already has alt text is skipped
        without any network call. force=True regenerates and overwrites.
        """
        try:
            outcome = self._generate(image_id, force)
        except AltTextError as e:
            e.image_id = image_id
            _log.warning(
                "Alt text generation failed for image %s: %s",
                image_id,
                e.message,
                extra={"event": "alt_text_failed", "image_id": image_id, "error_kind": e.kind},
            )
            return GenerationOutcome.failed(image_id, e)
        if outcome.status == GenerationStatus.generated:
            card = self._provider.get_model_card()
            model = f"{card.name}/{card.version}"
            _log.info(
                "Generated alt text for image %s with %s",
                image_id,
                model,
                extra={"event": "alt_text_generated", "image_id": image_id, "model": model},
            )
        else:
            _log.debug(
                "Image %s already has alt text; skipped",
                image_id,
                extra={"event": "alt_text_skipped", "image_id": image_id},
            )
        return outcome

    def _generate(self, image_id: int, force: bool) -> GenerationOutcome:
        api_key = self._resolve_api_key()
        if not api_key:
            raise ConfigurationError("Gemini API key not configured.")

        image = self._images.get_image(image_id)
        if image is None or not image.url:
            raise ResolutionError(f"Failed to get image URL for image {image_id}.")
        if not image.mime_type.startswith(IMAGE_MIME_PREFIX):
            raise ResolutionError(f"Record {image_id} is not an image (mime type {image.mime_type!r}).")

        if not force and not image.needs_alt_text:
            return GenerationOutcome.skipped(image_id, image.alt_text)

        jpeg = self._fetcher.fetch_jpeg(image.url)
        raw = self._provider.describe_image(jpeg, api_key)
        alt_text = sanitize_alt_text(raw)
        if not alt_text:
            raise UnexpectedResponseFormat("Gemini API returned empty alt text.")

        if not self._images.set_alt_text(image_id, alt_text):
            raise ResolutionError(f"Image {image_id} disappeared before alt text could be saved.")
        return GenerationOutcome.generated(image_id, alt_text)
