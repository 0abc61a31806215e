"""Wire repositories, provider, fetcher and task queue into a DispatchCoordinator."""

from typing import Callable

from sqlalchemy.orm import Session

from alttext.ai.factory import get_alt_text_provider
from alttext.core.config import Settings
from alttext.core.fetch import ImageFetcher
from alttext.pipeline.dispatch import DispatchCoordinator, build_task_queue
from alttext.pipeline.generator import AltTextGenerator
from alttext.repository.image_repo import ImageRepository
from alttext.repository.system_metadata_repo import SystemMetadataRepository


def make_api_key_resolver(
    system_metadata_repo: SystemMetadataRepository,
    settings: Settings,
) -> Callable[[], str | None]:
    """Key from the settings store first, then from config (YAML or GEMINI_API_KEY)."""

    def _resolve() -> str | None:
        return system_metadata_repo.get_api_key() or settings.gemini_api_key

    return _resolve


def build_coordinator(session_factory: Callable[[], Session], settings: Settings) -> DispatchCoordinator:
    """Build a coordinator with its own background queue sized by max_background_workers."""
    image_repo = ImageRepository(session_factory)
    system_repo = SystemMetadataRepository(session_factory)
    generator = AltTextGenerator(
        image_repo,
        get_alt_text_provider(settings.provider, settings),
        make_api_key_resolver(system_repo, settings),
        fetcher=ImageFetcher(timeout_seconds=settings.fetch_timeout_seconds),
    )
    queue = build_task_queue(generator, max_workers=settings.max_background_workers)
    return DispatchCoordinator(generator, image_repo, queue)
