"""Dispatch coordinator: run the generator synchronously, deferred on upload, or in bulk.

Entry points report success or failure of dispatch only. For deferred and bulk modes,
generation results are observable later by re-reading the image's alt text; per-image
failures go to the log.
"""

import logging
from typing import Any

from alttext.core.errors import ConfigurationError
from alttext.pipeline.generator import AltTextGenerator, GenerationOutcome
from alttext.repository.image_repo import ImageRepository
from alttext.workers.task_queue import BackgroundOperation, BackgroundTaskQueue

_log = logging.getLogger(__name__)

GENERIC_CONFIGURATION_MESSAGE = "Alt text generation is not configured."


def _public_error(outcome: GenerationOutcome) -> str:
    """Message shown to the synchronous caller. Configuration details stay in the log."""
    if isinstance(outcome.error, ConfigurationError):
        return GENERIC_CONFIGURATION_MESSAGE
    if outcome.error is not None:
        return outcome.error.message
    return "Alt text generation failed."


class DispatchCoordinator:
    """
    Decide when the generator runs.

    The coordinator owns no state beyond its collaborators: no job ledger, no per-image
    tracking. queue is normally built with build_task_queue so its generate_alt_text
    handler runs the same generator.
    """

    def __init__(
        self,
        generator: AltTextGenerator,
        image_repo: ImageRepository,
        queue: BackgroundTaskQueue,
    ) -> None:
        self._generator = generator
        self._images = image_repo
        self._queue = queue

    @property
    def queue(self) -> BackgroundTaskQueue:
        return self._queue

    def generate_single(self, image_id: int, force: bool = False) -> dict[str, Any]:
        """
        Synchronous mode: block on the generator and return
        {"success": True, "alt_text": ...} or {"success": False, "error": ...}.
        An image that already has alt text succeeds with its existing text.
        """
        outcome = self._generator.generate(image_id, force=force)
        if outcome.ok:
            return {"success": True, "alt_text": outcome.alt_text, "status": outcome.status.value}
        return {"success": False, "error": _public_error(outcome), "error_kind": outcome.error_kind}

    def on_image_stored(self, image_id: int) -> dict[str, Any]:
        """Deferred mode: queue generation for a newly stored image and return immediately."""
        operation = BackgroundOperation.generate_alt_text
        queued = self._queue.submit(operation, image_id)
        if queued:
            _log.debug(
                "Queued alt text generation for image %s",
                image_id,
                extra={"event": "job_queued", "operation": operation.value, "image_id": image_id},
            )
        return {"success": queued}

    def generate_missing(self) -> dict[str, Any]:
        """
        Bulk mode: queue one deferred job per image/* record with empty or absent alt text.
        Returns once every job is queued; no per-image results.
        """
        image_ids = self._images.list_ids_missing_alt_text()
        if not image_ids:
            _log.info("No images without alt text found.", extra={"event": "backfill_empty"})
            return {"success": True, "dispatched": 0}
        dispatched = 0
        for image_id in image_ids:
            if self._queue.submit(BackgroundOperation.generate_alt_text, image_id):
                dispatched += 1
        _log.info(
            "Alt text backfill started: %s of %s images queued",
            dispatched,
            len(image_ids),
            extra={"event": "backfill_started"},
        )
        return {"success": dispatched == len(image_ids), "dispatched": dispatched}


def build_task_queue(generator: AltTextGenerator, max_workers: int = 4) -> BackgroundTaskQueue:
    """Task queue whose generate_alt_text handler runs the generator with the default (skip-if-present) guard."""
    return BackgroundTaskQueue(
        {BackgroundOperation.generate_alt_text: generator.generate},
        max_workers=max_workers,
    )
