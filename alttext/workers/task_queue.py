"""In-process background task queue: a thread pool running a closed set of operations.

Jobs are fire-and-forget. There are no job ids, no cancellation and no deduplication;
two jobs for the same image may run concurrently. Handler failures are logged, never raised
to the submitter.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Callable, Mapping

_log = logging.getLogger(__name__)


class BackgroundOperation(str, Enum):
    """Every operation the queue may run. Handlers are bound per member, never looked up by name."""

    generate_alt_text = "generate_alt_text"


Handler = Callable[[int], object]


class BackgroundTaskQueue:
    """
    Submit (operation, image_id) jobs to a ThreadPoolExecutor.

    handlers must cover every BackgroundOperation member; a missing handler is a
    construction-time error rather than a runtime surprise.
    """

    def __init__(
        self,
        handlers: Mapping[BackgroundOperation, Handler],
        max_workers: int = 4,
        thread_name_prefix: str = "alttext-bg",
    ) -> None:
        missing = [op.value for op in BackgroundOperation if op not in handlers]
        if missing:
            raise ValueError(f"No handler registered for background operation(s): {', '.join(missing)}")
        self._handlers = dict(handlers)
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix=thread_name_prefix)
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self._closed = False

    def submit(self, operation: BackgroundOperation, image_id: int) -> bool:
        """
        Queue one job. Returns False when the queue has been shut down.
        Raises ValueError for anything that is not a BackgroundOperation member.
        """
        if not isinstance(operation, BackgroundOperation):
            raise ValueError(f"Unknown background operation: {operation!r}")
        handler = self._handlers[operation]
        with self._lock:
            if self._closed:
                _log.warning(
                    "Background queue is shut down; dropping %s for image %s",
                    operation.value,
                    image_id,
                    extra={"event": "job_rejected", "operation": operation.value, "image_id": image_id},
                )
                return False
            future = self._executor.submit(self._run, operation, handler, image_id)
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return True

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(self, operation: BackgroundOperation, handler: Handler, image_id: int) -> None:
        try:
            handler(image_id)
        except Exception:
            _log.error(
                "Background %s failed for image %s",
                operation.value,
                image_id,
                exc_info=True,
                extra={"event": "job_crashed", "operation": operation.value, "image_id": image_id},
            )

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for jobs submitted so far. Returns True when all finished within timeout."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _done, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_jobs: bool = True) -> None:
        """Stop accepting jobs. Without wait_for_jobs, jobs that have not started are cancelled."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait_for_jobs, cancel_futures=not wait_for_jobs)
