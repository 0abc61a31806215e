"""Background execution: in-process task queue for deferred alt-text generation."""

from alttext.workers.task_queue import BackgroundOperation, BackgroundTaskQueue

__all__ = [
    "BackgroundOperation",
    "BackgroundTaskQueue",
]
