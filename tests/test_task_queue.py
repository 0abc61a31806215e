"""BackgroundTaskQueue: closed operation set, fire-and-forget execution, failure isolation."""

import threading

import pytest

from alttext.workers.task_queue import BackgroundOperation, BackgroundTaskQueue

pytestmark = [pytest.mark.fast]


def test_handlers_must_cover_every_operation():
    with pytest.raises(ValueError, match="generate_alt_text"):
        BackgroundTaskQueue({})


def test_submit_runs_handler_in_background():
    seen = []
    queue = BackgroundTaskQueue({BackgroundOperation.generate_alt_text: seen.append}, max_workers=2)
    try:
        assert queue.submit(BackgroundOperation.generate_alt_text, 7) is True
        assert queue.drain(timeout=5)
    finally:
        queue.shutdown()
    assert seen == [7]


def test_operation_names_from_strings_are_rejected():
    """A string that matches an operation's value is still not an operation."""
    queue = BackgroundTaskQueue({BackgroundOperation.generate_alt_text: lambda _id: None})
    try:
        with pytest.raises(ValueError, match="Unknown background operation"):
            queue.submit("generate_alt_text", 1)  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            queue.submit("os.system", 1)  # type: ignore[arg-type]
    finally:
        queue.shutdown()


def test_submit_does_not_block_on_running_job():
    release = threading.Event()
    started = threading.Event()

    def _handler(_image_id: int) -> None:
        started.set()
        release.wait(timeout=5)

    queue = BackgroundTaskQueue({BackgroundOperation.generate_alt_text: _handler}, max_workers=1)
    try:
        queue.submit(BackgroundOperation.generate_alt_text, 1)
        assert started.wait(timeout=5)
        assert queue.pending_count == 1
        assert queue.drain(timeout=0.05) is False
        release.set()
        assert queue.drain(timeout=5)
        assert queue.pending_count == 0
    finally:
        release.set()
        queue.shutdown()


def test_handler_exception_is_logged_not_raised(caplog):
    def _boom(_image_id: int) -> None:
        raise RuntimeError("database went away")

    queue = BackgroundTaskQueue({BackgroundOperation.generate_alt_text: _boom})
    with caplog.at_level("ERROR", logger="alttext.workers.task_queue"):
        queue.submit(BackgroundOperation.generate_alt_text, 42)
        assert queue.drain(timeout=5)
    queue.shutdown()
    crashed = [r for r in caplog.records if getattr(r, "event", None) == "job_crashed"]
    assert len(crashed) == 1
    assert crashed[0].image_id == 42
    assert crashed[0].exc_info is not None


def test_submit_after_shutdown_returns_false():
    queue = BackgroundTaskQueue({BackgroundOperation.generate_alt_text: lambda _id: None})
    queue.shutdown()
    assert queue.submit(BackgroundOperation.generate_alt_text, 1) is False
