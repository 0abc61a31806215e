"""Typer CLI commands with repositories and coordinator patched out."""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from alttext import cli
from alttext.core import config as config_module
from alttext.core.config import Settings

pytestmark = [pytest.mark.fast]

runner = CliRunner()


@pytest.fixture(autouse=True)
def _settings():
    prev = config_module._config
    config_module._config = Settings(gemini_api_key=None)
    try:
        yield
    finally:
        config_module._config = prev


@pytest.fixture
def patched(image_repo):
    coordinator = MagicMock()
    with (
        patch.object(cli, "_get_session_factory", return_value=MagicMock()),
        patch.object(cli, "ImageRepository", return_value=image_repo),
        patch.object(cli, "build_coordinator", return_value=coordinator),
        patch.object(cli, "setup_logging"),
    ):
        yield coordinator


def test_generate_prints_alt_text(patched):
    patched.generate_single.return_value = {"success": True, "alt_text": "A red bicycle", "status": "generated"}
    result = runner.invoke(cli.app, ["alt-text", "generate", "3"])
    assert result.exit_code == 0
    assert "A red bicycle" in result.output
    patched.generate_single.assert_called_once_with(3, force=False)
    patched.queue.shutdown.assert_called_once()


def test_generate_failure_exits_nonzero(patched):
    patched.generate_single.return_value = {"success": False, "error": "Failed to get image URL for image 3."}
    result = runner.invoke(cli.app, ["alt-text", "generate", "3"])
    assert result.exit_code == 1
    assert "Failed to get image URL" in result.output


def test_backfill_waits_for_queue(patched, image_repo):
    patched.generate_missing.return_value = {"success": True, "dispatched": 2}
    result = runner.invoke(cli.app, ["alt-text", "backfill"])
    assert result.exit_code == 0
    assert "started for 2 image(s)" in result.output
    patched.queue.drain.assert_called_once()
    patched.queue.shutdown.assert_called_once_with(wait_for_jobs=True)


def test_backfill_nothing_to_do(patched):
    patched.generate_missing.return_value = {"success": True, "dispatched": 0}
    result = runner.invoke(cli.app, ["alt-text", "backfill", "--no-wait"])
    assert result.exit_code == 0
    assert "No images without alt text found." in result.output
    patched.queue.drain.assert_not_called()


def test_image_add_without_generation(patched, image_repo):
    result = runner.invoke(cli.app, ["image", "add", "https://cdn.example/a.png", "--mime-type", "image/png", "--no-generate"])
    assert result.exit_code == 0
    assert "Added image 1" in result.output
    patched.on_image_stored.assert_not_called()
    assert image_repo.get_image(1).mime_type == "image/png"


def test_image_add_generates_and_waits(patched, image_repo):
    def _fill(image_id):
        image_repo.set_alt_text(image_id, "A red bicycle")
        return {"success": True}

    patched.on_image_stored.side_effect = _fill
    result = runner.invoke(cli.app, ["image", "add", "https://cdn.example/a.jpg"])
    assert result.exit_code == 0
    assert "Alt text: A red bicycle" in result.output
    patched.queue.drain.assert_called_once()


def test_image_show_missing(patched):
    result = runner.invoke(cli.app, ["image", "show", "42"])
    assert result.exit_code == 1
    assert "Image not found: 42" in result.output


def test_settings_show_masks_key(patched):
    system_repo = MagicMock()
    system_repo.get_api_key.return_value = "AIzaSyExampleKey1234"
    system_repo.get_schema_version.return_value = "1"
    with patch.object(cli, "SystemMetadataRepository", return_value=system_repo):
        result = runner.invoke(cli.app, ["settings", "show"])
    assert result.exit_code == 0
    assert "AIzaSyExampleKey1234" not in result.output
    assert "AIza" in result.output
    assert "1234" in result.output
    assert "Schema:    1" in result.output


def test_settings_set_api_key(patched):
    system_repo = MagicMock()
    with patch.object(cli, "SystemMetadataRepository", return_value=system_repo):
        result = runner.invoke(cli.app, ["settings", "set-api-key", "new-key"])
    assert result.exit_code == 0
    system_repo.set_api_key.assert_called_once_with("new-key")
