"""ImageFetcher and JPEG normalization: verified TLS, timeouts, failures mapped to FetchError."""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from alttext.core.errors import FetchError
from alttext.core import fetch as fetch_module
from alttext.core.fetch import ImageFetcher, to_jpeg
from conftest import jpeg_bytes, png_bytes

pytestmark = [pytest.mark.fast]


def _session_returning(content: bytes = b"data", status_error: Exception | None = None) -> MagicMock:
    resp = MagicMock()
    resp.iter_content.return_value = [content] if content else []
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    session = MagicMock()
    session.get.return_value = resp
    return session


def test_fetch_verifies_certificates_and_sets_timeout():
    session = _session_returning(b"bytes")
    fetcher = ImageFetcher(timeout_seconds=7.5, session=session)
    assert fetcher.fetch("https://cdn.example/a.jpg") == b"bytes"
    session.get.assert_called_once_with("https://cdn.example/a.jpg", timeout=7.5, verify=True, stream=True)
    session.get.return_value.close.assert_called_once()


@pytest.mark.parametrize(
    "error",
    [
        requests.Timeout("read timed out"),
        requests.exceptions.SSLError("certificate verify failed"),
        requests.ConnectionError("connection refused"),
    ],
)
def test_transport_failures_are_fetch_errors(error):
    session = MagicMock()
    session.get.side_effect = error
    with pytest.raises(FetchError):
        ImageFetcher(session=session).fetch("https://cdn.example/a.jpg")


def test_http_error_status_is_fetch_error():
    session = _session_returning(status_error=requests.HTTPError("404 Client Error: Not Found"))
    with pytest.raises(FetchError, match="404"):
        ImageFetcher(session=session).fetch("https://cdn.example/missing.jpg")


def test_empty_body_is_fetch_error():
    with pytest.raises(FetchError, match="empty body"):
        ImageFetcher(session=_session_returning(b"")).fetch("https://cdn.example/a.jpg")


def test_to_jpeg_passes_jpeg_through_unchanged():
    data = jpeg_bytes()
    assert to_jpeg(data) is data


def test_to_jpeg_converts_png_with_alpha():
    out = to_jpeg(png_bytes())
    with Image.open(BytesIO(out)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"


def test_to_jpeg_rejects_undecodable_bytes():
    with pytest.raises(FetchError, match="could not be decoded"):
        to_jpeg(b"<svg xmlns='http://www.w3.org/2000/svg'/>")


def test_fetch_jpeg_normalizes_fetched_bytes():
    fetcher = ImageFetcher(session=_session_returning(png_bytes()))
    out = fetcher.fetch_jpeg("https://cdn.example/a.png")
    assert out[:2] == b"\xff\xd8"


def test_slow_body_exceeding_total_deadline_is_fetch_error(monkeypatch):
    """A server trickling bytes past the deadline fails even though no single read times out."""
    session = MagicMock()
    resp = session.get.return_value
    resp.iter_content.return_value = [b"a", b"b", b"c"]
    clock = iter([0.0, 3.0, 6.0])
    monkeypatch.setattr(fetch_module, "monotonic", lambda: next(clock))

    with pytest.raises(FetchError, match="Timed out"):
        ImageFetcher(timeout_seconds=5, session=session).fetch("https://cdn.example/slow.jpg")
    resp.close.assert_called_once()


def test_to_jpeg_decompression_bomb_is_fetch_error(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 4)
    with pytest.raises(FetchError, match="too large"):
        to_jpeg(png_bytes((8, 8)))
