"""HTTPS image fetcher. TLS certificates are always verified; every request carries a timeout.

Uses a persistent requests.Session with connection pooling so bulk backfills reuse
connections to the media host. The body is streamed and the whole fetch is held to
timeout_seconds; requests' own timeout only bounds the connect and each socket read.
"""

import logging
from io import BytesIO
from time import monotonic

import requests
from PIL import Image, UnidentifiedImageError

from alttext.core.errors import FetchError

_log = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 30.0
JPEG_MIME_TYPE = "image/jpeg"
CHUNK_SIZE = 64 * 1024


def to_jpeg(content: bytes) -> bytes:
    """
    Return `content` as JPEG bytes. JPEG input is passed through untouched; anything Pillow
    can decode is converted to RGB and re-encoded. Raises FetchError when undecodable or
    when the image exceeds Pillow's decompression-bomb pixel limit.
    """
    try:
        with Image.open(BytesIO(content)) as img:
            if img.format == "JPEG":
                return content
            image = img.convert("RGB") if img.mode != "RGB" else img.copy()
    except Image.DecompressionBombError as e:
        raise FetchError(f"Image is too large to decode: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise FetchError(f"Image content could not be decoded: {e}") from e
    buffered = BytesIO()
    image.save(buffered, format="JPEG", quality=95)
    return buffered.getvalue()


class ImageFetcher:
    """Fetch raw image bytes from a public URL."""

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_FETCH_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        if session is None:
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=20)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self._session = session

    def fetch(self, url: str) -> bytes:
        """GET `url` and return the body. Any transport, TLS, status or timeout failure raises FetchError."""
        deadline = monotonic() + self._timeout
        try:
            resp = self._session.get(url, timeout=self._timeout, verify=True, stream=True)
            try:
                resp.raise_for_status()
                content = self._read_body(resp, url, deadline)
            finally:
                resp.close()
        except requests.Timeout as e:
            raise FetchError(f"Timed out fetching image after {self._timeout}s: {url}") from e
        except requests.exceptions.SSLError as e:
            raise FetchError(f"TLS verification failed fetching image: {url}") from e
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch image {url}: {e}") from e
        if not content:
            raise FetchError(f"Image URL returned an empty body: {url}")
        _log.debug("Fetched %s bytes from %s", len(content), url)
        return content

    def _read_body(self, resp: requests.Response, url: str, deadline: float) -> bytes:
        chunks = []
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            chunks.append(chunk)
            if monotonic() > deadline:
                raise FetchError(f"Timed out fetching image after {self._timeout}s: {url}")
        return b"".join(chunks)

    def fetch_jpeg(self, url: str) -> bytes:
        """Fetch `url` and normalize the bytes to JPEG."""
        return to_jpeg(self.fetch(url))
