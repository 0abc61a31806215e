"""Alt-text provider that calls the Gemini generateContent REST endpoint.

The API key travels as the `key` query parameter. One request per image, no retries.
Uses a persistent requests.Session with connection pooling so bulk backfills do not open
a new TLS connection per image.
"""

import base64
import logging
from typing import Any

import requests

from alttext.ai.schema import ALT_TEXT_PROMPT, GenerateContentRequest, ModelCard
from alttext.ai.vision_base import BaseAltTextProvider
from alttext.core.config import DEFAULT_GEMINI_ENDPOINT, DEFAULT_GEMINI_MODEL
from alttext.core.errors import ApiError, UnexpectedResponseFormat

_log = logging.getLogger(__name__)

DEFAULT_API_TIMEOUT = 60.0


def _error_message(resp: requests.Response) -> str:
    """Message from the provider's {"error": {"message": ...}} envelope, else the HTTP reason."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
            return err["message"]
    return f"HTTP {resp.status_code} {resp.reason or ''}".strip()


def extract_text(data: Any) -> str:
    """Return candidates[0].content.parts[0].text or raise UnexpectedResponseFormat."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise UnexpectedResponseFormat("Gemini API response format unexpected.") from e
    if not isinstance(text, str):
        raise UnexpectedResponseFormat("Gemini API response text is not a string.")
    return text


class GeminiAltTextProvider(BaseAltTextProvider):
    """Describe images with a Gemini model over HTTPS."""

    def __init__(
        self,
        model: str = DEFAULT_GEMINI_MODEL,
        endpoint: str = DEFAULT_GEMINI_ENDPOINT,
        timeout_seconds: float = DEFAULT_API_TIMEOUT,
        prompt: str = ALT_TEXT_PROMPT,
        session: requests.Session | None = None,
    ) -> None:
        self._model = model
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout_seconds
        self._prompt = prompt
        if session is None:
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=20)
            session.mount("https://", adapter)
        self._session = session

    @property
    def url(self) -> str:
        return f"{self._endpoint}/models/{self._model}:generateContent"

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="gemini", version=self._model)

    def build_payload(self, image_bytes: bytes) -> dict:
        b64 = base64.b64encode(image_bytes).decode()
        return GenerateContentRequest.for_image(self._prompt, b64).to_payload()

    def _post(self, payload: dict, api_key: str) -> Any:
        """POST the payload and return parsed JSON. Raises ApiError or UnexpectedResponseFormat."""
        try:
            resp = self._session.post(
                self.url,
                params={"key": api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.Timeout as e:
            raise ApiError(f"Gemini API request timed out after {self._timeout}s") from e
        except requests.RequestException as e:
            # Exception text may echo the URL, which carries the key
            raise ApiError(f"Gemini API request failed: {type(e).__name__}") from e
        if not resp.ok:
            raise ApiError(_error_message(resp), status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise UnexpectedResponseFormat("Gemini API response is not valid JSON.") from e

    def describe_image(self, image_bytes: bytes, api_key: str) -> str:
        data = self._post(self.build_payload(image_bytes), api_key)
        text = extract_text(data)
        _log.debug("Gemini returned %s characters", len(text))
        return text
