"""Error taxonomy for alt-text generation. Every error is scoped to one image's attempt."""


class AltTextError(Exception):
    """Base for generation failures. `kind` is the stable name used in logs and API payloads."""

    kind = "alt_text_error"

    def __init__(self, message: str, *, image_id: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.image_id = image_id


class ConfigurationError(AltTextError):
    """The provider API key is not configured."""

    kind = "configuration_error"


class ResolutionError(AltTextError):
    """The image record or its URL could not be resolved."""

    kind = "resolution_error"


class FetchError(AltTextError):
    """The image bytes could not be fetched or decoded."""

    kind = "fetch_error"


class ApiError(AltTextError):
    """The provider call failed at transport level or returned a non-success status."""

    kind = "api_error"

    def __init__(
        self,
        message: str,
        *,
        image_id: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, image_id=image_id)
        self.status_code = status_code


class UnexpectedResponseFormat(AltTextError):
    """The provider response did not contain candidates[0].content.parts[0].text."""

    kind = "unexpected_response_format"
