"""Pydantic data contracts for the provider model card and the generateContent request body."""

from pydantic import BaseModel, ConfigDict, Field


ALT_TEXT_PROMPT = (
    "Describe the following image for use as alt text. "
    "Return just the text to be used in the alt attribute."
)


class ModelCard(BaseModel):
    """Metadata identifying the model that produced alt text."""

    name: str
    version: str


class InlineData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(alias="mimeType")
    data: str


class Part(BaseModel):
    """One request part: either text or inline image data."""

    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    inline_data: InlineData | None = Field(default=None, alias="inlineData")


class Content(BaseModel):
    parts: list[Part]


class GenerateContentRequest(BaseModel):
    """Body of a generateContent call: one content block holding the prompt and the image."""

    contents: list[Content]

    @classmethod
    def for_image(cls, prompt: str, image_b64: str, mime_type: str = "image/jpeg") -> "GenerateContentRequest":
        return cls(
            contents=[
                Content(
                    parts=[
                        Part(text=prompt),
                        Part(inline_data=InlineData(mime_type=mime_type, data=image_b64)),
                    ]
                )
            ]
        )

    def to_payload(self) -> dict:
        """Serialize with the provider's camelCase names, omitting unset part fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
