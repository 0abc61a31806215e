"""SQLModel table/entity definitions: media images and the key/value settings store."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


IMAGE_MIME_PREFIX = "image/"


class Image(SQLModel, table=True):
    """One stored media item. alt_text is NULL or '' until described."""

    __tablename__ = "image"

    id: int | None = Field(default=None, primary_key=True)
    filename: str = ""
    url: str = Field(nullable=False)
    mime_type: str = Field(nullable=False, index=True)
    alt_text: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith(IMAGE_MIME_PREFIX)

    @property
    def needs_alt_text(self) -> bool:
        return not (self.alt_text or "").strip()


class SystemMetadata(SQLModel, table=True):
    """Key/value store for system-wide settings (schema_version, provider API key). Standalone, no FK."""

    __tablename__ = "system_metadata"

    key: str = Field(primary_key=True)
    value: str = ""
