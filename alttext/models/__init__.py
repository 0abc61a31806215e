"""SQLModel table/entity definitions. Used by Repository layer only."""

from alttext.models.entities import IMAGE_MIME_PREFIX, Image, SystemMetadata

__all__ = [
    "IMAGE_MIME_PREFIX",
    "Image",
    "SystemMetadata",
]
