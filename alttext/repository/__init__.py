"""Repository layer: database access only. No ORM calls in business logic."""

from alttext.repository.image_repo import ImageRepository
from alttext.repository.system_metadata_repo import SystemMetadataRepository

__all__ = [
    "ImageRepository",
    "SystemMetadataRepository",
]
