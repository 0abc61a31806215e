"""Image repository: register images, read URL/alt text, write alt text, list images missing alt text."""

from collections.abc import Sequence
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from alttext.models.entities import IMAGE_MIME_PREFIX, Image


def _missing_alt_text_clause():
    return or_(Image.alt_text.is_(None), func.trim(Image.alt_text) == "")


class ImageRepository:
    """
    Database access for the image table.

    alt_text is the only column this service mutates after registration. Writes are plain
    UPDATEs, so concurrent writers for the same image resolve last-write-wins.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session_scope(self, write: bool = False) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            if write:
                session.commit()
        finally:
            session.close()

    def add_image(self, url: str, mime_type: str, filename: str = "", alt_text: str | None = None) -> Image:
        """Insert a new image row and return it with its id populated."""
        with self._session_scope(write=True) as session:
            image = Image(url=url, mime_type=mime_type, filename=filename, alt_text=alt_text)
            session.add(image)
            session.flush()
            session.refresh(image)
            session.expunge(image)
            return image

    def get_image(self, image_id: int) -> Image | None:
        """Return the Image for image_id, or None if not found."""
        with self._session_scope() as session:
            image = session.get(Image, image_id)
            if image is not None:
                session.expunge(image)
            return image

    def get_alt_text(self, image_id: int) -> str | None:
        """Return current alt text (may be None or empty)."""
        with self._session_scope() as session:
            return session.execute(select(Image.alt_text).where(Image.id == image_id)).scalar()

    def set_alt_text(self, image_id: int, alt_text: str) -> bool:
        """Write alt text for the image. Returns False when no row matched (image deleted meanwhile)."""
        with self._session_scope(write=True) as session:
            result = session.execute(
                update(Image).where(Image.id == image_id).values(alt_text=alt_text)
            )
            return result.rowcount > 0

    def list_images(self, missing_alt_text: bool = False, limit: int = 100) -> Sequence[Image]:
        """Return images ordered by id desc, optionally only image/* rows without alt text."""
        with self._session_scope() as session:
            query = select(Image)
            if missing_alt_text:
                query = query.where(Image.mime_type.startswith(IMAGE_MIME_PREFIX), _missing_alt_text_clause())
            query = query.order_by(Image.id.desc()).limit(limit)
            images = session.execute(query).scalars().all()
            for image in images:
                session.expunge(image)
            return images

    def list_ids_missing_alt_text(self) -> list[int]:
        """Return ids of every image/* row whose alt text is absent or empty, ordered by id."""
        with self._session_scope() as session:
            rows = session.execute(
                select(Image.id)
                .where(Image.mime_type.startswith(IMAGE_MIME_PREFIX), _missing_alt_text_clause())
                .order_by(Image.id)
            ).scalars().all()
        return list(rows)

    def count_missing_alt_text(self) -> int:
        """Return the number of image/* rows whose alt text is absent or empty."""
        with self._session_scope() as session:
            val = session.execute(
                select(func.count())
                .select_from(Image)
                .where(Image.mime_type.startswith(IMAGE_MIME_PREFIX), _missing_alt_text_clause())
            ).scalar()
        return int(val) if val is not None else 0
