"""Pytest fixtures. In-memory fakes for fast tests; testcontainers-python PostgreSQL for repository tests."""

import os
import threading
from io import BytesIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from alttext.models.entities import Image


def clear_app_db_caches() -> None:
    """
    Clear the app's config and DB-related caches. Call this in any fixture that
    sets DATABASE_URL so the app uses the new URL instead of a cached connection.
    """
    from alttext.api.main import (
        _get_coordinator,
        _get_image_repo,
        _get_session_factory,
        _get_system_metadata_repo,
    )
    from alttext.core.config import reset_config

    reset_config()
    _get_session_factory.cache_clear()
    _get_image_repo.cache_clear()
    _get_system_metadata_repo.cache_clear()
    _get_coordinator.cache_clear()


def _copy(row: Image) -> Image:
    return Image(**row.model_dump())


class FakeImageRepository:
    """Thread-safe in-memory stand-in for ImageRepository (same method names and semantics)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[int, Image] = {}
        self._next_id = 1
        self.writes: list[tuple[int, str]] = []

    def add_image(self, url: str, mime_type: str, filename: str = "", alt_text: str | None = None) -> Image:
        with self._lock:
            image = Image(id=self._next_id, url=url, mime_type=mime_type, filename=filename, alt_text=alt_text)
            self._rows[image.id] = image
            self._next_id += 1
            return _copy(image)

    def get_image(self, image_id: int) -> Image | None:
        with self._lock:
            row = self._rows.get(image_id)
            return _copy(row) if row is not None else None

    def get_alt_text(self, image_id: int) -> str | None:
        row = self.get_image(image_id)
        return row.alt_text if row is not None else None

    def set_alt_text(self, image_id: int, alt_text: str) -> bool:
        with self._lock:
            row = self._rows.get(image_id)
            if row is None:
                return False
            row.alt_text = alt_text
            self.writes.append((image_id, alt_text))
            return True

    def list_images(self, missing_alt_text: bool = False, limit: int = 100) -> list[Image]:
        with self._lock:
            rows = sorted(self._rows.values(), key=lambda r: r.id or 0, reverse=True)
        if missing_alt_text:
            rows = [r for r in rows if r.is_image and r.needs_alt_text]
        return [_copy(r) for r in rows[:limit]]

    def list_ids_missing_alt_text(self) -> list[int]:
        with self._lock:
            return sorted(i for i, r in self._rows.items() if r.is_image and r.needs_alt_text)

    def count_missing_alt_text(self) -> int:
        return len(self.list_ids_missing_alt_text())


def jpeg_bytes(size: tuple[int, int] = (4, 4), color: str = "red") -> bytes:
    from PIL import Image as PILImage

    buf = BytesIO()
    PILImage.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


def png_bytes(size: tuple[int, int] = (4, 4)) -> bytes:
    from PIL import Image as PILImage

    buf = BytesIO()
    PILImage.new("RGBA", size, (0, 0, 255, 128)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def image_repo() -> FakeImageRepository:
    return FakeImageRepository()


@pytest.fixture(scope="module")
def postgres_container():
    """Module-scoped PostgreSQL 16 container (testcontainers)."""
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="module")
def engine(postgres_container):
    """Module-scoped SQLAlchemy engine bound to the Postgres testcontainer, tables created."""
    url = postgres_container.get_connection_url()
    prev = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = url
    clear_app_db_caches()
    eng = create_engine(url, pool_pre_ping=True)
    SQLModel.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()
        if prev is not None:
            os.environ["DATABASE_URL"] = prev
        else:
            os.environ.pop("DATABASE_URL", None)
        clear_app_db_caches()


@pytest.fixture(scope="module")
def _session_factory(engine):
    return sessionmaker(engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def clean_tables(engine, _session_factory):
    """Empty both tables before a repository test."""
    from sqlalchemy import text

    with _session_factory() as session:
        session.execute(text("TRUNCATE image, system_metadata RESTART IDENTITY"))
        session.commit()
    return _session_factory
