"""Admin API: register images, generate alt text for one image, backfill, manage the API key."""

from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Callable

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session, sessionmaker

from alttext.core.config import get_config
from alttext.models.entities import Image
from alttext.pipeline.dispatch import DispatchCoordinator
from alttext.pipeline.factory import build_coordinator
from alttext.repository.image_repo import ImageRepository
from alttext.repository.system_metadata_repo import SystemMetadataRepository


@lru_cache(maxsize=1)
def _get_session_factory() -> Callable[[], Session]:
    from sqlalchemy import create_engine

    cfg = get_config()
    engine = create_engine(cfg.database_url, pool_pre_ping=True)
    return sessionmaker(engine, autocommit=False, autoflush=False, expire_on_commit=False)


@lru_cache(maxsize=1)
def _get_image_repo() -> ImageRepository:
    return ImageRepository(_get_session_factory())


@lru_cache(maxsize=1)
def _get_system_metadata_repo() -> SystemMetadataRepository:
    return SystemMetadataRepository(_get_session_factory())


@lru_cache(maxsize=1)
def _get_coordinator() -> DispatchCoordinator:
    return build_coordinator(_get_session_factory(), get_config())


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    yield
    # Only shut down a queue that was actually built during this process
    if _get_coordinator.cache_info().currsize:
        _get_coordinator().queue.shutdown(wait_for_jobs=True)


app = FastAPI(title="Alt Text Generator", lifespan=_lifespan)


class ImageIn(BaseModel):
    url: str
    mime_type: str
    filename: str = ""


class ImageOut(BaseModel):
    id: int
    filename: str
    url: str
    mime_type: str
    alt_text: str | None = None
    created_at: datetime | None = None


class GenerateSingleOut(BaseModel):
    success: bool
    alt_text: str | None = None
    error: str | None = None


class DispatchOut(BaseModel):
    success: bool


class SettingsOut(BaseModel):
    api_key_configured: bool
    provider: str
    model: str
    schema_version: str | None = None


class ApiKeyIn(BaseModel):
    api_key: str


def _image_out(image: Image) -> ImageOut:
    assert image.id is not None
    return ImageOut(
        id=image.id,
        filename=image.filename,
        url=image.url,
        mime_type=image.mime_type,
        alt_text=image.alt_text,
        created_at=image.created_at,
    )


@app.post("/api/images", response_model=ImageOut, status_code=201)
def api_add_image(
    body: ImageIn,
    image_repo: ImageRepository = Depends(_get_image_repo),
    coordinator: DispatchCoordinator = Depends(_get_coordinator),
) -> ImageOut:
    """Register a newly stored image. Image records get alt text generated in the background."""
    if not body.url.strip():
        raise HTTPException(status_code=400, detail="Image url must be non-empty")
    image = image_repo.add_image(body.url.strip(), body.mime_type.strip(), body.filename)
    assert image.id is not None
    if image.is_image:
        coordinator.on_image_stored(image.id)
    return _image_out(image)


@app.get("/api/images", response_model=list[ImageOut])
def api_list_images(
    missing_alt_text: bool = Query(default=False, description="Only image/* records without alt text"),
    limit: int = Query(default=100, ge=1, le=1000),
    image_repo: ImageRepository = Depends(_get_image_repo),
) -> list[ImageOut]:
    return [_image_out(img) for img in image_repo.list_images(missing_alt_text=missing_alt_text, limit=limit)]


@app.get("/api/images/{image_id}", response_model=ImageOut)
def api_get_image(
    image_id: int,
    image_repo: ImageRepository = Depends(_get_image_repo),
) -> ImageOut:
    image = image_repo.get_image(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return _image_out(image)


@app.post("/api/images/{image_id}/alt-text", response_model=GenerateSingleOut)
def api_generate_single(
    image_id: int,
    force: bool = Query(default=False, description="Regenerate even when alt text exists"),
    coordinator: DispatchCoordinator = Depends(_get_coordinator),
) -> GenerateSingleOut:
    """Generate alt text for one image and wait for the result."""
    result = coordinator.generate_single(image_id, force=force)
    return GenerateSingleOut(
        success=result["success"],
        alt_text=result.get("alt_text"),
        error=result.get("error"),
    )


@app.post("/api/alt-text/generate-missing", response_model=DispatchOut)
def api_generate_missing(
    coordinator: DispatchCoordinator = Depends(_get_coordinator),
) -> DispatchOut:
    """Start background generation for every image missing alt text. Does not wait."""
    result = coordinator.generate_missing()
    return DispatchOut(success=result["success"])


@app.get("/api/settings", response_model=SettingsOut)
def api_get_settings(
    system_repo: SystemMetadataRepository = Depends(_get_system_metadata_repo),
) -> SettingsOut:
    cfg = get_config()
    configured = bool(system_repo.get_api_key() or cfg.gemini_api_key)
    return SettingsOut(
        api_key_configured=configured,
        provider=cfg.provider,
        model=cfg.gemini_model,
        schema_version=system_repo.get_schema_version(),
    )


@app.put("/api/settings/api-key", status_code=204)
def api_set_api_key(
    body: ApiKeyIn,
    system_repo: SystemMetadataRepository = Depends(_get_system_metadata_repo),
) -> None:
    """Store the provider API key in the settings store. An empty key clears it."""
    system_repo.set_api_key(body.api_key)
