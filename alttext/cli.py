"""Typer Admin CLI: register images, generate or backfill alt text, manage the API key."""

import typer
from rich.console import Console
from rich.table import Table

from alttext.core.config import get_config
from alttext.core.logging import setup_logging
from alttext.pipeline.factory import build_coordinator
from alttext.repository.image_repo import ImageRepository
from alttext.repository.system_metadata_repo import SystemMetadataRepository

app = typer.Typer(no_args_is_help=True)
image_app = typer.Typer(help="Register and inspect images.")
app.add_typer(image_app, name="image")
alt_text_app = typer.Typer(help="Generate alt text for one image or backfill all missing.")
app.add_typer(alt_text_app, name="alt-text")
settings_app = typer.Typer(help="Show or change the provider settings.")
app.add_typer(settings_app, name="settings")


def _get_session_factory():
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    cfg = get_config()
    engine = create_engine(cfg.database_url, pool_pre_ping=True)
    return sessionmaker(engine, autocommit=False, autoflush=False, expire_on_commit=False)


def _mask(secret: str) -> str:
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}{'*' * (len(secret) - 8)}{secret[-4:]}"


@image_app.command("add")
def image_add(
    url: str = typer.Argument(..., help="Public URL of the image"),
    mime_type: str = typer.Option("image/jpeg", "--mime-type", help="MIME type of the stored file"),
    filename: str = typer.Option("", "--filename", help="Display name"),
    generate: bool = typer.Option(
        True,
        "--generate/--no-generate",
        help="Generate alt text for the new image before exiting.",
    ),
) -> None:
    """Register a stored image. By default its alt text is generated right away."""
    setup_logging()
    session_factory = _get_session_factory()
    image_repo = ImageRepository(session_factory)
    image = image_repo.add_image(url, mime_type, filename)
    typer.echo(f"Added image {image.id} ({mime_type}).")
    if not generate or not image.is_image:
        return
    assert image.id is not None
    coordinator = build_coordinator(session_factory, get_config())
    try:
        coordinator.on_image_stored(image.id)
        coordinator.queue.drain()
    finally:
        coordinator.queue.shutdown()
    alt_text = image_repo.get_alt_text(image.id)
    if alt_text:
        typer.echo(f"Alt text: {alt_text}")
    else:
        typer.secho("Alt text was not generated; see log output.", fg=typer.colors.YELLOW)


@image_app.command("list")
def image_list(
    missing: bool = typer.Option(False, "--missing", help="Only images without alt text"),
    limit: int = typer.Option(50, "--limit", help="Maximum rows to show"),
) -> None:
    """List images (newest first) with their alt text."""
    session_factory = _get_session_factory()
    image_repo = ImageRepository(session_factory)
    images = image_repo.list_images(missing_alt_text=missing, limit=limit)
    if not images:
        typer.echo("No images without alt text found." if missing else "No images.")
        return
    table = Table(title=None)
    table.add_column("ID", justify="right")
    table.add_column("Filename")
    table.add_column("MIME")
    table.add_column("Alt Text")
    for img in images:
        table.add_row(str(img.id), img.filename, img.mime_type, img.alt_text or "")
    console = Console()
    console.print(table)
    if missing:
        typer.echo(f"{image_repo.count_missing_alt_text()} image(s) missing alt text in total.")


@image_app.command("show")
def image_show(
    image_id: int = typer.Argument(..., help="Image id"),
) -> None:
    """Show one image record."""
    session_factory = _get_session_factory()
    image = ImageRepository(session_factory).get_image(image_id)
    if image is None:
        typer.secho(f"Image not found: {image_id}", fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.echo(f"ID:        {image.id}")
    typer.echo(f"Filename:  {image.filename}")
    typer.echo(f"URL:       {image.url}")
    typer.echo(f"MIME:      {image.mime_type}")
    typer.echo(f"Alt text:  {image.alt_text or ''}")


@alt_text_app.command("generate")
def alt_text_generate(
    image_id: int = typer.Argument(..., help="Image id"),
    force: bool = typer.Option(False, "--force", help="Regenerate even when alt text exists"),
) -> None:
    """Generate alt text for one image and print it."""
    setup_logging()
    coordinator = build_coordinator(_get_session_factory(), get_config())
    try:
        result = coordinator.generate_single(image_id, force=force)
    finally:
        coordinator.queue.shutdown()
    if not result["success"]:
        typer.secho(f"Error: {result['error']}", fg=typer.colors.RED)
        raise typer.Exit(1)
    if result.get("status") == "skipped":
        typer.echo(f"Image already has alt text: {result['alt_text']}")
    else:
        typer.secho(f"Alt text: {result['alt_text']}", fg=typer.colors.GREEN)


@alt_text_app.command("backfill")
def alt_text_backfill(
    wait: bool = typer.Option(
        True,
        "--wait/--no-wait",
        help="Wait for queued jobs before exiting. --no-wait drops jobs that have not started.",
    ),
) -> None:
    """Queue alt text generation for every image missing it."""
    setup_logging()
    session_factory = _get_session_factory()
    coordinator = build_coordinator(session_factory, get_config())
    try:
        result = coordinator.generate_missing()
        dispatched = result.get("dispatched", 0)
        if dispatched == 0:
            typer.echo("No images without alt text found.")
            return
        typer.echo(f"Alt text generation started for {dispatched} image(s).")
        if wait:
            coordinator.queue.drain()
    finally:
        coordinator.queue.shutdown(wait_for_jobs=wait)
    if wait:
        remaining = ImageRepository(session_factory).count_missing_alt_text()
        typer.echo(f"Done. {remaining} image(s) still missing alt text.")


@settings_app.command("set-api-key")
def settings_set_api_key(
    api_key: str = typer.Argument(..., help="Gemini API key; an empty string clears it"),
) -> None:
    """Store the Gemini API key in the settings store."""
    SystemMetadataRepository(_get_session_factory()).set_api_key(api_key)
    if api_key.strip():
        typer.secho("API key saved.", fg=typer.colors.GREEN)
    else:
        typer.echo("API key cleared.")


@settings_app.command("show")
def settings_show() -> None:
    """Show provider, model, schema version and whether an API key is configured (masked)."""
    cfg = get_config()
    system_repo = SystemMetadataRepository(_get_session_factory())
    stored = system_repo.get_api_key()
    typer.echo(f"Provider:  {cfg.provider}")
    typer.echo(f"Model:     {cfg.gemini_model}")
    typer.echo(f"Schema:    {system_repo.get_schema_version() or 'unknown'}")
    if stored:
        typer.echo(f"API key:   {_mask(stored)} (settings store)")
    elif cfg.gemini_api_key:
        typer.echo(f"API key:   {_mask(cfg.gemini_api_key)} (config/env)")
    else:
        typer.secho("API key:   not configured", fg=typer.colors.YELLOW)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
) -> None:
    """Run the admin API with uvicorn."""
    import uvicorn

    setup_logging()
    uvicorn.run("alttext.api.main:app", host=host, port=port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
