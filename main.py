"""Vortex CLI entry point."""

from __future__ import annotations

import configparser
import logging
from collections import Counter
from pathlib import Path

import typer
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from vortex.config import DEFAULT_CONFIG_PATH, ConfigError, VortexConfig, load_config
from vortex.covers import cleanup_orphaned_covers, delete_covers, generate_missing_covers
from vortex.database import get_engine, init_db, reset_database
from vortex.logging_config import setup_logging
from vortex.migrations import get_status, upgrade_database
from vortex.models import EnrichmentStatus, LibraryType
from vortex.repository import Repository
from vortex.scanner import scan_all_libraries


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Vortex media catalog CLI")
library_app = typer.Typer(add_completion=False, help="Manage libraries")
app.add_typer(library_app, name="library")

logger = logging.getLogger("vortex")


def _ensure_config() -> VortexConfig:
    try:
        return load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: vortex init")
        raise typer.Exit(code=1)
    except ConfigError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)


def _write_config(config_path: Path, api_key: str) -> None:
    parser = configparser.ConfigParser()

    parser["scanner"] = {
        "ignore_patterns": ".DS_Store,Thumbs.db,@eaDir",
    }
    parser["thumbnails"] = {
        "width": "300",
        "height": "450",
        "quality": "85",
    }
    parser["metadata"] = {
        "provider": "tmdb",
        "tmdb_api_key": api_key,
        "language": "en-US",
        "timeout": "10",
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w") as handle:
        parser.write(handle)


@app.command()
def init(
    api_key: str = typer.Option("", "--tmdb-api-key", help="TMDB API key"),
) -> None:
    """Create config.ini with default settings."""
    _write_config(DEFAULT_CONFIG_PATH, api_key)
    init_db()
    typer.echo(f"[OK] Config created at {DEFAULT_CONFIG_PATH}")


@library_app.command("add")
def library_add(
    path: Path = typer.Argument(..., help="Library root folder"),
    name: str = typer.Option(..., "--name", help="Display name"),
    library_type: LibraryType = typer.Option(
        LibraryType.MOVIES, "--type", case_sensitive=False, help="Library type"
    ),
) -> None:
    """Register a library root."""
    _ensure_config()
    root = path.expanduser().resolve()
    if not root.is_dir():
        typer.echo(f"[ERROR] Not a directory: {root}")
        raise typer.Exit(code=1)

    init_db()
    with Session(get_engine()) as session:
        library = Repository(session).add_library(name, root, library_type)
        typer.echo(f"[OK] Library {library.id}: {library.name} ({library_type.value}) -> {root}")


@library_app.command("list")
def library_list() -> None:
    """List registered libraries."""
    init_db()
    with Session(get_engine()) as session:
        libraries = Repository(session).list_libraries()
        if not libraries:
            typer.echo("No libraries registered.")
        for library in libraries:
            typer.echo(
                f"  {library.id}: {library.name} "
                f"[{library.library_type.value}] {library.path}"
            )


@library_app.command("remove")
def library_remove(library_id: int = typer.Argument(..., help="Library id")) -> None:
    """Remove a library together with its catalog entries and progress."""
    config = _ensure_config()
    init_db()
    with Session(get_engine()) as session:
        repo = Repository(session)
        if repo.get_library(library_id) is None:
            typer.echo(f"[ERROR] No library with id {library_id}")
            raise typer.Exit(code=1)
        entry_ids = repo.delete_library(library_id)

    delete_covers(entry_ids, config.thumbnails_dir)
    typer.echo(f"[OK] Library {library_id} removed ({len(entry_ids)} entries).")


@app.command()
def scan() -> None:
    """Scan all libraries and update the catalog."""
    setup_logging()

    config = _ensure_config()
    try:
        stats = scan_all_libraries(config)
    except OperationalError as exc:
        logger.error(f"Scan aborted, database unavailable: {exc.orig}")
        raise typer.Exit(code=1)

    typer.echo(
        "✓ Scan completed: "
        f"{stats['added']} added, "
        f"{stats['updated']} updated, "
        f"{stats['deleted']} deleted, "
        f"{stats['failed']} failed."
    )


@app.command()
def covers(
    regenerate: bool = typer.Option(False, "--regenerate", help="Regenerate all covers"),
) -> None:
    """Extract missing (or all) book covers."""
    setup_logging()

    config = _ensure_config()
    generate_missing_covers(config, regenerate=regenerate)


@app.command()
def cleanup() -> None:
    """Remove orphaned cover files."""
    config = _ensure_config()
    deleted = cleanup_orphaned_covers(config)
    typer.echo(f"[INFO] Removed {deleted} orphaned covers")


@app.command()
def stats() -> None:
    """Show catalog statistics."""
    config = _ensure_config()
    init_db()
    with Session(get_engine()) as session:
        repo = Repository(session)
        libraries = repo.list_libraries()
        entries = repo.list_entries()

    by_status = Counter(entry.enrichment_status for entry in entries)
    series = {entry.series_name for entry in entries if entry.series_name}

    typer.echo(f"Catalog Statistics ({config.database_path}):")
    typer.echo(f"  Libraries: {len(libraries)}")
    typer.echo(f"  Entries: {len(entries)}")
    typer.echo(f"  Series: {len(series)}")
    for status in EnrichmentStatus:
        typer.echo(f"  {status.value}: {by_status.get(status, 0)}")


@app.command()
def migrate(
    check: bool = typer.Option(False, "--check", help="Print status and exit (1 if not at head)"),
) -> None:
    """Run pending database migrations (or check status with --check)."""
    _ensure_config()

    if check:
        current, head = get_status()
        if current == head:
            typer.echo(f"[OK] Database at {head} (head).")
            raise typer.Exit(code=0)
        typer.echo(f"[WARN] Database behind. current: {current}, head: {head}")
        raise typer.Exit(code=1)

    setup_logging()
    if not upgrade_database(backup=True):
        logger.info("Database already at head. Nothing to do.")


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--confirm", help="Confirm destructive reset"),
) -> None:
    """Delete the catalog database and cached covers."""
    if not confirm:
        typer.echo("[ERROR] This will delete your catalog, libraries and covers. Use --confirm.")
        raise typer.Exit(code=1)

    config = _ensure_config()

    reset_database()
    thumbnails_dir = config.thumbnails_dir
    if thumbnails_dir.exists():
        for file_path in thumbnails_dir.glob("*.jpg"):
            file_path.unlink()

    typer.echo("[INFO] Database and covers reset. Register libraries again with: vortex library add")


if __name__ == "__main__":
    app()
