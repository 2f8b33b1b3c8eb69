"""Library scanner for Vortex.

Syncs the files under every configured library into the catalog:

- walk each library root and classify files by extension
- resolve series/episode (video) or series/chapter (books) from the path
- insert new entries and enrich them, update ownership/identity of known ones
- after the walk, delete entries whose file is gone (with their progress rows)

Only one scan runs at a time; concurrent callers wait for the running one.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .config import VortexConfig
from .covers import delete_covers, extract_cover
from .database import get_engine, init_db
from .enrichment import enrich_entry
from .identity import resolve_book_identity, resolve_video_identity
from .logging_config import get_logger
from .metadata import MetadataProvider
from .models import EnrichmentStatus, Library, LibraryType
from .providers import get_provider
from .repository import Repository
from .utils import short_path

logger = get_logger(__name__)


VIDEO_EXTENSIONS = {
    ".mp4", ".mkv", ".avi", ".mov", ".webm", ".wmv",
    ".m4v", ".mpg", ".mpeg", ".flv", ".ts",
}
BOOK_EXTENSIONS = {".pdf", ".epub", ".cbz", ".zip", ".cbx"}

VIDEO = "video"
BOOK = "book"

_scan_lock = threading.Lock()


def classify(path: Path) -> Optional[str]:
    """Return "video", "book", or None for files the scanner ignores."""
    suffix = path.suffix.lower()
    if suffix in VIDEO_EXTENSIONS:
        return VIDEO
    if suffix in BOOK_EXTENSIONS:
        return BOOK
    return None


def _should_ignore(name: str, ignore_patterns: Iterable[str]) -> bool:
    # macOS resource forks (._*)
    if name.startswith("._"):
        return True
    return name in ignore_patterns


def walk_library(
    root: Path,
    ignore_patterns: Tuple[str, ...] = (),
) -> Iterator[Tuple[Path, str]]:
    """Yield (file_path, kind) for every classifiable file under root.

    Unreadable directories are skipped silently.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dir_path = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames if not _should_ignore(d, ignore_patterns)
        )
        for name in sorted(filenames):
            if _should_ignore(name, ignore_patterns):
                continue
            path = dir_path / name
            kind = classify(path)
            # broken symlinks, fifos and sockets
            if kind is not None and path.is_file():
                yield path, kind


def process_video(
    path: Path,
    root: Path,
    library: Library,
    repo: Repository,
    provider: MetadataProvider,
) -> bool:
    """Reconcile one video file. Returns True if a new entry was inserted."""
    identity = None
    if library.library_type == LibraryType.TV_SHOWS:
        identity = resolve_video_identity(path.relative_to(root), library.name)

    entry = repo.get_entry_by_path(path)
    if entry is not None:
        entry.library_id = library.id
        if identity is not None and entry.series_name is None:
            entry.series_name = identity.series_name
            entry.folder_series_name = identity.series_name
            entry.season_number = identity.season_number
            entry.episode_number = identity.episode_number
        repo.save_entry(entry)
        repo.commit()
        logger.info(f"[=] {short_path(path)}")
        return False

    entry = repo.insert_entry(
        library_id=library.id,
        path=path,
        title=path.stem,
        series_name=identity.series_name if identity else None,
        season_number=identity.season_number if identity else None,
        episode_number=identity.episode_number if identity else None,
    )

    if library.library_type == LibraryType.OTHER:
        entry.media_type = "movie"
        repo.save_entry(entry)
        repo.commit()
        logger.info(f"[+] {short_path(path)}")
        return True

    repo.commit()
    status = enrich_entry(entry, library, provider, repo)
    repo.commit()

    marker = "✓" if status != EnrichmentStatus.UNENRICHED else "✗"
    logger.info(f"[+] {marker} {short_path(path)} -> {entry.title}")
    return True


def process_book(
    path: Path,
    root: Path,
    library: Library,
    repo: Repository,
    config: VortexConfig,
) -> bool:
    """Reconcile one book file. Returns True if a new entry was inserted."""
    identity = resolve_book_identity(path.relative_to(root))

    entry = repo.get_entry_by_path(path)
    if entry is not None:
        entry.library_id = library.id
        if identity.series_name is not None and entry.series_name is None:
            entry.series_name = identity.series_name
            entry.folder_series_name = identity.series_name
            entry.episode_number = identity.chapter_number
        repo.save_entry(entry)
        repo.commit()
        logger.info(f"[=] {short_path(path)}")
        return False

    entry = repo.insert_entry(
        library_id=library.id,
        path=path,
        title=path.stem,
        series_name=identity.series_name,
        episode_number=identity.chapter_number,
        media_type="movie" if library.library_type == LibraryType.OTHER else "book",
    )
    repo.commit()

    cover = extract_cover(entry.id, path, config)
    logger.info(f"[+] {'✓' if cover else '-'} {short_path(path)}")
    return True


def scan_library(
    library: Library,
    repo: Repository,
    provider: MetadataProvider,
    config: VortexConfig,
    stats: dict,
) -> None:
    """Walk one library and reconcile every file found under its root.

    An IntegrityError on one file is rolled back and counted as failed;
    any other database error propagates and aborts the scan.
    """
    root = Path(library.path).expanduser().resolve()
    if not root.is_dir():
        logger.warning(f"Library '{library.name}' root does not exist: {root}")
        return

    logger.info(f"[SCAN] {library.name} ({library.library_type.value}) at {root}")

    for path, kind in walk_library(root, tuple(config.scanner.ignore_patterns)):
        try:
            if kind == VIDEO:
                added = process_video(path, root, library, repo, provider)
            else:
                added = process_book(path, root, library, repo, config)
        except IntegrityError as exc:
            # Another writer inserted the same path first
            repo.rollback()
            logger.warning(f"✗ {short_path(path)} - skipped: {exc.orig}")
            stats["failed"] += 1
            continue

        stats["added" if added else "updated"] += 1


def remove_missing_entries(repo: Repository, config: VortexConfig) -> int:
    """Delete entries whose file no longer exists. Returns count deleted."""
    deleted = 0
    for entry in repo.list_entries():
        path = Path(entry.file_path)
        if path.exists():
            continue
        entry_id = entry.id
        repo.delete_entry(entry)
        delete_covers([entry_id], config.thumbnails_dir)
        logger.info(f"[-] Removed: {short_path(path)}")
        deleted += 1
    return deleted


def scan_all_libraries(
    config: VortexConfig,
    provider: Optional[MetadataProvider] = None,
) -> dict:
    """Scan every library, then drop entries whose files disappeared.

    :param config: Loaded Vortex configuration.
    :param provider: Metadata provider; built from config when omitted.
    :return: Dictionary with scan statistics (added, updated, deleted, failed).
    """
    if provider is None:
        provider = get_provider(config.metadata.provider, config.metadata)

    if not _scan_lock.acquire(blocking=False):
        logger.info("A scan is already running; waiting for it to finish")
        _scan_lock.acquire()

    try:
        init_db()
        stats = {"added": 0, "updated": 0, "deleted": 0, "failed": 0}

        with Session(get_engine()) as session:
            repo = Repository(session)
            for library in repo.list_libraries():
                scan_library(library, repo, provider, config, stats)

            stats["deleted"] = remove_missing_entries(repo, config)

        logger.info(
            f"Scan complete: {stats['added']} added, {stats['updated']} updated, "
            f"{stats['deleted']} deleted, {stats['failed']} failed."
        )
        return stats
    finally:
        _scan_lock.release()


def _run_scan(config: VortexConfig) -> None:
    try:
        scan_all_libraries(config)
    except Exception:
        logger.exception("Library scan aborted")


def start_background_scan(config: VortexConfig) -> threading.Thread:
    """Run `scan_all_libraries` on a daemon thread and return immediately."""
    worker = threading.Thread(
        target=_run_scan,
        args=(config,),
        daemon=True,
        name="VortexScanWorker",
    )
    worker.start()
    return worker
