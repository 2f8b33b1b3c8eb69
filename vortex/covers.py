"""Cover extraction for archive books.

Takes the first image (lexicographic order) of a cbz/zip book and stores
it as `thumbnails/{entry_id}.jpg`. A book without a readable cover is
simply left without one.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Iterable

from PIL import Image
from sqlmodel import Session

from .archive import get_archive, is_cover_archive
from .config import VortexConfig
from .database import get_engine
from .logging_config import get_logger
from .repository import Repository
from .utils import short_path

logger = get_logger(__name__)


def cover_path(entry_id: int, thumbnails_dir: Path) -> Path:
    return thumbnails_dir / f"{entry_id}.jpg"


def _extract_first_image_bytes(path: Path) -> bytes | None:
    try:
        with get_archive(path) as archive:
            images = sorted(archive.list_images())
            if not images:
                logger.warning(f"No images found in archive {path.name}")
                return None
            return archive.read(images[0])
    except (FileNotFoundError, PermissionError) as exc:
        logger.warning(f"Unable to read archive {path.name}: {exc}")
        return None
    except Exception as exc:
        logger.warning(f"Unreadable archive {path.name}: {exc}")
        return None


def _save_cover(
    img_bytes: bytes,
    dest: Path,
    width: int,
    height: int,
    quality: int,
) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with Image.open(BytesIO(img_bytes)) as im:
        im = im.convert("RGB")
        im.thumbnail((width, height))
        im.save(dest, format="JPEG", quality=quality, optimize=True)


def extract_cover(entry_id: int, book_path: Path, config: VortexConfig) -> bool:
    """Cache the cover of one archive book. Returns True if a cover was written."""
    if not is_cover_archive(book_path):
        return False

    img_bytes = _extract_first_image_bytes(book_path)
    if not img_bytes:
        return False

    try:
        _save_cover(
            img_bytes,
            cover_path(entry_id, config.thumbnails_dir),
            config.thumbnails.width,
            config.thumbnails.height,
            config.thumbnails.quality,
        )
    except Exception as exc:
        logger.warning(f"Failed to save cover for {short_path(book_path)}: {exc}")
        return False
    return True


def delete_covers(entry_ids: Iterable[int], thumbnails_dir: Path) -> int:
    """Delete cached covers for the given entry ids. Returns count deleted."""
    deleted = 0
    for entry_id in entry_ids:
        path = cover_path(entry_id, thumbnails_dir)
        if path.exists():
            try:
                path.unlink()
                deleted += 1
            except OSError as exc:
                logger.error(f"Failed to delete cover {path}: {exc}")
    return deleted


def cleanup_orphaned_covers(config: VortexConfig) -> int:
    """Remove cover files that have no matching catalog entry.

    Returns count of deleted covers.
    """
    thumbnails_dir = config.thumbnails_dir
    if not thumbnails_dir.exists():
        return 0

    with Session(get_engine()) as session:
        valid_ids = {str(entry.id) for entry in Repository(session).list_entries()}

    deleted = 0
    for cover_file in thumbnails_dir.glob("*.jpg"):
        if cover_file.stem in valid_ids:
            continue
        try:
            cover_file.unlink()
            deleted += 1
        except OSError as exc:
            logger.error(f"Failed to delete cover {cover_file}: {exc}")
    return deleted


def generate_missing_covers(config: VortexConfig, regenerate: bool = False) -> int:
    """Extract covers for archive books in the catalog that have none.

    Returns count of covers written.
    """
    with Session(get_engine()) as session:
        books = [
            (entry.id, Path(entry.file_path))
            for entry in Repository(session).list_entries()
            if is_cover_archive(Path(entry.file_path))
        ]

    total = len(books)
    logger.info(f"{total} archive books to check for covers")

    written = 0
    for idx, (entry_id, path) in enumerate(books, start=1):
        if not regenerate and cover_path(entry_id, config.thumbnails_dir).exists():
            continue
        logger.debug(f"[{idx}/{total}] {short_path(path)}")
        if not path.exists():
            logger.warning(f"Book file not found on disk: {path}")
            continue
        if extract_cover(entry_id, path, config):
            written += 1

    logger.info(f"Cover generation complete: {written} written.")
    return written
