"""Archive handling for Vortex.

Book covers are only read from zip-based archives (cbz/zip).
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import List

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
ARCHIVE_EXTENSIONS = {".cbz", ".zip"}


def is_image(filename: str) -> bool:
    return Path(filename).suffix.lower() in IMAGE_EXTENSIONS


def is_cover_archive(path: Path) -> bool:
    """Return True for book files whose cover can be read from a zip archive."""
    return path.suffix.lower() in ARCHIVE_EXTENSIONS


class ZipArchive:
    def __init__(self, path: Path):
        self.zf = zipfile.ZipFile(path, mode="r")

    def list_names(self) -> List[str]:
        return self.zf.namelist()

    def list_images(self) -> List[str]:
        return [n for n in self.list_names() if is_image(n)]

    def read(self, filename: str) -> bytes:
        return self.zf.read(filename)

    def close(self) -> None:
        self.zf.close()

    def __enter__(self) -> "ZipArchive":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def get_archive(path: Path) -> ZipArchive:
    """Open a cbz/zip archive.

    Raises FileNotFoundError, ValueError for other extensions, and
    zipfile.BadZipFile for corrupt archives.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not is_cover_archive(path):
        raise ValueError(f"Unsupported archive format: {path.suffix.lower()}")
    return ZipArchive(path)
