"""Data Access Layer for Vortex.

Encapsulates database operations using SQLModel/SQLAlchemy. File paths are
stored absolute; `media.file_path` is the natural key of a catalog entry.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlmodel import Session, or_, select

from .models import CatalogEntry, Library, LibraryType, PlaybackProgress


class Repository:
    """Catalog, library registry and playback-progress queries.

    Methods that span several rows (entry deletion, library deletion)
    commit or roll back as one unit. Everything else only flushes and
    leaves the commit to the caller.
    """

    def __init__(self, session: Session):
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # --- Library registry ---

    def list_libraries(self) -> List[Library]:
        return self.session.exec(select(Library).order_by(Library.id)).all()

    def get_library(self, library_id: int) -> Optional[Library]:
        return self.session.get(Library, library_id)

    def add_library(self, name: str, path: Path, library_type: LibraryType) -> Library:
        library = Library(name=name, path=str(path), library_type=library_type)
        self.session.add(library)
        self.session.commit()
        self.session.refresh(library)
        return library

    def delete_library(self, library_id: int) -> List[int]:
        """Delete a library with its entries and their progress rows.

        Returns the ids of the deleted catalog entries.
        """
        library = self.session.get(Library, library_id)
        if library is None:
            return []

        entries = self.session.exec(
            select(CatalogEntry).where(CatalogEntry.library_id == library_id)
        ).all()
        entry_ids = [e.id for e in entries]
        try:
            for entry in entries:
                self._delete_progress(entry.id)
                self.session.delete(entry)
            self.session.delete(library)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return entry_ids

    # --- Catalog entries ---

    def get_entry_by_path(self, path: Path) -> Optional[CatalogEntry]:
        statement = select(CatalogEntry).where(CatalogEntry.file_path == str(path))
        return self.session.exec(statement).first()

    def get_entry_by_id(self, entry_id: int) -> Optional[CatalogEntry]:
        return self.session.get(CatalogEntry, entry_id)

    def list_entries(self) -> List[CatalogEntry]:
        return self.session.exec(select(CatalogEntry).order_by(CatalogEntry.id)).all()

    def insert_entry(
        self,
        *,
        library_id: int,
        path: Path,
        title: str,
        series_name: Optional[str] = None,
        season_number: Optional[int] = None,
        episode_number: Optional[int] = None,
        media_type: Optional[str] = None,
    ) -> CatalogEntry:
        entry = CatalogEntry(
            library_id=library_id,
            file_path=str(path),
            title=title,
            series_name=series_name,
            folder_series_name=series_name,
            season_number=season_number,
            episode_number=episode_number,
            media_type=media_type,
        )
        self.session.add(entry)
        self.session.flush()
        self.session.refresh(entry)
        return entry

    def save_entry(self, entry: CatalogEntry) -> None:
        self.session.add(entry)
        self.session.flush()

    def find_series_metadata(self, series_name: str) -> Optional[CatalogEntry]:
        """Return the oldest entry of a series that already carries provider ids.

        Matches either the provider's series title or the folder name the
        series was first found under.
        """
        statement = (
            select(CatalogEntry)
            .where(
                or_(
                    CatalogEntry.series_name == series_name,
                    CatalogEntry.folder_series_name == series_name,
                )
            )
            .where(CatalogEntry.provider_ids.is_not(None))
            .order_by(CatalogEntry.id)
        )
        for entry in self.session.exec(statement):
            if entry.provider_ids:
                return entry
        return None

    def delete_entry(self, entry: CatalogEntry) -> None:
        """Delete an entry and its progress row in one transaction."""
        try:
            self._delete_progress(entry.id)
            self.session.delete(entry)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # --- Playback progress ---

    def get_progress(self, media_id: int) -> Optional[PlaybackProgress]:
        return self.session.get(PlaybackProgress, media_id)

    def record_progress(self, media_id: int, position: int, total_duration: int) -> PlaybackProgress:
        progress = self.session.get(PlaybackProgress, media_id)
        if progress is None:
            progress = PlaybackProgress(media_id=media_id)
        progress.position = position
        progress.total_duration = total_duration
        progress.last_watched = datetime.now(timezone.utc)
        self.session.add(progress)
        self.session.commit()
        self.session.refresh(progress)
        return progress

    def _delete_progress(self, media_id: int) -> None:
        progress = self.session.get(PlaybackProgress, media_id)
        if progress is not None:
            self.session.delete(progress)
            self.session.flush()
