"""SQLModel database models for Vortex."""

import enum
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class LibraryType(str, enum.Enum):
    MOVIES = "movies"
    TV_SHOWS = "tv_shows"
    MUSIC_VIDEOS = "music_videos"
    BOOKS = "books"
    OTHER = "other"


class EnrichmentStatus(str, enum.Enum):
    """How far provider enrichment got for a catalog entry.

    UNENRICHED: only the filename-derived title is known.
    SERIES_RESOLVED: series-level metadata applied, episode details missing.
    FULLY_ENRICHED: movie details, or series plus episode details, applied.
    """

    UNENRICHED = "unenriched"
    SERIES_RESOLVED = "series_resolved"
    FULLY_ENRICHED = "fully_enriched"


class LibraryBase(SQLModel):
    name: str
    path: str
    library_type: LibraryType = LibraryType.MOVIES


class Library(LibraryBase, table=True):
    __tablename__ = "libraries"
    id: Optional[int] = Field(default=None, primary_key=True)


class CatalogEntryBase(SQLModel):
    library_id: int = Field(foreign_key="libraries.id", index=True)
    file_path: str = Field(unique=True, index=True)
    title: Optional[str] = None
    year: Optional[int] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    still_url: Optional[str] = None
    plot: Optional[str] = None
    media_type: Optional[str] = None  # "movie", "series" or "book"
    series_name: Optional[str] = Field(default=None, index=True)
    # series_name as read from the folder layout; enrichment may rename series_name
    folder_series_name: Optional[str] = Field(default=None, index=True)
    season_number: Optional[int] = None
    episode_number: Optional[int] = None  # chapter number for books
    runtime: Optional[int] = None


class CatalogEntry(CatalogEntryBase, table=True):
    __tablename__ = "media"

    id: Optional[int] = Field(default=None, primary_key=True)
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    enrichment_status: EnrichmentStatus = EnrichmentStatus.UNENRICHED
    # {"tmdb": "1399"}
    provider_ids: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON(none_as_null=True)))
    genres: Optional[List[str]] = Field(default=None, sa_column=Column(JSON(none_as_null=True)))


class PlaybackProgress(SQLModel, table=True):
    """Resume position for one catalog entry.

    Not cascaded by the database: whoever deletes a CatalogEntry deletes
    its progress row in the same transaction.
    """

    __tablename__ = "playback_progress"

    media_id: int = Field(foreign_key="media.id", primary_key=True)
    position: int = 0  # seconds
    total_duration: int = 0  # seconds
    last_watched: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
