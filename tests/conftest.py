import io
import zipfile
from pathlib import Path

import pytest
from PIL import Image
from sqlmodel import Session, create_engine

from vortex.config import MetadataConfig, ScannerConfig, ThumbnailConfig, VortexConfig
from vortex.database import init_db
from vortex.metadata import EpisodeMetadata, NormalizedMetadata, ProviderNotFound
from vortex.models import LibraryType
from vortex.repository import Repository


class FakeProvider:
    """In-memory metadata provider that records every call."""

    name = "tmdb"

    def __init__(self, titles=None, episodes=None, error=None):
        # titles: {query.lower(): NormalizedMetadata}
        # episodes: {(series_id, season): [EpisodeMetadata]}
        self.titles = titles or {}
        self.episodes = episodes or {}
        self.error = error
        self.calls = []

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)

    def parse_id(self, query):
        return query if query.isdigit() else None

    def search(self, query, media_type=None):
        self.calls.append(("search", query, media_type))
        if self.error:
            raise self.error
        hit = self.titles.get(query.lower())
        return [hit] if hit else []

    def get_details(self, provider_id, media_type=None):
        self.calls.append(("details", provider_id, media_type))
        if self.error:
            raise self.error
        for meta in self.titles.values():
            if meta.provider_ids.get(self.name) == provider_id:
                return meta
        raise ProviderNotFound(provider_id)

    def get_season_episodes(self, series_id, season_number):
        self.calls.append(("season", series_id, season_number))
        if self.error:
            raise self.error
        return list(self.episodes.get((series_id, season_number), []))


def show_metadata(title="Show", provider_id="1399"):
    return NormalizedMetadata(
        title=title,
        year="2011",
        plot="Families fight over a throne.",
        poster_url="https://image.tmdb.org/t/p/w500/poster.jpg",
        backdrop_url="https://image.tmdb.org/t/p/original/backdrop.jpg",
        media_type="series",
        provider_ids={"tmdb": provider_id},
        genres=["Drama", "Fantasy"],
        runtime=55,
    )


def episode(number, season=1, name=None, still=None):
    return EpisodeMetadata(
        id=f"{season}-{number}",
        episode_number=number,
        season_number=season,
        name=name,
        still_url=still,
    )


def make_cbz(path: Path, pages=(("page001.png", "red"),)) -> None:
    """Create a CBZ with tiny PNG pages."""
    with zipfile.ZipFile(path, "w") as zf:
        for name, color in pages:
            img = Image.new("RGB", (10, 10), color=color)
            buf = io.BytesIO()
            img.save(buf, format="PNG")
            zf.writestr(name, buf.getvalue())


@pytest.fixture
def engine(tmp_path, monkeypatch):
    db_file = tmp_path / "vortex.db"
    test_engine = create_engine(
        f"sqlite:///{db_file}", connect_args={"check_same_thread": False}
    )
    monkeypatch.setattr("vortex.database.DB_PATH", db_file, raising=True)
    monkeypatch.setattr("vortex.database.engine", test_engine, raising=True)
    init_db()
    return test_engine


@pytest.fixture
def config(tmp_path):
    return VortexConfig(
        scanner=ScannerConfig(),
        thumbnails=ThumbnailConfig(),
        metadata=MetadataConfig(tmdb_api_key="test-key"),
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def add_library(engine, tmp_path):
    """Create a library folder under tmp_path and register it."""

    def _add(name, library_type=LibraryType.TV_SHOWS, folder=None):
        root = tmp_path / (folder or name.lower().replace(" ", "_"))
        root.mkdir(parents=True, exist_ok=True)
        with Session(engine) as session:
            library = Repository(session).add_library(name, root.resolve(), library_type)
            return library.id, root.resolve()

    return _add
