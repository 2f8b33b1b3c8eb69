"""Tests for catalog/library repository operations."""

from pathlib import Path

import pytest
from sqlmodel import Session

from vortex.models import CatalogEntry, LibraryType
from vortex.repository import Repository


def _seed(engine, tmp_path):
    with Session(engine) as session:
        repo = Repository(session)
        tv = repo.add_library("TV", tmp_path / "tv", LibraryType.TV_SHOWS)
        films = repo.add_library("Films", tmp_path / "films", LibraryType.MOVIES)
        a = repo.insert_entry(library_id=tv.id, path=tmp_path / "tv/Show/S01E01.mkv", title="a", series_name="Show")
        b = repo.insert_entry(library_id=tv.id, path=tmp_path / "tv/Show/S01E02.mkv", title="b", series_name="Show")
        c = repo.insert_entry(library_id=films.id, path=tmp_path / "films/heat.mkv", title="c")
        repo.commit()
        ids = (tv.id, films.id, a.id, b.id, c.id)
        for entry_id in ids[2:]:
            repo.record_progress(entry_id, 10, 100)
    return ids


def test_delete_library_cascades_entries_and_progress(engine, tmp_path):
    tv_id, films_id, a, b, c = _seed(engine, tmp_path)

    with Session(engine) as session:
        deleted = Repository(session).delete_library(tv_id)

    assert sorted(deleted) == sorted([a, b])
    with Session(engine) as session:
        repo = Repository(session)
        assert repo.get_library(tv_id) is None
        assert [e.id for e in repo.list_entries()] == [c]
        assert repo.get_progress(a) is None
        assert repo.get_progress(b) is None
        assert repo.get_progress(c) is not None
        assert [lib.id for lib in repo.list_libraries()] == [films_id]


def test_delete_unknown_library_is_noop(engine):
    with Session(engine) as session:
        assert Repository(session).delete_library(999) == []


def test_delete_entry_rolls_back_progress_on_failure(engine, tmp_path, monkeypatch):
    _, _, a, _, _ = _seed(engine, tmp_path)

    with Session(engine) as session:
        repo = Repository(session)
        entry = repo.get_entry_by_id(a)
        real_delete = session.delete

        def failing_delete(obj):
            if isinstance(obj, CatalogEntry):
                raise RuntimeError("disk full")
            real_delete(obj)

        monkeypatch.setattr(session, "delete", failing_delete)
        with pytest.raises(RuntimeError):
            repo.delete_entry(entry)

    with Session(engine) as session:
        repo = Repository(session)
        assert repo.get_entry_by_id(a) is not None
        assert repo.get_progress(a) is not None


def test_find_series_metadata_requires_provider_ids(engine, tmp_path):
    _, _, a, b, _ = _seed(engine, tmp_path)

    with Session(engine) as session:
        repo = Repository(session)
        assert repo.find_series_metadata("Show") is None

        entry = repo.get_entry_by_id(b)
        entry.provider_ids = {"tmdb": "1399"}
        repo.save_entry(entry)
        repo.commit()

        found = repo.find_series_metadata("Show")
        assert found is not None and found.id == b
        assert repo.find_series_metadata("Other Show") is None


def test_record_progress_upserts(engine, tmp_path):
    _, _, a, _, _ = _seed(engine, tmp_path)

    with Session(engine) as session:
        repo = Repository(session)
        repo.record_progress(a, 500, 1000)
        progress = repo.get_progress(a)
        assert (progress.position, progress.total_duration) == (500, 1000)


def test_entry_lookup_by_path(engine, tmp_path):
    _seed(engine, tmp_path)

    with Session(engine) as session:
        repo = Repository(session)
        assert repo.get_entry_by_path(tmp_path / "films/heat.mkv").title == "c"
        assert repo.get_entry_by_path(Path("/nowhere.mkv")) is None


def test_find_series_metadata_matches_folder_name_after_rename(engine, tmp_path):
    _, _, a, _, _ = _seed(engine, tmp_path)

    with Session(engine) as session:
        repo = Repository(session)
        entry = repo.get_entry_by_id(a)
        entry.series_name = "Show: The Series"
        entry.provider_ids = {"tmdb": "1399"}
        repo.save_entry(entry)
        repo.commit()

        assert repo.find_series_metadata("Show").id == a
        assert repo.find_series_metadata("Show: The Series").id == a
