"""SQLite engine for the catalog.

`engine` is module-level so tests can swap it for a temporary database;
always reach it through `get_engine()` rather than importing the name.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from .config import DATA_DIR

DB_PATH = DATA_DIR / "vortex.db"

# Background scans open sessions from their own thread
engine = create_engine(
    f"sqlite:///{DB_PATH}", connect_args={"check_same_thread": False}
)


def get_engine() -> Engine:
    return engine


def init_db() -> None:
    """Create any missing catalog tables. Safe to call on every scan."""
    from . import models  # noqa: F401  registers the tables

    current = get_engine()
    with current.connect() as conn:
        # WAL lets CLI reads proceed while a background scan writes
        conn.exec_driver_sql("PRAGMA journal_mode=WAL")
    SQLModel.metadata.create_all(current)


def reset_database() -> None:
    """Drop the catalog file (and its WAL side files) and start empty."""
    get_engine().dispose()
    for suffix in ("", "-wal", "-shm"):
        stale = DB_PATH.with_name(DB_PATH.name + suffix)
        if stale.exists():
            stale.unlink()
    init_db()
