"""Alembic migration helpers for Vortex.

This is the only module that imports alembic; the CLI goes through
`upgrade_database()` and `get_status()`.
"""

from __future__ import annotations

import shutil
from typing import Optional

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from .config import PROJECT_ROOT
from .database import DB_PATH, get_engine
from .logging_config import get_logger

logger = get_logger(__name__)


def _alembic_cfg() -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    # Absolute script_location so the CLI works from any directory
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return cfg


def _current_revision() -> Optional[str]:
    if not DB_PATH.exists():
        return None
    with get_engine().connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def _has_catalog_tables() -> bool:
    if not DB_PATH.exists():
        return False
    return inspect(get_engine()).has_table("media")


def get_status() -> tuple[str | None, str]:
    """Return (current_revision, head_revision)."""
    script = ScriptDirectory.from_config(_alembic_cfg())
    return _current_revision(), script.get_current_head() or "unknown"


def upgrade_database(backup: bool = True) -> bool:
    """Bring the database to head. Returns True if anything was run.

    A database created by `init_db()` without alembic is stamped at head
    rather than migrated, since its tables already exist.
    """
    current, head = get_status()
    if current == head:
        return False

    if current is None and _has_catalog_tables():
        logger.info(f"Stamping unversioned database at {head}")
        alembic_command.stamp(_alembic_cfg(), "head")
        return True

    if backup and DB_PATH.exists():
        shutil.copy2(DB_PATH, DB_PATH.with_suffix(".db.bak"))

    logger.info(f"Migrating database {current} -> {head} ...")
    alembic_command.upgrade(_alembic_cfg(), "head")
    return True
