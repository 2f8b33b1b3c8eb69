"""Alembic environment for the Vortex catalog.

The connection comes from `vortex.database.get_engine()`, so migrations
always target the same file the scanner writes to (including a DATA_DIR
override). Offline mode renders SQL for that same URL.
"""

from __future__ import annotations

from alembic import context
from sqlmodel import SQLModel

from vortex import models  # noqa: F401  table registration
from vortex.database import get_engine

target_metadata = SQLModel.metadata


def _offline() -> None:
    context.configure(
        url=str(get_engine().url),
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _online() -> None:
    # SQLite cannot ALTER most columns in place; batch mode rebuilds tables
    with get_engine().connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    _offline()
else:
    _online()
