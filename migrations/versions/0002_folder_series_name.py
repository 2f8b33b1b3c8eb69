"""Add media.folder_series_name

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 00:00:00
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | None = None
depends_on: str | None = None


def _has_column(table: str, column: str) -> bool:
    columns = sa.inspect(op.get_bind()).get_columns(table)
    return any(c["name"] == column for c in columns)


def upgrade() -> None:
    # 0001 may have been skipped over a database created by init_db()
    if _has_column("media", "folder_series_name"):
        return

    with op.batch_alter_table("media") as batch:
        batch.add_column(sa.Column("folder_series_name", sa.String(), nullable=True))
        batch.create_index("ix_media_folder_series_name", ["folder_series_name"])

    # Rows scanned before this revision still carry their folder name
    # unless enrichment already renamed them.
    op.execute("UPDATE media SET folder_series_name = series_name")


def downgrade() -> None:
    with op.batch_alter_table("media") as batch:
        batch.drop_index("ix_media_folder_series_name")
        batch.drop_column("folder_series_name")
