"""Initial schema: libraries, media, playback_progress

Revision ID: 0001
Revises: None
Create Date: 2026-10-19 00:00:00
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

LIBRARY_TYPES = ("MOVIES", "TV_SHOWS", "MUSIC_VIDEOS", "BOOKS", "OTHER")
ENRICHMENT_STATUSES = ("UNENRICHED", "SERIES_RESOLVED", "FULLY_ENRICHED")


def _table_exists(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    # Guarded so a database created by init_db() can be upgraded in place.

    if not _table_exists("libraries"):
        op.create_table(
            "libraries",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("path", sa.String(), nullable=False),
            sa.Column(
                "library_type",
                sa.Enum(*LIBRARY_TYPES, name="librarytype"),
                nullable=False,
            ),
        )

    if not _table_exists("media"):
        op.create_table(
            "media",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("library_id", sa.Integer(), sa.ForeignKey("libraries.id"), nullable=False),
            sa.Column("file_path", sa.String(), nullable=False),
            sa.Column("title", sa.String(), nullable=True),
            sa.Column("year", sa.Integer(), nullable=True),
            sa.Column("poster_url", sa.String(), nullable=True),
            sa.Column("backdrop_url", sa.String(), nullable=True),
            sa.Column("still_url", sa.String(), nullable=True),
            sa.Column("plot", sa.String(), nullable=True),
            sa.Column("media_type", sa.String(), nullable=True),
            sa.Column("series_name", sa.String(), nullable=True),
            sa.Column("season_number", sa.Integer(), nullable=True),
            sa.Column("episode_number", sa.Integer(), nullable=True),
            sa.Column("runtime", sa.Integer(), nullable=True),
            sa.Column("added_at", sa.DateTime(), nullable=False),
            sa.Column(
                "enrichment_status",
                sa.Enum(*ENRICHMENT_STATUSES, name="enrichmentstatus"),
                nullable=False,
            ),
            sa.Column("provider_ids", sa.JSON(), nullable=True),
            sa.Column("genres", sa.JSON(), nullable=True),
        )
        op.create_index("ix_media_file_path", "media", ["file_path"], unique=True)
        op.create_index("ix_media_library_id", "media", ["library_id"])
        op.create_index("ix_media_series_name", "media", ["series_name"])

    if not _table_exists("playback_progress"):
        op.create_table(
            "playback_progress",
            sa.Column("media_id", sa.Integer(), sa.ForeignKey("media.id"), primary_key=True),
            sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_duration", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("last_watched", sa.DateTime(), nullable=False),
        )


def downgrade() -> None:
    op.drop_table("playback_progress")
    op.drop_table("media")
    op.drop_table("libraries")
