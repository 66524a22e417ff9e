from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import ENUM as PG_ENUM

"""
Create schedule board tables.

Revision ID: 20261018_000100_board
Revises:
Create Date: 2026-10-18 00:01:00.000000
"""


# revision identifiers, used by Alembic.
revision: str = "20261018_000100_board"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

_ENUMS = {
    "user_role": ("USER", "ADMIN"),
    "schedule_status": ("SCHEDULED", "TIME_TBD", "BREAK"),
    "history_action": ("CREATE", "UPDATE", "DELETE"),
    "follow_action": ("FOLLOW", "UNFOLLOW"),
}


def _enum(name: str) -> PG_ENUM:
    return PG_ENUM(*_ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Ensure enums exist once; prevent duplicate creation on reruns
    for name in _ENUMS:
        _enum(name).create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("nickname", sa.String(length=100), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("uuid", name="uq_users_uuid"),
    )

    op.create_table(
        "streamers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "follow_count",
            sa.Integer(),
            nullable=False,
            server_default="0",
            comment="Cached count of follow rows",
        ),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_streamers"),
        sa.UniqueConstraint("uuid", name="uq_streamers_uuid"),
        sa.ForeignKeyConstraint(
            ["created_by_id"], ["users.id"], name="fk_streamers_created_by_id_users", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["updated_by_id"], ["users.id"], name="fk_streamers_updated_by_id_users", ondelete="SET NULL"
        ),
        sa.CheckConstraint("follow_count >= 0", name="ck_streamers_follow_count_non_negative"),
    )
    op.create_index("ix_streamers_name", "streamers", ["name"])
    op.create_index("ix_streamers_is_active", "streamers", ["is_active"])
    op.create_index("ix_streamers_is_verified", "streamers", ["is_verified"])

    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("schedule_date", sa.Date(), nullable=False, comment="Calendar date in the reference timezone"),
        sa.Column(
            "start_time",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="UTC instant; present only when SCHEDULED",
        ),
        sa.Column("status", _enum("schedule_status"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("external_notice_url", sa.String(length=500), nullable=True),
        sa.Column("streamer_id", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column(
            "like_count",
            sa.Integer(),
            nullable=False,
            server_default="0",
            comment="Cached count of like rows",
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_schedules"),
        sa.UniqueConstraint("uuid", name="uq_schedules_uuid"),
        sa.ForeignKeyConstraint(
            ["streamer_id"], ["streamers.id"], name="fk_schedules_streamer_id_streamers", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["created_by_id"], ["users.id"], name="fk_schedules_created_by_id_users", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["updated_by_id"], ["users.id"], name="fk_schedules_updated_by_id_users", ondelete="SET NULL"
        ),
        sa.CheckConstraint("like_count >= 0", name="ck_schedules_like_count_non_negative"),
        sa.CheckConstraint(
            "(status = 'SCHEDULED' AND start_time IS NOT NULL) "
            "OR (status <> 'SCHEDULED' AND start_time IS NULL)",
            name="ck_schedules_status_start_time_consistent",
        ),
    )
    # One live schedule per streamer per date; soft-deleted rows free the slot
    op.create_index(
        "uq_schedules_streamer_date_live",
        "schedules",
        ["streamer_id", "schedule_date"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_schedules_schedule_date", "schedules", ["schedule_date"])
    op.create_index("ix_schedules_status", "schedules", ["status"])
    op.create_index("ix_schedules_cursor", "schedules", ["schedule_date", "start_time", "id"])

    op.create_table(
        "schedule_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("schedule_uuid", sa.Uuid(), nullable=False),
        sa.Column("action", _enum("history_action"), nullable=False),
        sa.Column(
            "previous_snapshot",
            postgresql.JSONB(),
            nullable=True,
            comment="State before the transition (null for CREATE)",
        ),
        sa.Column(
            "current_snapshot",
            postgresql.JSONB(),
            nullable=True,
            comment="State after the transition (deleted state for DELETE)",
        ),
        sa.Column("modified_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_schedule_histories"),
    )
    op.create_index(
        "ix_schedule_histories_schedule_uuid_created_at",
        "schedule_histories",
        ["schedule_uuid", "created_at"],
    )
    op.create_index("ix_schedule_histories_action", "schedule_histories", ["action"])
    op.create_index("ix_schedule_histories_modified_by", "schedule_histories", ["modified_by"])

    op.create_table(
        "schedule_likes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("schedule_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_schedule_likes"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_schedule_likes_user_id_users"),
        sa.ForeignKeyConstraint(
            ["schedule_id"], ["schedules.id"], name="fk_schedule_likes_schedule_id_schedules"
        ),
        sa.UniqueConstraint("user_id", "schedule_id", name="uq_schedule_likes_user_schedule"),
    )
    op.create_index("ix_schedule_likes_schedule_id", "schedule_likes", ["schedule_id"])

    op.create_table(
        "streamer_follows",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("streamer_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_streamer_follows"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_streamer_follows_user_id_users"),
        sa.ForeignKeyConstraint(
            ["streamer_id"], ["streamers.id"], name="fk_streamer_follows_streamer_id_streamers"
        ),
        sa.UniqueConstraint("user_id", "streamer_id", name="uq_streamer_follows_user_streamer"),
    )
    op.create_index("ix_streamer_follows_streamer_id", "streamer_follows", ["streamer_id"])

    op.create_table(
        "streamer_follow_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("streamer_id", sa.Integer(), nullable=False),
        sa.Column("action", _enum("follow_action"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_streamer_follow_histories"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_streamer_follow_histories_user_id_users"
        ),
        sa.ForeignKeyConstraint(
            ["streamer_id"], ["streamers.id"], name="fk_streamer_follow_histories_streamer_id_streamers"
        ),
    )
    op.create_index(
        "ix_streamer_follow_histories_user_created",
        "streamer_follow_histories",
        ["user_id", "created_at"],
    )
    op.create_index(
        "ix_streamer_follow_histories_streamer_created",
        "streamer_follow_histories",
        ["streamer_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("streamer_follow_histories")
    op.drop_table("streamer_follows")
    op.drop_table("schedule_likes")
    op.drop_table("schedule_histories")
    op.drop_index("uq_schedules_streamer_date_live", table_name="schedules")
    op.drop_table("schedules")
    op.drop_table("streamers")
    op.drop_table("users")

    # Drop enum types if unused
    for name in reversed(list(_ENUMS)):
        _enum(name).drop(op.get_bind(), checkfirst=True)
