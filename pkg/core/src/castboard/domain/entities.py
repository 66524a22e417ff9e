"""
Domain entities for Castboard.

This module contains the persistent records of the schedule board: users,
streamers, schedules, their append-only history, and the like/follow relations
behind the denormalized counters.

Ownership is explicit. No relationship cascades: schedules own nothing,
history rows point at a schedule by uuid only, and like/follow rows are
removed by the usecases that own them.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import date, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from ..infra.db import Base
from ..shared.types import FollowAction, HistoryAction, ScheduleStatus, UserRole

SnapshotJSON = JSON().with_variant(PG_JSONB(), "postgresql")


class User(Base):
    """An authenticated actor known to the board. Identity issuance lives elsewhere."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[uuid_module.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid_module.uuid4
    )
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.USER
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, uuid={self.uuid}, nickname={self.nickname}, role={self.role})>"


class Streamer(Base):
    """A broadcasting personality. Schedules may only be created for verified streamers."""

    __tablename__ = "streamers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[uuid_module.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid_module.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    follow_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", comment="Cached count of follow rows"
    )
    created_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("follow_count >= 0", name="follow_count_non_negative"),
        Index("ix_streamers_name", "name"),
        Index("ix_streamers_is_active", "is_active"),
        Index("ix_streamers_is_verified", "is_verified"),
    )

    def __repr__(self) -> str:
        return f"<Streamer(id={self.id}, uuid={self.uuid}, name={self.name}, verified={self.is_verified})>"


class Schedule(Base):
    """
    One broadcast slot for a streamer on a reference-timezone calendar date.

    ``updated_at`` is the optimistic-concurrency token handed to editors, and
    ``version`` is the ORM version counter: every flushed UPDATE is issued as
    ``... WHERE id = :id AND version = :seen`` so a writer working from a stale
    read cannot overwrite a newer commit.
    """

    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[uuid_module.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid_module.uuid4
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    schedule_date: Mapped[date] = mapped_column(
        Date, nullable=False, comment="Calendar date in the reference timezone"
    )
    start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="UTC instant; present only when SCHEDULED"
    )
    status: Mapped[ScheduleStatus] = mapped_column(
        SQLEnum(ScheduleStatus, name="schedule_status"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_notice_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    streamer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("streamers.id", ondelete="RESTRICT"), nullable=False
    )
    created_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    like_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", comment="Cached count of like rows"
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships (read-only navigation for snapshots; no cascades)
    streamer: Mapped[Streamer] = relationship("Streamer")
    created_by: Mapped[User | None] = relationship("User", foreign_keys=[created_by_id])
    updated_by: Mapped[User | None] = relationship("User", foreign_keys=[updated_by_id])

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("like_count >= 0", name="like_count_non_negative"),
        CheckConstraint(
            "(status = 'SCHEDULED' AND start_time IS NOT NULL) "
            "OR (status <> 'SCHEDULED' AND start_time IS NULL)",
            name="status_start_time_consistent",
        ),
        Index(
            "uq_schedules_streamer_date_live",
            "streamer_id",
            "schedule_date",
            unique=True,
            postgresql_where=sa.text("deleted_at IS NULL"),
            sqlite_where=sa.text("deleted_at IS NULL"),
        ),
        Index("ix_schedules_schedule_date", "schedule_date"),
        Index("ix_schedules_status", "status"),
        Index("ix_schedules_cursor", "schedule_date", "start_time", "id"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<Schedule(id={self.id}, uuid={self.uuid}, date={self.schedule_date}, "
            f"status={self.status}, version={self.version})>"
        )


class ScheduleHistory(Base):
    """
    Append-only audit row, one per schedule lifecycle transition.

    Snapshots are value copies (including streamer and editor names) so a
    past version renders the same even after the referenced rows change.
    Rows are never updated or deleted.
    """

    __tablename__ = "schedule_histories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_uuid: Mapped[uuid_module.UUID] = mapped_column(Uuid, nullable=False)
    action: Mapped[HistoryAction] = mapped_column(
        SQLEnum(HistoryAction, name="history_action"), nullable=False
    )
    previous_snapshot: Mapped[dict[str, Any] | None] = mapped_column(
        SnapshotJSON, nullable=True, comment="State before the transition (null for CREATE)"
    )
    current_snapshot: Mapped[dict[str, Any] | None] = mapped_column(
        SnapshotJSON, nullable=True, comment="State after the transition (deleted state for DELETE)"
    )
    modified_by: Mapped[uuid_module.UUID] = mapped_column(Uuid, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_schedule_histories_schedule_uuid_created_at", "schedule_uuid", "created_at"),
        Index("ix_schedule_histories_action", "action"),
        Index("ix_schedule_histories_modified_by", "modified_by"),
    )

    def __repr__(self) -> str:
        return f"<ScheduleHistory(id={self.id}, schedule_uuid={self.schedule_uuid}, action={self.action})>"


class ScheduleLike(Base):
    """A user's like on a schedule. Row existence is the source of truth for "has liked"."""

    __tablename__ = "schedule_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    schedule_id: Mapped[int] = mapped_column(Integer, ForeignKey("schedules.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "schedule_id", name="uq_schedule_likes_user_schedule"),
        Index("ix_schedule_likes_schedule_id", "schedule_id"),
    )

    def __repr__(self) -> str:
        return f"<ScheduleLike(id={self.id}, user_id={self.user_id}, schedule_id={self.schedule_id})>"


class StreamerFollow(Base):
    """
    A user's follow of a streamer.

    ``is_active = False`` means muted, not removed: the row and the
    streamer's follow_count stay until an explicit unfollow.
    """

    __tablename__ = "streamer_follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    streamer_id: Mapped[int] = mapped_column(Integer, ForeignKey("streamers.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "streamer_id", name="uq_streamer_follows_user_streamer"),
        Index("ix_streamer_follows_streamer_id", "streamer_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<StreamerFollow(id={self.id}, user_id={self.user_id}, "
            f"streamer_id={self.streamer_id}, active={self.is_active})>"
        )


class StreamerFollowHistory(Base):
    """Append-only log of follow/unfollow transitions."""

    __tablename__ = "streamer_follow_histories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    streamer_id: Mapped[int] = mapped_column(Integer, ForeignKey("streamers.id"), nullable=False)
    action: Mapped[FollowAction] = mapped_column(
        SQLEnum(FollowAction, name="follow_action"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    streamer: Mapped[Streamer] = relationship("Streamer")
    user: Mapped[User] = relationship("User")

    __table_args__ = (
        Index("ix_streamer_follow_histories_user_created", "user_id", "created_at"),
        Index("ix_streamer_follow_histories_streamer_created", "streamer_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<StreamerFollowHistory(id={self.id}, user_id={self.user_id}, "
            f"streamer_id={self.streamer_id}, action={self.action})>"
        )
