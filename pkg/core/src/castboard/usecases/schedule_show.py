from __future__ import annotations

import uuid as uuid_module
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.entities import Schedule, User
from ..infra.clock import as_utc
from ..infra.exceptions import NotFoundError


def format_date(d: date | None) -> str | None:
    return d.isoformat() if d else None


def format_datetime(dt: datetime | None) -> str | None:
    """Format as ISO-8601 UTC with Z suffix (naive values are stored UTC)."""
    if dt is None:
        return None
    return as_utc(dt).astimezone(UTC).isoformat().replace("+00:00", "Z")


def _user_ref(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"uuid": str(user.uuid), "nickname": user.nickname}


def serialize_schedule(schedule: Schedule) -> dict[str, Any]:
    """Full value snapshot of a schedule.

    Streamer and editor names are copied in, so the dict stays a faithful
    picture of this version after those rows are renamed. The same shape is
    returned by every schedule usecase and stored in history rows.
    """
    return {
        "id": schedule.id,
        "uuid": str(schedule.uuid),
        "title": schedule.title,
        "schedule_date": format_date(schedule.schedule_date),
        "start_time": format_datetime(schedule.start_time),
        "status": schedule.status.value,
        "description": schedule.description,
        "external_notice_url": schedule.external_notice_url,
        "streamer": {
            "uuid": str(schedule.streamer.uuid),
            "name": schedule.streamer.name,
        },
        "created_by": _user_ref(schedule.created_by),
        "updated_by": _user_ref(schedule.updated_by),
        "like_count": schedule.like_count,
        "version": schedule.version,
        "created_at": format_datetime(schedule.created_at),
        "updated_at": format_datetime(schedule.updated_at),
        "deleted_at": format_datetime(schedule.deleted_at),
    }


def _resolve_schedule(
    db: Session,
    identifier: str | int | uuid_module.UUID,
    *,
    include_deleted: bool = False,
    for_update: bool = False,
) -> Schedule:
    """Resolve a schedule by UUID or internal integer id.

    With ``for_update`` the row is locked for the rest of the transaction and
    its attributes are reloaded from the database, so a conflict check made
    against it sees the latest committed state.

    Raises NotFoundError if absent, or soft-deleted unless ``include_deleted``.
    """
    stmt = select(Schedule)
    if isinstance(identifier, uuid_module.UUID):
        stmt = stmt.where(Schedule.uuid == identifier)
    elif isinstance(identifier, int) or str(identifier).isdigit():
        stmt = stmt.where(Schedule.id == int(identifier))
    else:
        try:
            stmt = stmt.where(Schedule.uuid == uuid_module.UUID(str(identifier)))
        except ValueError:
            raise NotFoundError("SCHEDULE_NOT_FOUND", f"Schedule '{identifier}' not found")

    if not include_deleted:
        stmt = stmt.where(Schedule.deleted_at.is_(None))
    if for_update:
        stmt = stmt.with_for_update(of=Schedule).execution_options(populate_existing=True)

    schedule = db.execute(stmt).scalar_one_or_none()
    if schedule is None:
        raise NotFoundError("SCHEDULE_NOT_FOUND", f"Schedule '{identifier}' not found")
    return schedule


def show_schedule(
    db: Session,
    *,
    schedule_identifier: str | int | uuid_module.UUID,
    include_deleted: bool = False,
) -> dict[str, Any]:
    """Return one schedule as a snapshot dict.

    Args:
        db: Database session
        schedule_identifier: Schedule UUID or internal id
        include_deleted: Also resolve soft-deleted schedules

    Raises:
        NotFoundError: If the schedule does not exist (or is deleted)
    """
    schedule = _resolve_schedule(db, schedule_identifier, include_deleted=include_deleted)
    return serialize_schedule(schedule)


__all__ = ["format_date", "format_datetime", "serialize_schedule", "show_schedule"]
