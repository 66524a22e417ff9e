"""
Append-only schedule history.

``record_history`` is called by every schedule mutation inside the mutation's
own transaction. If the audit row cannot be written the whole unit of work is
rolled back: a change without its history row is never durable.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.entities import ScheduleHistory
from ..infra.exceptions import InternalError, NotFoundError
from ..shared.types import HistoryAction, ScheduleSnapshot
from .schedule_show import _resolve_schedule, format_datetime

_log = structlog.get_logger(__name__)


def record_history(
    db: Session,
    *,
    schedule_uuid: uuid_module.UUID,
    action: HistoryAction,
    previous: ScheduleSnapshot | None,
    current: ScheduleSnapshot | None,
    modified_by: uuid_module.UUID,
    created_at: datetime | None = None,
) -> ScheduleHistory:
    """Append one immutable history row and flush it.

    Raises:
        InternalError: HISTORY_APPEND_FAILED when the row cannot be written
    """
    entry = ScheduleHistory(
        schedule_uuid=schedule_uuid,
        action=action,
        previous_snapshot=previous,
        current_snapshot=current,
        modified_by=modified_by,
    )
    if created_at is not None:
        entry.created_at = created_at
    try:
        db.add(entry)
        db.flush()
    except SQLAlchemyError as e:
        _log.error(
            "history_append_failed",
            schedule_uuid=str(schedule_uuid),
            action=action.value,
            error=str(e),
        )
        raise InternalError(
            "HISTORY_APPEND_FAILED",
            f"Could not record {action.value} history for schedule '{schedule_uuid}'",
        ) from e
    return entry


def _format_entry(entry: ScheduleHistory) -> dict[str, Any]:
    return {
        "id": entry.id,
        "schedule_uuid": str(entry.schedule_uuid),
        "action": entry.action.value,
        "previous_snapshot": entry.previous_snapshot,
        "current_snapshot": entry.current_snapshot,
        "modified_by": str(entry.modified_by),
        "created_at": format_datetime(entry.created_at),
    }


def _history_rows(db: Session, schedule_uuid: uuid_module.UUID) -> list[ScheduleHistory]:
    return list(
        db.execute(
            select(ScheduleHistory)
            .where(ScheduleHistory.schedule_uuid == schedule_uuid)
            .order_by(ScheduleHistory.created_at.asc(), ScheduleHistory.id.asc())
        ).scalars()
    )


def list_schedule_history(
    db: Session,
    *,
    schedule_identifier: str | int | uuid_module.UUID,
) -> dict[str, Any]:
    """List every history row of a schedule, oldest first.

    Deleted schedules keep their history and remain listable.

    Raises:
        NotFoundError: If the schedule never existed
    """
    schedule = _resolve_schedule(db, schedule_identifier, include_deleted=True)
    entries = [_format_entry(entry) for entry in _history_rows(db, schedule.uuid)]
    return {
        "status": "ok",
        "schedule_uuid": str(schedule.uuid),
        "total": len(entries),
        "history": entries,
    }


def reconstruct_schedule(
    db: Session,
    *,
    schedule_identifier: str | int | uuid_module.UUID,
    version: int,
) -> ScheduleSnapshot:
    """Return the full state a schedule had at ``version``.

    Raises:
        NotFoundError: If the schedule or that version is unknown
    """
    schedule = _resolve_schedule(db, schedule_identifier, include_deleted=True)
    for entry in _history_rows(db, schedule.uuid):
        snapshot = entry.current_snapshot
        if snapshot is not None and snapshot.get("version") == version:
            return snapshot
    raise NotFoundError(
        "VERSION_NOT_FOUND",
        f"Schedule '{schedule_identifier}' has no version {version}",
    )


__all__ = ["list_schedule_history", "reconstruct_schedule", "record_history"]
