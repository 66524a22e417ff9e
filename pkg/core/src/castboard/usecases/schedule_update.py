from __future__ import annotations

import uuid as uuid_module
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..domain.actors import Actor
from ..domain.entities import Schedule
from ..infra.clock import Clock, as_utc, default_clock, next_tick
from ..infra.exceptions import ConflictError, ForbiddenError, ValidationError
from ..infra.uow import transaction
from ..shared.types import HistoryAction, ScheduleStatus
from .schedule_add import (
    _parse_start_time,
    _parse_status,
    _resolve_actor,
    _validate_description,
    _validate_status_time,
    _validate_title,
)
from .schedule_history import record_history
from .schedule_show import _resolve_schedule, format_datetime, serialize_schedule

_log = structlog.get_logger(__name__)


def _parse_token(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value).strip()))
    except ValueError as e:
        raise ValidationError(
            "INVALID_TOKEN", f"last_updated_at must be an ISO-8601 timestamp: {e}"
        )


def _lock_schedule(db: Session, identifier: str | int | uuid_module.UUID) -> Schedule:
    """Load the live schedule with a row lock for the rest of the transaction."""
    return _resolve_schedule(db, identifier, for_update=True)


def check_token(schedule: Schedule, last_updated_at: str | datetime) -> None:
    """Compare the caller's last-observed ``updated_at`` with the stored one.

    Raises:
        ConflictError: CONFLICT_MODIFIED when the record moved on since that read
    """
    expected = _parse_token(last_updated_at)
    actual = as_utc(schedule.updated_at)
    if expected != actual:
        _log.info(
            "schedule_conflict",
            schedule_uuid=str(schedule.uuid),
            last_updated_at=format_datetime(expected),
            current_updated_at=format_datetime(actual),
        )
        raise ConflictError(
            "CONFLICT_MODIFIED",
            f"Schedule '{schedule.uuid}' was modified at {format_datetime(actual)}; "
            "reload and retry",
        )


def flush_versioned(db: Session, schedule: Schedule) -> None:
    """Flush a schedule UPDATE guarded by its version counter.

    Raises:
        ConflictError: CONFLICT_MODIFIED when another writer committed first
    """
    # A failed flush expires the instance, so nothing may be read from it afterwards
    schedule_uuid = str(schedule.uuid)
    try:
        db.flush()
    except StaleDataError as e:
        _log.info("schedule_conflict", schedule_uuid=schedule_uuid, stale_version=True)
        raise ConflictError(
            "CONFLICT_MODIFIED",
            f"Schedule '{schedule_uuid}' was modified by another writer; reload and retry",
        ) from e


def update_schedule(
    db: Session,
    *,
    actor: Actor,
    schedule_identifier: str | int | uuid_module.UUID,
    last_updated_at: str | datetime,
    title: str | None = None,
    status: str | ScheduleStatus | None = None,
    start_time: str | datetime | None = None,
    description: str | None = None,
    external_notice_url: str | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """
    Apply a partial change to a live schedule under optimistic concurrency.

    Rules are evaluated on the resulting state. Moving away from SCHEDULED
    clears start_time. Streamer and schedule_date cannot change.

    Args:
        db: Database session
        actor: Authenticated actor making the change
        schedule_identifier: Schedule UUID or internal id
        last_updated_at: ``updated_at`` as the caller last observed it
        title: New title (optional)
        status: New status (optional)
        start_time: New start instant (optional)
        description: New description, empty string clears it (optional)
        external_notice_url: New notice link, empty string clears it (optional)
        clock: Reference-timezone clock (defaults to the system clock)

    Returns:
        Snapshot dict of the updated schedule

    Raises:
        ValidationError: NO_CHANGES or a status/time rule failed
        NotFoundError: Actor or schedule not found
        ForbiddenError: Past-date schedule edited by a non-admin
        ConflictError: CONFLICT_MODIFIED
        InternalError: The history row could not be written
    """
    if all(
        value is None
        for value in (title, status, start_time, description, external_notice_url)
    ):
        raise ValidationError("NO_CHANGES", "At least one field must be provided for update")

    clock = clock or default_clock()

    with transaction(db):
        user = _resolve_actor(db, actor)
        schedule = _lock_schedule(db, schedule_identifier)
        check_token(schedule, last_updated_at)

        if schedule.schedule_date < clock.today() and not actor.is_admin:
            raise ForbiddenError(
                "PAST_SCHEDULE_ADMIN_ONLY",
                f"Schedule on {schedule.schedule_date.isoformat()} is in the past; "
                "only an admin can edit it",
            )

        new_title = _validate_title(title) if title is not None else schedule.title
        new_description = schedule.description
        if description is not None:
            new_description = _validate_description(description) or None

        new_status = _parse_status(status) if status is not None else schedule.status
        new_start = schedule.start_time
        if start_time is not None:
            new_start = _parse_start_time(start_time, clock.tz)
        elif new_status is not ScheduleStatus.SCHEDULED:
            new_start = None
        _validate_status_time(new_status, new_start, schedule.schedule_date, clock.tz)

        previous = serialize_schedule(schedule)

        schedule.title = new_title
        schedule.description = new_description
        schedule.status = new_status
        schedule.start_time = new_start
        if external_notice_url is not None:
            schedule.external_notice_url = external_notice_url.strip() or None
        schedule.updated_by = user
        schedule.updated_at = next_tick(clock.now(), schedule.updated_at)
        flush_versioned(db, schedule)

        result = serialize_schedule(schedule)
        record_history(
            db,
            schedule_uuid=schedule.uuid,
            action=HistoryAction.UPDATE,
            previous=previous,
            current=result,
            modified_by=actor.uuid,
            created_at=schedule.updated_at,
        )

    _log.info(
        "schedule_updated",
        schedule_uuid=result["uuid"],
        version=result["version"],
        status=result["status"],
        actor=str(actor.uuid),
    )
    return result


__all__ = ["check_token", "flush_versioned", "update_schedule"]
