from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain.actors import Actor
from ..domain.entities import Schedule, User
from ..domain.interfaces import StreamerDirectory
from ..infra.clock import Clock, as_utc, default_clock, reference_date
from ..infra.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from ..infra.streamer_directory import SqlStreamerDirectory
from ..infra.uow import transaction
from ..shared.types import HistoryAction, ScheduleStatus
from .schedule_history import record_history
from .schedule_show import serialize_schedule

_log = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


def _resolve_actor(db: Session, actor: Actor) -> User:
    """Resolve the acting user row.

    Raises NotFoundError if the actor is unknown or deactivated.
    """
    user = db.execute(
        select(User).where(User.uuid == actor.uuid, User.is_active.is_(True))
    ).scalar_one_or_none()
    if user is None:
        raise NotFoundError("USER_NOT_FOUND", f"User '{actor.uuid}' not found")
    return user


def _validate_title(title: str) -> str:
    normalized = (title or "").strip()
    if not normalized or len(normalized) > TITLE_MAX_LENGTH:
        raise ValidationError(
            "INVALID_TITLE", f"Title must be 1-{TITLE_MAX_LENGTH} characters"
        )
    return normalized


def _validate_description(description: str | None) -> str | None:
    if description is None:
        return None
    normalized = description.strip()
    if len(normalized) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            "INVALID_DESCRIPTION",
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
        )
    return normalized


def _parse_schedule_date(value: str | date) -> date:
    """Parse a YYYY-MM-DD calendar date.

    Raises ValidationError if format is invalid.
    """
    if isinstance(value, datetime):
        raise ValidationError("INVALID_DATE", "schedule_date must be a calendar date, not an instant")
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("INVALID_DATE", f"Invalid date format. Use YYYY-MM-DD: {e}")


def _parse_start_time(value: str | datetime | None, tz: tzinfo) -> datetime | None:
    """Parse a start time into an aware UTC instant.

    Values without an offset are read as reference-timezone wall time.

    Raises ValidationError if format is invalid.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValidationError("INVALID_START_TIME", f"Invalid start time. Use ISO-8601: {e}")
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        value = value.replace(tzinfo=tz)
    return as_utc(value)


def _parse_status(value: str | ScheduleStatus) -> ScheduleStatus:
    try:
        return ScheduleStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ScheduleStatus)
        raise ValidationError("INVALID_STATUS", f"Status must be one of: {allowed}")


def _validate_not_past(schedule_date: date, clock: Clock) -> None:
    today = clock.today()
    if schedule_date < today:
        raise ValidationError(
            "PAST_DATE_NOT_ALLOWED",
            f"schedule_date {schedule_date.isoformat()} is before today ({today.isoformat()})",
        )


def _validate_status_time(
    status: ScheduleStatus,
    start_time: datetime | None,
    schedule_date: date,
    tz: tzinfo,
) -> None:
    """Enforce the status/start-time invariant on a complete (resulting) state.

    SCHEDULED needs a start time on the schedule's reference date; TIME_TBD and
    BREAK carry none.
    """
    if status is ScheduleStatus.SCHEDULED:
        if start_time is None:
            raise ValidationError(
                "SCHEDULED_NEEDS_TIME", "A SCHEDULED schedule requires a start time"
            )
        start_date = reference_date(start_time, tz)
        if start_date != schedule_date:
            raise ValidationError(
                "DATE_TIME_MISMATCH",
                f"Start time falls on {start_date.isoformat()}, "
                f"not on schedule_date {schedule_date.isoformat()}",
            )
    elif start_time is not None:
        raise ValidationError(
            "TIME_ONLY_FOR_SCHEDULED",
            f"A start time can only be set on a SCHEDULED schedule (status is {status.value})",
        )


def _check_slot_available(db: Session, streamer_id: int, schedule_date: date) -> None:
    existing = db.execute(
        select(Schedule.id).where(
            Schedule.streamer_id == streamer_id,
            Schedule.schedule_date == schedule_date,
            Schedule.deleted_at.is_(None),
        )
    ).first()
    if existing is not None:
        raise AlreadyExistsError(
            "ALREADY_EXISTS",
            f"A schedule already exists for this streamer on {schedule_date.isoformat()}",
        )


def add_schedule(
    db: Session,
    *,
    actor: Actor,
    streamer_identifier: str,
    title: str,
    schedule_date: str | date,
    status: str | ScheduleStatus,
    start_time: str | datetime | None = None,
    description: str | None = None,
    external_notice_url: str | None = None,
    clock: Clock | None = None,
    streamers: StreamerDirectory | None = None,
) -> dict[str, Any]:
    """Create a Schedule at version 1 and record its CREATE history row.

    Args:
        db: Database session
        actor: Authenticated actor creating the schedule
        streamer_identifier: Streamer UUID (must exist, be active and verified)
        title: Schedule title (1-200 characters)
        schedule_date: Reference-timezone calendar date (YYYY-MM-DD)
        status: SCHEDULED, TIME_TBD or BREAK
        start_time: Start instant, required for SCHEDULED and forbidden otherwise
        description: Optional description (at most 1000 characters)
        external_notice_url: Optional link to the streamer's own announcement
        clock: Reference-timezone clock (defaults to the system clock)
        streamers: Streamer lookup (defaults to the streamers table)

    Returns:
        Snapshot dict of the created schedule

    Raises:
        NotFoundError: Actor or streamer not found
        ValidationError: NOT_VERIFIED, PAST_DATE_NOT_ALLOWED, SCHEDULED_NEEDS_TIME,
            TIME_ONLY_FOR_SCHEDULED, DATE_TIME_MISMATCH or a malformed field
        AlreadyExistsError: The streamer already has a schedule on that date
        InternalError: The history row could not be written
    """
    clock = clock or default_clock()
    streamers = streamers or SqlStreamerDirectory()

    with transaction(db):
        user = _resolve_actor(db, actor)
        normalized_title = _validate_title(title)
        normalized_description = _validate_description(description)

        streamer = streamers.lookup(db, streamer_identifier)
        if streamer is None:
            raise NotFoundError("STREAMER_NOT_FOUND", f"Streamer '{streamer_identifier}' not found")
        if not streamer.is_verified:
            raise ValidationError("NOT_VERIFIED", f"Streamer '{streamer.name}' is not verified")

        parsed_date = _parse_schedule_date(schedule_date)
        _validate_not_past(parsed_date, clock)

        parsed_status = _parse_status(status)
        parsed_start = _parse_start_time(start_time, clock.tz)
        _validate_status_time(parsed_status, parsed_start, parsed_date, clock.tz)

        _check_slot_available(db, streamer.id, parsed_date)

        now = clock.now()
        schedule = Schedule(
            title=normalized_title,
            schedule_date=parsed_date,
            start_time=parsed_start,
            status=parsed_status,
            description=normalized_description,
            external_notice_url=external_notice_url,
            streamer=streamer,
            created_by=user,
            updated_by=user,
            like_count=0,
            created_at=now,
            updated_at=now,
        )
        db.add(schedule)
        try:
            db.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent create for the same slot
            raise AlreadyExistsError(
                "ALREADY_EXISTS",
                f"A schedule already exists for this streamer on {parsed_date.isoformat()}",
            ) from e

        result = serialize_schedule(schedule)
        record_history(
            db,
            schedule_uuid=schedule.uuid,
            action=HistoryAction.CREATE,
            previous=None,
            current=result,
            modified_by=actor.uuid,
            created_at=now,
        )

    _log.info(
        "schedule_created",
        schedule_uuid=result["uuid"],
        streamer_uuid=result["streamer"]["uuid"],
        schedule_date=result["schedule_date"],
        status=result["status"],
        actor=str(actor.uuid),
    )
    return result


__all__ = ["add_schedule"]
