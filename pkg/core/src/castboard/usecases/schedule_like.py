"""
Schedule likes and the denormalized ``like_count``.

The like row and the counter change commit together. The unique constraint on
(user, schedule) is what rejects a second like; the counter is only ever moved
by server-side expressions, never by read-modify-write.
"""

from __future__ import annotations

import uuid as uuid_module
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain.actors import Actor
from ..domain.entities import Schedule, ScheduleLike
from ..infra.exceptions import AlreadyExistsError, NotFoundError
from ..infra.uow import transaction
from .counters import apply_counter_delta
from .schedule_add import _resolve_actor
from .schedule_show import _resolve_schedule

_log = structlog.get_logger(__name__)

_schedules = Schedule.__table__


def _result(schedule: Schedule, *, liked: bool, like_count: int) -> dict[str, Any]:
    return {
        "status": "ok",
        "schedule_uuid": str(schedule.uuid),
        "liked": liked,
        "like_count": like_count,
    }


def like_schedule(
    db: Session,
    *,
    actor: Actor,
    schedule_identifier: str | int | uuid_module.UUID,
) -> dict[str, Any]:
    """Record the actor's like and increment like_count.

    Raises:
        NotFoundError: Actor or schedule not found
        AlreadyExistsError: ALREADY_LIKED
        InternalError: COUNTER_UPDATE_FAILED
    """
    with transaction(db):
        user = _resolve_actor(db, actor)
        schedule = _resolve_schedule(db, schedule_identifier)
        try:
            with db.begin_nested():
                db.add(ScheduleLike(user_id=user.id, schedule_id=schedule.id))
        except IntegrityError as e:
            raise AlreadyExistsError(
                "ALREADY_LIKED", f"Schedule '{schedule.uuid}' is already liked"
            ) from e
        like_count = apply_counter_delta(db, _schedules, "like_count", schedule.id, +1)

    _log.info(
        "schedule_liked",
        schedule_uuid=str(schedule.uuid),
        actor=str(actor.uuid),
        like_count=like_count,
    )
    return _result(schedule, liked=True, like_count=like_count)


def unlike_schedule(
    db: Session,
    *,
    actor: Actor,
    schedule_identifier: str | int | uuid_module.UUID,
) -> dict[str, Any]:
    """Remove the actor's like and decrement like_count (never below zero).

    Raises:
        NotFoundError: Actor, schedule or like not found
        InternalError: COUNTER_UPDATE_FAILED
    """
    with transaction(db):
        user = _resolve_actor(db, actor)
        schedule = _resolve_schedule(db, schedule_identifier)
        removed = db.execute(
            delete(ScheduleLike).where(
                ScheduleLike.user_id == user.id,
                ScheduleLike.schedule_id == schedule.id,
            )
        ).rowcount
        if not removed:
            raise NotFoundError(
                "LIKE_NOT_FOUND", f"Schedule '{schedule.uuid}' is not liked by this user"
            )
        like_count = apply_counter_delta(db, _schedules, "like_count", schedule.id, -1)

    _log.info(
        "schedule_unliked",
        schedule_uuid=str(schedule.uuid),
        actor=str(actor.uuid),
        like_count=like_count,
    )
    return _result(schedule, liked=False, like_count=like_count)


def has_liked(
    db: Session,
    *,
    actor: Actor,
    schedule_identifier: str | int | uuid_module.UUID,
) -> bool:
    """Whether the actor currently likes the schedule."""
    user = _resolve_actor(db, actor)
    schedule = _resolve_schedule(db, schedule_identifier)
    row = db.execute(
        select(ScheduleLike.id).where(
            ScheduleLike.user_id == user.id,
            ScheduleLike.schedule_id == schedule.id,
        )
    ).first()
    return row is not None


__all__ = ["has_liked", "like_schedule", "unlike_schedule"]
