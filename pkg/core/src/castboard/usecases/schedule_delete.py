from __future__ import annotations

import uuid as uuid_module
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.orm import Session

from ..domain.actors import Actor
from ..infra.clock import Clock, default_clock, next_tick
from ..infra.exceptions import ForbiddenError
from ..infra.uow import transaction
from ..shared.types import HistoryAction
from .schedule_add import _resolve_actor
from .schedule_history import record_history
from .schedule_show import serialize_schedule
from .schedule_update import _lock_schedule, check_token, flush_versioned

_log = structlog.get_logger(__name__)


def delete_schedule(
    db: Session,
    *,
    actor: Actor,
    schedule_identifier: str | int | uuid_module.UUID,
    last_updated_at: str | datetime | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """
    Soft-delete a schedule (admin only).

    The row stays for history; ``deleted_at`` is set, the version is bumped and a
    DELETE history row is appended whose current snapshot is the deleted state.
    The streamer's slot for that date becomes free again.

    Args:
        db: Database session
        actor: Authenticated admin actor
        schedule_identifier: Schedule UUID or internal id
        last_updated_at: Optional concurrency token; checked when given
        clock: Clock used for deleted_at/updated_at

    Returns:
        Snapshot dict of the deleted schedule

    Raises:
        ForbiddenError: ADMIN_ONLY
        NotFoundError: Actor or schedule not found (or already deleted)
        ConflictError: CONFLICT_MODIFIED
    """
    if not actor.is_admin:
        raise ForbiddenError("ADMIN_ONLY", "Only an admin can delete schedules")

    clock = clock or default_clock()

    with transaction(db):
        user = _resolve_actor(db, actor)
        schedule = _lock_schedule(db, schedule_identifier)
        if last_updated_at is not None:
            check_token(schedule, last_updated_at)

        previous = serialize_schedule(schedule)

        now = next_tick(clock.now(), schedule.updated_at)
        schedule.deleted_at = now
        schedule.updated_at = now
        schedule.updated_by = user
        flush_versioned(db, schedule)

        result = serialize_schedule(schedule)
        record_history(
            db,
            schedule_uuid=schedule.uuid,
            action=HistoryAction.DELETE,
            previous=previous,
            current=result,
            modified_by=actor.uuid,
            created_at=now,
        )

    _log.info(
        "schedule_deleted",
        schedule_uuid=result["uuid"],
        version=result["version"],
        actor=str(actor.uuid),
    )
    return result
