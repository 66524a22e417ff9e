from __future__ import annotations

import uuid as uuid_module
from typing import Any

import structlog
from sqlalchemy.orm import Session

from ..domain.actors import Actor
from ..infra.clock import Clock, default_clock
from ..infra.exceptions import ForbiddenError
from ..infra.uow import transaction
from .schedule_add import _resolve_actor
from .streamer_add import serialize_streamer
from .streamer_follow import _resolve_streamer

_log = structlog.get_logger(__name__)


def verify_streamer(
    db: Session,
    *,
    actor: Actor,
    streamer_identifier: str | uuid_module.UUID,
    verified: bool = True,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Mark a streamer verified (or revoke it). Admin only.

    Only verified streamers can receive new schedules; existing schedules are
    unaffected by a revocation.

    Raises:
        ForbiddenError: ADMIN_ONLY
        NotFoundError: Actor or streamer not found
    """
    if not actor.is_admin:
        raise ForbiddenError("ADMIN_ONLY", "Only an admin can verify streamers")

    clock = clock or default_clock()
    with transaction(db):
        user = _resolve_actor(db, actor)
        streamer = _resolve_streamer(db, streamer_identifier)
        streamer.is_verified = verified
        streamer.updated_by_id = user.id
        streamer.updated_at = clock.now()
        db.flush()
        result = serialize_streamer(streamer)

    _log.info(
        "streamer_verified" if verified else "streamer_unverified",
        streamer_uuid=result["uuid"],
        actor=str(actor.uuid),
    )
    return result


__all__ = ["verify_streamer"]
