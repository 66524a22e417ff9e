from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.orm import Session

from ..domain.actors import Actor
from ..domain.entities import Streamer
from ..infra.clock import Clock, default_clock
from ..infra.exceptions import ValidationError
from ..infra.uow import transaction
from .schedule_add import _resolve_actor, _validate_description
from .schedule_show import format_datetime

_log = structlog.get_logger(__name__)

NAME_MAX_LENGTH = 100


def serialize_streamer(streamer: Streamer) -> dict[str, Any]:
    return {
        "id": streamer.id,
        "uuid": str(streamer.uuid),
        "name": streamer.name,
        "description": streamer.description,
        "is_verified": streamer.is_verified,
        "is_active": streamer.is_active,
        "follow_count": streamer.follow_count,
        "created_at": format_datetime(streamer.created_at),
        "updated_at": format_datetime(streamer.updated_at),
    }


def add_streamer(
    db: Session,
    *,
    actor: Actor,
    name: str,
    description: str | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Register a streamer. New streamers start unverified.

    Raises:
        NotFoundError: Actor not found
        ValidationError: INVALID_NAME or INVALID_DESCRIPTION
    """
    normalized = (name or "").strip()
    if not normalized or len(normalized) > NAME_MAX_LENGTH:
        raise ValidationError("INVALID_NAME", f"Name must be 1-{NAME_MAX_LENGTH} characters")
    normalized_description = _validate_description(description)

    clock = clock or default_clock()
    with transaction(db):
        user = _resolve_actor(db, actor)
        now = clock.now()
        streamer = Streamer(
            name=normalized,
            description=normalized_description,
            is_verified=False,
            is_active=True,
            follow_count=0,
            created_by_id=user.id,
            updated_by_id=user.id,
            created_at=now,
            updated_at=now,
        )
        db.add(streamer)
        db.flush()
        result = serialize_streamer(streamer)

    _log.info("streamer_created", streamer_uuid=result["uuid"], actor=str(actor.uuid))
    return result


__all__ = ["add_streamer", "serialize_streamer"]
