"""
Streamer follows, the denormalized ``follow_count`` and the follow log.

Follow and unfollow move the counter and append a StreamerFollowHistory row in
the same transaction as the relation change. Toggling ``is_active`` in a batch
only mutes or unmutes notifications; the relation and the counter stay.
"""

from __future__ import annotations

import uuid as uuid_module
from collections.abc import Iterable
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..domain.actors import Actor
from ..domain.entities import Streamer, StreamerFollow, StreamerFollowHistory, User
from ..infra.clock import Clock, default_clock
from ..infra.exceptions import AlreadyExistsError, ForbiddenError, NotFoundError, ValidationError
from ..infra.uow import transaction
from ..shared.types import FollowAction
from .counters import apply_counter_delta
from .schedule_add import _resolve_actor
from .schedule_show import format_datetime

_log = structlog.get_logger(__name__)

_streamers = Streamer.__table__

USER_HISTORY_LIMIT = 20
STREAMER_HISTORY_LIMIT = 50


def _resolve_streamer(db: Session, identifier: str | uuid_module.UUID) -> Streamer:
    """Resolve an active streamer by UUID.

    Raises NotFoundError if the streamer is unknown or inactive.
    """
    try:
        streamer_uuid = uuid_module.UUID(str(identifier))
    except ValueError:
        raise NotFoundError("STREAMER_NOT_FOUND", f"Streamer '{identifier}' not found")
    streamer = db.execute(
        select(Streamer).where(Streamer.uuid == streamer_uuid, Streamer.is_active.is_(True))
    ).scalar_one_or_none()
    if streamer is None:
        raise NotFoundError("STREAMER_NOT_FOUND", f"Streamer '{identifier}' not found")
    return streamer


def _append_follow_history(
    db: Session, user: User, streamer: Streamer, action: FollowAction, at: datetime
) -> None:
    db.add(
        StreamerFollowHistory(user_id=user.id, streamer_id=streamer.id, action=action, created_at=at)
    )
    db.flush()


def follow_streamer(
    db: Session,
    *,
    actor: Actor,
    streamer_identifier: str | uuid_module.UUID,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Follow a streamer and increment its follow_count.

    Raises:
        NotFoundError: Actor or streamer not found
        AlreadyExistsError: ALREADY_FOLLOWING
        InternalError: COUNTER_UPDATE_FAILED
    """
    clock = clock or default_clock()
    with transaction(db):
        user = _resolve_actor(db, actor)
        streamer = _resolve_streamer(db, streamer_identifier)
        streamer_uuid = str(streamer.uuid)
        now = clock.now()
        try:
            with db.begin_nested():
                db.add(
                    StreamerFollow(
                        user_id=user.id,
                        streamer_id=streamer.id,
                        is_active=True,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as e:
            raise AlreadyExistsError(
                "ALREADY_FOLLOWING", f"Already following streamer '{streamer_uuid}'"
            ) from e
        _append_follow_history(db, user, streamer, FollowAction.FOLLOW, now)
        follow_count = apply_counter_delta(db, _streamers, "follow_count", streamer.id, +1)

    _log.info(
        "streamer_followed", streamer_uuid=streamer_uuid, actor=str(actor.uuid), follow_count=follow_count
    )
    return {
        "status": "ok",
        "streamer_uuid": streamer_uuid,
        "following": True,
        "follow_count": follow_count,
    }


def unfollow_streamer(
    db: Session,
    *,
    actor: Actor,
    streamer_identifier: str | uuid_module.UUID,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Unfollow a streamer and decrement its follow_count (never below zero).

    Raises:
        NotFoundError: Actor, streamer or follow relation not found
        InternalError: COUNTER_UPDATE_FAILED
    """
    clock = clock or default_clock()
    with transaction(db):
        user = _resolve_actor(db, actor)
        streamer = _resolve_streamer(db, streamer_identifier)
        streamer_uuid = str(streamer.uuid)
        removed = db.execute(
            delete(StreamerFollow).where(
                StreamerFollow.user_id == user.id,
                StreamerFollow.streamer_id == streamer.id,
            )
        ).rowcount
        if not removed:
            raise NotFoundError(
                "FOLLOW_NOT_FOUND", f"Not following streamer '{streamer_uuid}'"
            )
        _append_follow_history(db, user, streamer, FollowAction.UNFOLLOW, clock.now())
        follow_count = apply_counter_delta(db, _streamers, "follow_count", streamer.id, -1)

    _log.info(
        "streamer_unfollowed", streamer_uuid=streamer_uuid, actor=str(actor.uuid), follow_count=follow_count
    )
    return {
        "status": "ok",
        "streamer_uuid": streamer_uuid,
        "following": False,
        "follow_count": follow_count,
    }


def is_following(
    db: Session,
    *,
    actor: Actor,
    streamer_identifier: str | uuid_module.UUID,
) -> bool:
    """Whether a follow relation exists (muted relations count as following)."""
    user = _resolve_actor(db, actor)
    streamer = _resolve_streamer(db, streamer_identifier)
    row = db.execute(
        select(StreamerFollow.id).where(
            StreamerFollow.user_id == user.id,
            StreamerFollow.streamer_id == streamer.id,
        )
    ).first()
    return row is not None


def batch_update_follow_status(
    db: Session,
    *,
    actor: Actor,
    updates: Iterable[tuple[str, bool]],
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Set ``is_active`` on several of the actor's follow relations at once.

    Each (streamer uuid, is_active) pair is applied independently. Pairs naming
    a streamer the actor does not follow, or a malformed uuid, are skipped.

    Returns:
        Dictionary with requested, updated and skipped counts
    """
    clock = clock or default_clock()
    pairs = list(updates)
    updated = 0

    with transaction(db):
        user = _resolve_actor(db, actor)
        now = clock.now()
        for identifier, active in pairs:
            try:
                streamer_uuid = uuid_module.UUID(str(identifier))
            except ValueError:
                continue
            follow = db.execute(
                select(StreamerFollow)
                .join(Streamer, Streamer.id == StreamerFollow.streamer_id)
                .where(StreamerFollow.user_id == user.id, Streamer.uuid == streamer_uuid)
            ).scalar_one_or_none()
            if follow is None:
                continue
            follow.is_active = bool(active)
            follow.updated_at = now
            updated += 1
        db.flush()

    _log.info(
        "follow_status_batch_updated",
        actor=str(actor.uuid),
        requested=len(pairs),
        updated=updated,
    )
    return {
        "status": "ok",
        "requested": len(pairs),
        "updated": updated,
        "skipped": len(pairs) - updated,
    }


def _format_follow_history(entry: StreamerFollowHistory) -> dict[str, Any]:
    return {
        "id": entry.id,
        "action": entry.action.value,
        "streamer": {"uuid": str(entry.streamer.uuid), "name": entry.streamer.name},
        "user": {"uuid": str(entry.user.uuid), "nickname": entry.user.nickname},
        "created_at": format_datetime(entry.created_at),
    }


def _check_limit(limit: int) -> None:
    if limit < 1:
        raise ValidationError("INVALID_LIMIT", "limit must be at least 1")


def list_user_follow_history(
    db: Session,
    *,
    actor: Actor,
    limit: int = USER_HISTORY_LIMIT,
) -> dict[str, Any]:
    """The actor's own follow/unfollow log, newest first."""
    _check_limit(limit)
    user = _resolve_actor(db, actor)
    entries = db.execute(
        select(StreamerFollowHistory)
        .options(selectinload(StreamerFollowHistory.streamer), selectinload(StreamerFollowHistory.user))
        .where(StreamerFollowHistory.user_id == user.id)
        .order_by(StreamerFollowHistory.created_at.desc(), StreamerFollowHistory.id.desc())
        .limit(limit)
    ).scalars()
    history = [_format_follow_history(entry) for entry in entries]
    return {"status": "ok", "total": len(history), "history": history}


def list_streamer_follow_history(
    db: Session,
    *,
    actor: Actor,
    streamer_identifier: str | uuid_module.UUID,
    limit: int = STREAMER_HISTORY_LIMIT,
) -> dict[str, Any]:
    """A streamer's follow/unfollow log, newest first (admin only).

    Raises:
        ForbiddenError: ADMIN_ONLY
        NotFoundError: Streamer not found
    """
    if not actor.is_admin:
        raise ForbiddenError("ADMIN_ONLY", "Only an admin can view a streamer's follow history")
    _check_limit(limit)
    streamer = _resolve_streamer(db, streamer_identifier)
    entries = db.execute(
        select(StreamerFollowHistory)
        .options(selectinload(StreamerFollowHistory.streamer), selectinload(StreamerFollowHistory.user))
        .where(StreamerFollowHistory.streamer_id == streamer.id)
        .order_by(StreamerFollowHistory.created_at.desc(), StreamerFollowHistory.id.desc())
        .limit(limit)
    ).scalars()
    history = [_format_follow_history(entry) for entry in entries]
    return {
        "status": "ok",
        "streamer_uuid": str(streamer.uuid),
        "total": len(history),
        "history": history,
    }


__all__ = [
    "batch_update_follow_status",
    "follow_streamer",
    "is_following",
    "list_streamer_follow_history",
    "list_user_follow_history",
    "unfollow_streamer",
]
