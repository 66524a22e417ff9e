from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.orm import Session

from ..domain.entities import User
from ..infra.clock import Clock, default_clock
from ..infra.exceptions import ValidationError
from ..infra.uow import transaction
from ..shared.types import UserRole
from .schedule_show import format_datetime

_log = structlog.get_logger(__name__)

NICKNAME_MAX_LENGTH = 100


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "uuid": str(user.uuid),
        "nickname": user.nickname,
        "role": user.role.value,
        "is_active": user.is_active,
        "created_at": format_datetime(user.created_at),
        "updated_at": format_datetime(user.updated_at),
    }


def add_user(
    db: Session,
    *,
    nickname: str,
    role: str | UserRole = UserRole.USER,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Register a user the board can attribute changes to.

    Raises:
        ValidationError: INVALID_NICKNAME or INVALID_ROLE
    """
    normalized = (nickname or "").strip()
    if not normalized or len(normalized) > NICKNAME_MAX_LENGTH:
        raise ValidationError(
            "INVALID_NICKNAME", f"Nickname must be 1-{NICKNAME_MAX_LENGTH} characters"
        )
    try:
        parsed_role = UserRole(str(role.value if isinstance(role, UserRole) else role).upper())
    except ValueError:
        raise ValidationError("INVALID_ROLE", "Role must be USER or ADMIN")

    clock = clock or default_clock()
    now = clock.now()
    with transaction(db):
        user = User(nickname=normalized, role=parsed_role, is_active=True, created_at=now, updated_at=now)
        db.add(user)
        db.flush()
        result = serialize_user(user)

    _log.info("user_created", user_uuid=result["uuid"], role=result["role"])
    return result


__all__ = ["add_user", "serialize_user"]
