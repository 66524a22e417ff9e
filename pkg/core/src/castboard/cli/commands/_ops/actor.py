"""Actor resolution and output helpers for CLI commands."""

from __future__ import annotations

import json
import uuid as uuid_module
from typing import Any

import typer
from sqlalchemy import select
from sqlalchemy.orm import Session

from ....domain.actors import Actor
from ....domain.entities import User
from ....infra.exceptions import CastboardError, NotFoundError, ValidationError


def resolve_actor(db: Session, actor_uuid: str) -> Actor:
    """Build the Actor for ``--actor``, reading the role from the users table.

    Raises:
        ValidationError: INVALID_ACTOR if the value is not a UUID
        NotFoundError: USER_NOT_FOUND if no active user has that UUID
    """
    try:
        parsed = uuid_module.UUID(actor_uuid)
    except (TypeError, ValueError):
        raise ValidationError("INVALID_ACTOR", f"--actor must be a user UUID, got '{actor_uuid}'")
    user = db.execute(
        select(User).where(User.uuid == parsed, User.is_active.is_(True))
    ).scalar_one_or_none()
    if user is None:
        raise NotFoundError("USER_NOT_FOUND", f"User '{actor_uuid}' not found")
    return Actor(uuid=user.uuid, role=user.role)


def emit_result(payload: dict[str, Any], json_output: bool, lines: list[str]) -> None:
    if json_output:
        typer.echo(json.dumps(payload, indent=2))
        return
    for line in lines:
        typer.echo(line)


def emit_error(error: CastboardError, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps(error.to_dict(), indent=2))
    else:
        typer.echo(f"Error [{error.kind.value}/{error.code}]: {error.message}", err=True)
