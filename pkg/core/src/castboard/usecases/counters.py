"""Server-side counter updates for denormalized like/follow counts."""

from __future__ import annotations

from sqlalchemy import Table, case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..infra.exceptions import InternalError


def clamped_decrement(column):
    """``column - 1`` floored at zero, evaluated by the database."""
    return case((column > 0, column - 1), else_=0)


def apply_counter_delta(db: Session, table: Table, counter: str, row_id: int, delta: int) -> int:
    """Move ``table.counter`` of one row by +1 or -1 and return the new value.

    Issued as a Core UPDATE so ORM version counters and updated_at stay untouched.

    Raises:
        InternalError: COUNTER_UPDATE_FAILED if the statement fails or matches no row
    """
    column = table.c[counter]
    value = column + 1 if delta > 0 else clamped_decrement(column)
    try:
        new_count = db.execute(
            update(table)
            .where(table.c.id == row_id)
            .values({counter: value})
            .returning(column)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        raise InternalError(
            "COUNTER_UPDATE_FAILED", f"Could not update {table.name}.{counter}: {e}"
        ) from e
    if new_count is None:
        raise InternalError(
            "COUNTER_UPDATE_FAILED", f"{table.name}.{counter} update matched no row (id={row_id})"
        )
    return new_count
