"""
Keyset-paginated schedule listing.

Rows are ordered by ``schedule_date`` (in the requested direction), then by
display rank (BREAK, TIME_TBD, SCHEDULED), then ``start_time`` ascending with
nulls first, then ``id`` (in the requested direction). A page ends with a
cursor holding the sort key of its last row; the next page is everything
strictly after that key. No offsets are used, so rows inserted behind the
cursor never shift later pages.
"""

from __future__ import annotations

import base64
import json
import uuid as uuid_module
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import and_, case, or_, select
from sqlalchemy.orm import Session, contains_eager, selectinload
from sqlalchemy.sql.elements import ColumnElement

from ..domain.entities import Schedule, Streamer
from ..infra.clock import as_utc
from ..infra.exceptions import ValidationError
from ..infra.settings import settings
from ..shared.types import ScheduleStatus, SortOrder
from .schedule_add import _parse_schedule_date, _parse_status
from .schedule_show import format_date, format_datetime, serialize_schedule

SEARCH_TERM_MIN_LENGTH = 2

_RANK_EXPR = case(
    (Schedule.status == ScheduleStatus.BREAK, ScheduleStatus.BREAK.display_rank),
    (Schedule.status == ScheduleStatus.TIME_TBD, ScheduleStatus.TIME_TBD.display_rank),
    else_=ScheduleStatus.SCHEDULED.display_rank,
)


@dataclass(frozen=True)
class ScheduleCursor:
    """Sort key of the last row of a page.

    ``rank`` is the display rank of that row. Without it a BREAK and a
    TIME_TBD row on the same date are indistinguishable (both have no
    start_time), so when omitted it is derived from ``start_time``.
    """

    schedule_date: date
    start_time: datetime | None
    id: int
    rank: int | None = None

    @property
    def resolved_rank(self) -> int:
        if self.rank is not None:
            return self.rank
        if self.start_time is not None:
            return ScheduleStatus.SCHEDULED.display_rank
        return ScheduleStatus.TIME_TBD.display_rank

    @classmethod
    def from_schedule(cls, schedule: Schedule) -> ScheduleCursor:
        return cls(
            schedule_date=schedule.schedule_date,
            start_time=as_utc(schedule.start_time) if schedule.start_time else None,
            id=schedule.id,
            rank=schedule.status.display_rank,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedule_date": format_date(self.schedule_date),
            "start_time": format_datetime(self.start_time),
            "id": self.id,
            "rank": self.resolved_rank,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScheduleCursor:
        try:
            start_raw = data.get("start_time")
            rank = data.get("rank")
            return cls(
                schedule_date=date.fromisoformat(data["schedule_date"]),
                start_time=as_utc(datetime.fromisoformat(start_raw)) if start_raw else None,
                id=int(data["id"]),
                rank=int(rank) if rank is not None else None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValidationError("INVALID_CURSOR", f"Malformed cursor: {e}")

    def encode(self) -> str:
        raw = json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> ScheduleCursor:
        try:
            padded = token + "=" * (-len(token) % 4)
            data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        except (ValueError, UnicodeError) as e:
            raise ValidationError("INVALID_CURSOR", f"Malformed cursor token: {e}")
        if not isinstance(data, dict):
            raise ValidationError("INVALID_CURSOR", "Malformed cursor token")
        return cls.from_dict(data)


def _coerce_cursor(cursor: ScheduleCursor | str | dict[str, Any] | None) -> ScheduleCursor | None:
    if cursor is None or isinstance(cursor, ScheduleCursor):
        return cursor
    if isinstance(cursor, dict):
        return ScheduleCursor.from_dict(cursor)
    if isinstance(cursor, str):
        if not cursor.strip():
            return None
        return ScheduleCursor.decode(cursor.strip())
    raise ValidationError("INVALID_CURSOR", f"Unsupported cursor type: {type(cursor).__name__}")


def _after(keys: list[tuple[ColumnElement[Any], bool, Any]]) -> ColumnElement[bool]:
    """Lexicographic "strictly after" over ``(expression, descending, cursor value)`` keys."""
    clauses = []
    equal_prefix: list[ColumnElement[bool]] = []
    for expr, descending, value in keys:
        if value is None:
            # Null start_time only occurs on BREAK/TIME_TBD rows, and every row of
            # such a (date, rank) group is null, so this key ties.
            continue
        step = expr < value if descending else expr > value
        clauses.append(and_(*equal_prefix, step))
        equal_prefix.append(expr == value)
    return or_(*clauses)


def _parse_sort_order(value: str | SortOrder) -> SortOrder:
    try:
        return SortOrder(str(value.value if isinstance(value, SortOrder) else value).upper())
    except ValueError:
        raise ValidationError("INVALID_SORT_ORDER", "sort_order must be ASC or DESC")


def _parse_streamer_uuids(identifiers: list[str]) -> list[uuid_module.UUID]:
    uuids = []
    for identifier in identifiers:
        try:
            uuids.append(uuid_module.UUID(str(identifier)))
        except ValueError:
            raise ValidationError("INVALID_STREAMER_ID", f"Invalid streamer UUID: '{identifier}'")
    return uuids


def list_schedules(
    db: Session,
    *,
    streamer_identifiers: list[str] | None = None,
    start_date: str | date | None = None,
    end_date: str | date | None = None,
    title: str | None = None,
    statuses: list[str | ScheduleStatus] | None = None,
    cursor: ScheduleCursor | str | dict[str, Any] | None = None,
    limit: int | None = None,
    sort_order: str | SortOrder = SortOrder.ASC,
) -> dict[str, Any]:
    """List live schedules one page at a time.

    Args:
        db: Database session
        streamer_identifiers: Only schedules of these streamer UUIDs
        start_date: Inclusive lower bound on schedule_date
        end_date: Inclusive upper bound on schedule_date
        title: Case-insensitive title substring (at least 2 characters after trimming)
        statuses: Only these statuses
        cursor: ``page.next`` or ``page.next_token`` of the previous page
        limit: Page size, 1..MAX_PAGE_SIZE (defaults to DEFAULT_PAGE_SIZE)
        sort_order: ASC or DESC on schedule_date and id

    Returns:
        Dictionary with status, size, page info and the schedule snapshots

    Raises:
        ValidationError: INVALID_LIMIT, INVALID_CURSOR, SEARCH_TERM_TOO_SHORT,
            INVALID_SORT_ORDER or a malformed filter value
    """
    if limit is None:
        limit = settings.default_page_size
    if limit < 1 or limit > settings.max_page_size:
        raise ValidationError(
            "INVALID_LIMIT", f"limit must be between 1 and {settings.max_page_size}"
        )
    order = _parse_sort_order(sort_order)
    descending = order is SortOrder.DESC
    page_cursor = _coerce_cursor(cursor)

    stmt = (
        select(Schedule)
        .join(Schedule.streamer)
        .options(
            contains_eager(Schedule.streamer),
            selectinload(Schedule.created_by),
            selectinload(Schedule.updated_by),
        )
        .where(Schedule.deleted_at.is_(None), Streamer.is_active.is_(True))
    )

    if streamer_identifiers:
        stmt = stmt.where(Streamer.uuid.in_(_parse_streamer_uuids(streamer_identifiers)))

    lower = _parse_schedule_date(start_date) if start_date is not None else None
    upper = _parse_schedule_date(end_date) if end_date is not None else None
    if lower and upper and lower > upper:
        raise ValidationError("INVALID_DATE_RANGE", "start_date must not be after end_date")
    if lower is not None:
        stmt = stmt.where(Schedule.schedule_date >= lower)
    if upper is not None:
        stmt = stmt.where(Schedule.schedule_date <= upper)

    if title is not None:
        term = title.strip()
        if term:
            if len(term) < SEARCH_TERM_MIN_LENGTH:
                raise ValidationError(
                    "SEARCH_TERM_TOO_SHORT",
                    f"Title search needs at least {SEARCH_TERM_MIN_LENGTH} characters",
                )
            stmt = stmt.where(Schedule.title.icontains(term, autoescape=True))

    if statuses:
        stmt = stmt.where(Schedule.status.in_([_parse_status(s) for s in statuses]))

    if page_cursor is not None:
        stmt = stmt.where(
            _after(
                [
                    (Schedule.schedule_date, descending, page_cursor.schedule_date),
                    (_RANK_EXPR, False, page_cursor.resolved_rank),
                    (Schedule.start_time, False, page_cursor.start_time),
                    (Schedule.id, descending, page_cursor.id),
                ]
            )
        )

    date_order = Schedule.schedule_date.desc() if descending else Schedule.schedule_date.asc()
    id_order = Schedule.id.desc() if descending else Schedule.id.asc()
    stmt = stmt.order_by(
        date_order,
        _RANK_EXPR.asc(),
        Schedule.start_time.asc().nulls_first(),
        id_order,
    ).limit(limit + 1)

    rows = list(db.execute(stmt).unique().scalars())
    has_more = len(rows) > limit
    rows = rows[:limit]

    next_cursor = ScheduleCursor.from_schedule(rows[-1]) if has_more else None
    return {
        "status": "ok",
        "size": limit,
        "page": {
            "next": next_cursor.to_dict() if next_cursor else None,
            "next_token": next_cursor.encode() if next_cursor else None,
            "has_more": has_more,
        },
        "data": [serialize_schedule(schedule) for schedule in rows],
    }


__all__ = ["ScheduleCursor", "list_schedules"]
