"""
Shared types and enums for Castboard.

This module contains common types and enums that are used across
the domain, usecase, CLI, and other layers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ScheduleStatus(str, Enum):
    """Broadcast state of a schedule slot."""

    SCHEDULED = "SCHEDULED"
    TIME_TBD = "TIME_TBD"
    BREAK = "BREAK"

    @property
    def display_rank(self) -> int:
        """Position within one day: breaks first, then undecided, then timed slots."""
        return _DISPLAY_RANK[self]


_DISPLAY_RANK = {
    ScheduleStatus.BREAK: 0,
    ScheduleStatus.TIME_TBD: 1,
    ScheduleStatus.SCHEDULED: 2,
}


class HistoryAction(str, Enum):
    """Lifecycle transitions recorded in schedule history."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class FollowAction(str, Enum):
    """Transitions recorded in streamer follow history."""

    FOLLOW = "FOLLOW"
    UNFOLLOW = "UNFOLLOW"


class UserRole(str, Enum):
    """Roles carried by an authenticated actor."""

    USER = "USER"
    ADMIN = "ADMIN"


class SortOrder(str, Enum):
    """Primary sort direction for schedule listings."""

    ASC = "ASC"
    DESC = "DESC"


class ErrorKind(str, Enum):
    """Stable error categories callers branch on."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL = "INTERNAL"


# Type aliases for common data structures
ScheduleSnapshot = dict[str, Any]
