"""
Custom exceptions for Castboard operations.

Every error carries a stable ``kind`` (see ``ErrorKind``) and a stable ``code``
naming the specific rule that failed, plus a human-readable message. Callers
branch on ``kind`` or ``code``, never on the message text.
"""

from __future__ import annotations

from typing import Any

from ..shared.types import ErrorKind


class CastboardError(Exception):
    """Base exception for all Castboard errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "error",
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.code}, message={self.message!r})>"


class NotFoundError(CastboardError):
    """Raised when a record, streamer, actor or relation is absent."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(CastboardError):
    """Raised when a uniqueness rule would be violated."""

    kind = ErrorKind.ALREADY_EXISTS


class ValidationError(CastboardError):
    """Raised when validation fails."""

    kind = ErrorKind.VALIDATION


class ConflictError(CastboardError):
    """Raised when an optimistic-concurrency token no longer matches."""

    kind = ErrorKind.CONFLICT


class ForbiddenError(CastboardError):
    """Raised when the actor's role does not permit the operation."""

    kind = ErrorKind.FORBIDDEN


class InternalError(CastboardError):
    """Raised when a history append or counter update fails inside a transaction."""

    kind = ErrorKind.INTERNAL
