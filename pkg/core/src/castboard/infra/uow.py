"""
This is the canonical Unit of Work boundary for Castboard. All transactional changes must go through this.

Do not open ad hoc sessions elsewhere.

Two entry points:

- ``session()`` opens, commits and closes a session for CLI operations and batch jobs.
- ``transaction(db)`` scopes one atomic unit on an already-open session. Usecases wrap
  every mutation in it so the record write, its history row and any counter change
  commit together or not at all.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator

from sqlalchemy.orm import Session

from . import db as db_module


@contextlib.contextmanager
def session() -> Generator[Session, None, None]:
    """
    Database session context manager for CLI operations and batch jobs.

    Provides Unit of Work semantics:
    - Opens a DB session
    - Yields it for use
    - On success: commits the transaction
    - On exception: rolls back and re-raises the exception
    - Always closes the session

    Usage:
        with session() as db:
            # perform database operations
            db.add(some_object)
            # transaction will be committed automatically on success
    """
    db = db_module.SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextlib.contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Scope one atomic unit of work on an open session.

    Commits when the block exits cleanly. Any exception (including typed
    Castboard errors raised by validation) rolls back everything written in
    the block and re-raises, so nothing partial is ever persisted.

    Usage:
        with transaction(db):
            db.add(schedule)
            record_history(db, ...)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
