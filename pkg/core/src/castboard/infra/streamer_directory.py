"""
Streamer lookup backed by the streamers table.

Default StreamerDirectory used by schedule usecases when the caller does not
inject its own.
"""

from __future__ import annotations

import uuid as uuid_module

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.entities import Streamer
from ..domain.interfaces import StreamerDirectory


class SqlStreamerDirectory(StreamerDirectory):
    """Resolve active streamers by UUID in the caller's session."""

    def lookup(self, db: Session, identifier: str) -> Streamer | None:
        try:
            streamer_uuid = uuid_module.UUID(str(identifier))
        except ValueError:
            return None
        return db.execute(
            select(Streamer).where(Streamer.uuid == streamer_uuid, Streamer.is_active.is_(True))
        ).scalar_one_or_none()
