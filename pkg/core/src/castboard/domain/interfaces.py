"""Domain interfaces for collaborators consumed by the schedule board."""

from abc import ABC, abstractmethod

from sqlalchemy.orm import Session

from .entities import Streamer


class StreamerDirectory(ABC):
    """Interface for streamer existence and verification lookups."""

    @abstractmethod
    def lookup(self, db: Session, identifier: str) -> Streamer | None:
        """
        Find an active streamer by external identifier.

        Args:
            db: Database session of the calling unit of work
            identifier: Streamer UUID string

        Returns:
            The Streamer when it exists and is active, otherwise None.
            Verification is reported through ``Streamer.is_verified``; callers
            decide what an unverified streamer means for them.
        """
        raise NotImplementedError
