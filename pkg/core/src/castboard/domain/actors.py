"""Identity context handed to every mutating usecase.

The board never authenticates anyone. Callers pass an already-verified actor
uuid and role explicitly; usecases only perform role checks against it.
"""

from __future__ import annotations

import uuid as uuid_module
from dataclasses import dataclass

from ..shared.types import UserRole


@dataclass(frozen=True)
class Actor:
    uuid: uuid_module.UUID
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @classmethod
    def of(cls, actor_uuid: str | uuid_module.UUID, role: str | UserRole = UserRole.USER) -> Actor:
        """Build an Actor from loosely typed identity values (strings from a CLI or header)."""
        if not isinstance(actor_uuid, uuid_module.UUID):
            actor_uuid = uuid_module.UUID(str(actor_uuid))
        return cls(uuid=actor_uuid, role=UserRole(role))
