"""
Actors
======

The already-authenticated caller of an engine operation.
"""

from dataclasses import dataclass
from typing import Optional

from tsklets.config import PRIVILEGED_ROLES, UserRole


@dataclass(frozen=True)
class Actor:
    """
    Opaque caller identity with a role.

    Internal users (the tenant's own team) carry no client_id; client users
    belong to exactly one client.
    """

    user_id: int
    role: UserRole
    client_id: Optional[int] = None

    @property
    def is_internal(self) -> bool:
        return self.client_id is None

    @property
    def is_admin(self) -> bool:
        return self.role in PRIVILEGED_ROLES
