"""
Shared API Dependencies
========================

Resolves the calling actor for engine operations.

Authentication happens upstream (gateway or auth middleware); by the time a
request reaches the engine its identity travels in trusted headers.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from tsklets.config import UserRole
from tsklets.core import Actor
from tsklets.shared.infrastructure.workflow_config import (
    IWorkflowConfigProvider,
    get_workflow_config_provider,
)


async def get_actor(
    x_user_id: Optional[int] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_client_id: Optional[int] = Header(default=None),
) -> Actor:
    """Build the Actor from X-User-Id / X-User-Role / X-Client-Id."""
    if x_user_id is None or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Actor headers X-User-Id and X-User-Role are required"
        )

    try:
        role = UserRole(x_user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role '{x_user_role}'"
        )

    return Actor(user_id=x_user_id, role=role, client_id=x_client_id)


async def require_internal_actor(
    x_user_id: Optional[int] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_client_id: Optional[int] = Header(default=None),
) -> Actor:
    """Same as get_actor, but client users are rejected with 403."""
    actor = await get_actor(x_user_id, x_user_role, x_client_id)
    if not actor.is_internal:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Internal users only"
        )
    return actor


async def get_workflow_config() -> IWorkflowConfigProvider:
    """Workflow thresholds shared by every request."""
    return get_workflow_config_provider()
