"""
Dev Tasks Domain Layer
======================

Dev task entity and its open status machine.
"""

from tsklets.dev_tasks.domain.entities import DevTask, RoleAssignment
from tsklets.dev_tasks.domain.status_machine import (
    BLOCKED_WITHOUT_REASON,
    MISSING_ROLES_MESSAGE,
    apply_dev_task_status,
    close,
    parse_dev_task_status,
    require_roles,
    validate_priority,
    validate_story_points,
)

__all__ = [
    "DevTask",
    "RoleAssignment",
    "BLOCKED_WITHOUT_REASON",
    "MISSING_ROLES_MESSAGE",
    "apply_dev_task_status",
    "close",
    "parse_dev_task_status",
    "require_roles",
    "validate_priority",
    "validate_story_points",
]
