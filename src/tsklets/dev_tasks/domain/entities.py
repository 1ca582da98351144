"""
Dev Task Domain Entities
=========================

Internal engineering work items. A dev task may come from a support
ticket or be created standalone; either way it carries three role
assignments.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from tsklets.config import DEFAULT_RATING, DevTaskStatus, DevTaskType, Resolution


@dataclass(frozen=True)
class RoleAssignment:
    """Implementor (overall owner), developer (codes it), tester (verifies it)."""

    implementor_id: int
    developer_id: int
    tester_id: int


@dataclass
class DevTask:
    id: Optional[str]
    issue_key: str
    product_id: str
    type: DevTaskType
    status: DevTaskStatus
    title: str
    roles: RoleAssignment

    created_at: datetime
    updated_at: datetime

    description: Optional[str] = None
    created_by: Optional[int] = None
    priority: int = DEFAULT_RATING

    # Product structure
    module_id: Optional[str] = None
    component_id: Optional[str] = None
    addon_id: Optional[str] = None
    feature_id: Optional[str] = None

    # Origin ticket; None for standalone tasks
    support_ticket_id: Optional[str] = None

    # None = backlog
    sprint_id: Optional[str] = None
    story_points: Optional[int] = None

    blocked_reason: Optional[str] = None
    resolution: Optional[Resolution] = None
    resolution_note: Optional[str] = None
    closed_at: Optional[datetime] = None

    @property
    def is_done(self) -> bool:
        return self.status == DevTaskStatus.DONE

    @property
    def in_backlog(self) -> bool:
        return self.sprint_id is None

    @property
    def implementor_id(self) -> int:
        return self.roles.implementor_id

    @property
    def developer_id(self) -> int:
        return self.roles.developer_id

    @property
    def tester_id(self) -> int:
        return self.roles.tester_id
