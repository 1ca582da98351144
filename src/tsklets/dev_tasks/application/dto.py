"""
Dev Task Application DTOs
==========================

Pydantic models for dev task requests and responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tsklets.config import DevTaskStatus, DevTaskType, Resolution


class DevTaskFieldsDTO(BaseModel):
    """Fields shared by standalone creation and ticket conversion."""
    type: DevTaskType = DevTaskType.TASK
    description: Optional[str] = None
    priority: Optional[int] = Field(default=None, description="1 = critical .. 5 = trivial")
    story_points: Optional[int] = Field(default=None, description="Fibonacci: 1, 2, 3, 5, 8, 13")

    # Roles are checked by the service so a missing one gets a specific message
    implementor_id: Optional[int] = None
    developer_id: Optional[int] = None
    tester_id: Optional[int] = None

    module_id: Optional[str] = None
    component_id: Optional[str] = None
    addon_id: Optional[str] = None
    feature_id: Optional[str] = None


class DevTaskCreateDTO(DevTaskFieldsDTO):
    product_id: str
    title: str = Field(..., min_length=1, max_length=500)


class ConvertTicketDTO(DevTaskFieldsDTO):
    """Title and description default to the ticket's own."""
    title: Optional[str] = Field(default=None, max_length=500)


class DevTaskStatusPatchDTO(BaseModel):
    status: str
    blocked_reason: Optional[str] = None


class StoryPointsDTO(BaseModel):
    story_points: Optional[int] = None


class SprintAssignDTO(BaseModel):
    sprint_id: Optional[str] = Field(default=None, description="None moves the task back to the backlog")


class CloseDevTaskDTO(BaseModel):
    resolution: str = Resolution.COMPLETED.value
    note: Optional[str] = None


class DevTaskResponse(BaseModel):
    id: str
    issue_key: str
    product_id: str
    type: DevTaskType
    status: DevTaskStatus
    title: str
    description: Optional[str] = None
    priority: int
    implementor_id: int
    developer_id: int
    tester_id: int
    created_by: Optional[int] = None
    module_id: Optional[str] = None
    component_id: Optional[str] = None
    addon_id: Optional[str] = None
    feature_id: Optional[str] = None
    support_ticket_id: Optional[str] = None
    sprint_id: Optional[str] = None
    story_points: Optional[int] = None
    blocked_reason: Optional[str] = None
    resolution: Optional[Resolution] = None
    resolution_note: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None


class DevTaskStatusResponse(BaseModel):
    task: DevTaskResponse
    warnings: List[str] = Field(default_factory=list)


class DefaultRolesResponse(BaseModel):
    """Product defaults a caller may use to pre-fill conversion."""
    implementor_id: Optional[int] = None
    developer_id: Optional[int] = None
    tester_id: Optional[int] = None
