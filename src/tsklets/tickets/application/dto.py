"""
Ticket Application DTOs
========================

Data Transfer Objects for the ticket API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tsklets.config import (
    EscalationReason,
    Resolution,
    SLAUrgency,
    TicketAction,
    TicketEventType,
    TicketLinkType,
    TicketStatus,
    TicketType,
)


# ========== Request DTOs ==========

class TicketCreateDTO(BaseModel):
    """DTO for filing a ticket."""
    product_id: str = Field(..., description="Owning product")
    type: TicketType = Field(..., description="Ticket type")
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    client_priority: Optional[int] = Field(None, ge=1, le=5, description="1 = critical .. 5 = trivial")
    client_severity: Optional[int] = Field(None, ge=1, le=5, description="1 = critical .. 5 = trivial")
    labels: List[str] = Field(default_factory=list)
    client_id: Optional[int] = Field(
        None,
        description="Internal users only: file on behalf of this client"
    )
    parent_id: Optional[str] = None


class TicketStatusPatchDTO(BaseModel):
    """
    Raw status change.

    `reason` is required when cancelling. `resolution` and
    `resolution_note` apply when resolving.
    """
    status: str = Field(..., description="Target status")
    reason: Optional[str] = Field(None, max_length=1000)
    resolution: Optional[Resolution] = None
    resolution_note: Optional[str] = None


class ReassignToInternalDTO(BaseModel):
    comment: str = Field(..., description="Shown to the client; must not be blank")


class ReopenDTO(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class EscalateDTO(BaseModel):
    reason: EscalationReason
    note: Optional[str] = None


class RatingOverrideDTO(BaseModel):
    internal_priority: Optional[int] = Field(None, ge=1, le=5)
    internal_severity: Optional[int] = Field(None, ge=1, le=5)


class AssignDTO(BaseModel):
    assignee_id: int


class CommentCreateDTO(BaseModel):
    body: str = Field(..., min_length=1)
    is_internal: bool = False


class AttachmentCreateDTO(BaseModel):
    """Metadata for a file already uploaded to storage."""
    file_name: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1)
    content_type: Optional[str] = None
    size_bytes: Optional[int] = Field(None, ge=0)


class LinkCreateDTO(BaseModel):
    target_ticket_id: str
    link_type: TicketLinkType


class ParentDTO(BaseModel):
    parent_id: Optional[str] = Field(None, description="None detaches the ticket from its parent")


# ========== Response DTOs ==========

class RatingResponse(BaseModel):
    client: Optional[int] = None
    internal: Optional[int] = None
    effective: int


class SLAAgeResponse(BaseModel):
    hours: int
    display: str
    urgency: SLAUrgency


class TicketResponse(BaseModel):
    """Response model for a ticket."""
    id: str
    issue_key: str
    product_id: str
    type: TicketType
    status: TicketStatus
    title: str
    description: Optional[str] = None
    created_by: int
    client_id: Optional[int] = None
    assigned_to: Optional[int] = None
    priority: RatingResponse
    severity: RatingResponse
    labels: List[str]
    is_escalated: bool
    is_created_by_systech: bool
    escalation_reason: Optional[EscalationReason] = None
    escalation_note: Optional[str] = None
    pushed_to_systech_at: Optional[datetime] = None
    parent_id: Optional[str] = None
    resolution: Optional[Resolution] = None
    resolution_note: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None


class CommentResponse(BaseModel):
    id: str
    author_id: int
    body: str
    is_internal: bool
    created_at: datetime


class AttachmentResponse(BaseModel):
    id: str
    uploaded_by: int
    file_name: str
    file_url: str
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    created_at: datetime


class LinkResponse(BaseModel):
    id: str
    source_ticket_id: str
    target_ticket_id: str
    link_type: TicketLinkType
    created_at: datetime


class LinkedDevTaskResponse(BaseModel):
    id: str
    issue_key: str
    title: str
    type: str
    status: str


class TicketEventResponse(BaseModel):
    id: str
    event_type: TicketEventType
    actor_id: Optional[int] = None
    from_status: Optional[TicketStatus] = None
    to_status: Optional[TicketStatus] = None
    note: Optional[str] = None
    created_at: datetime


class TicketDetailResponse(BaseModel):
    """Ticket plus everything shown on its detail page."""
    ticket: TicketResponse
    sla_age: SLAAgeResponse
    available_actions: List[TicketAction]
    comments: List[CommentResponse]
    attachments: List[AttachmentResponse]
    parent: Optional[TicketResponse] = None
    children: List[TicketResponse]
    links: List[LinkResponse]
    dev_tasks: List[LinkedDevTaskResponse]


class TicketActionsResponse(BaseModel):
    ticket_id: str
    status: TicketStatus
    actions: List[TicketAction]


class AutoCloseResponse(BaseModel):
    closed_count: int
    issue_keys: List[str]
