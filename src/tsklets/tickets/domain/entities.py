"""
Ticket Domain Entities
=======================

Pure Python domain entities for the ticket lifecycle.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from tsklets.config import (
    CREATED_BY_SYSTECH_LABEL,
    DEFAULT_RATING,
    ESCALATED_LABEL,
    RATING_RANGE,
    EscalationReason,
    Resolution,
    TicketEventType,
    TicketLinkType,
    TicketStatus,
    TicketType,
)


# ========== Ratings (priority / severity) ==========

def _check_rating(value: Optional[int], name: str) -> None:
    if value is not None and value not in RATING_RANGE:
        raise ValueError(f"{name} must be between 1 (critical) and 5 (trivial), got {value}")


@dataclass(frozen=True)
class ClientRating:
    """Rating as submitted by the client; may be unset."""

    value: Optional[int] = None

    def __post_init__(self):
        _check_rating(self.value, "client rating")

    @property
    def client(self) -> Optional[int]:
        return self.value

    @property
    def internal(self) -> Optional[int]:
        return None

    @property
    def effective(self) -> int:
        return self.value if self.value is not None else DEFAULT_RATING


@dataclass(frozen=True)
class OverriddenRating:
    """Rating overridden by the internal team. The override always wins."""

    client: Optional[int]
    internal: int

    def __post_init__(self):
        _check_rating(self.client, "client rating")
        if self.internal is None:
            raise ValueError("internal rating is required for an override")
        _check_rating(self.internal, "internal rating")

    @property
    def effective(self) -> int:
        return self.internal


Rating = Union[ClientRating, OverriddenRating]


def rating_from(client: Optional[int], internal: Optional[int]) -> Rating:
    """Build the rating variant from the two stored columns."""
    if internal is not None:
        return OverriddenRating(client=client, internal=internal)
    return ClientRating(client)


# ========== Ticket ==========

@dataclass
class Ticket:
    """
    Ticket entity representing a support ticket.

    Escalation and the created-by-internal flag are read from labels;
    labels remain a free-text set otherwise.
    """

    id: Optional[str]
    issue_key: str
    product_id: str
    type: TicketType
    status: TicketStatus
    title: str
    created_by: int

    created_at: datetime
    updated_at: datetime

    description: Optional[str] = None
    client_id: Optional[int] = None
    assigned_to: Optional[int] = None

    priority: Rating = field(default_factory=ClientRating)
    severity: Rating = field(default_factory=ClientRating)
    labels: List[str] = field(default_factory=list)

    # Escalation / internal queue
    escalation_reason: Optional[EscalationReason] = None
    escalation_note: Optional[str] = None
    pushed_to_systech_at: Optional[datetime] = None

    parent_id: Optional[str] = None

    resolution: Optional[Resolution] = None
    resolution_note: Optional[str] = None
    closed_at: Optional[datetime] = None

    @property
    def has_client(self) -> bool:
        return self.client_id is not None

    @property
    def is_escalated(self) -> bool:
        return ESCALATED_LABEL in self.labels

    @property
    def is_created_by_systech(self) -> bool:
        return CREATED_BY_SYSTECH_LABEL in self.labels

    @property
    def effective_priority(self) -> int:
        return self.priority.effective

    @property
    def effective_severity(self) -> int:
        return self.severity.effective

    @property
    def is_terminal(self) -> bool:
        return self.status in (TicketStatus.CLOSED, TicketStatus.CANCELLED)

    def add_label(self, label: str) -> None:
        if label not in self.labels:
            self.labels.append(label)

    def remove_label(self, label: str) -> None:
        self.labels = [existing for existing in self.labels if existing != label]


# ========== Ticket children ==========

@dataclass
class TicketComment:
    id: Optional[str]
    ticket_id: str
    author_id: int
    body: str
    created_at: datetime
    # Internal comments are never shown to client users
    is_internal: bool = False


@dataclass
class TicketAttachment:
    """Attachment metadata. File storage itself is handled elsewhere."""
    id: Optional[str]
    ticket_id: str
    uploaded_by: int
    file_name: str
    file_url: str
    created_at: datetime
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None


@dataclass
class TicketLink:
    id: Optional[str]
    source_ticket_id: str
    target_ticket_id: str
    link_type: TicketLinkType
    created_by: int
    created_at: datetime


@dataclass
class TicketEvent:
    """One entry in a ticket's audit trail."""
    id: Optional[str]
    ticket_id: str
    event_type: TicketEventType
    actor_id: Optional[int]
    created_at: datetime
    from_status: Optional[TicketStatus] = None
    to_status: Optional[TicketStatus] = None
    note: Optional[str] = None
