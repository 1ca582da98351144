"""
Tickets Application Layer
==========================

Contains:
- Services: ticket lifecycle use cases
- DTOs: Data transfer objects for API serialization
"""

from tsklets.tickets.application.dto import (
    TicketCreateDTO,
    TicketStatusPatchDTO,
    ReassignToInternalDTO,
    ReopenDTO,
    EscalateDTO,
    RatingOverrideDTO,
    AssignDTO,
    CommentCreateDTO,
    AttachmentCreateDTO,
    LinkCreateDTO,
    ParentDTO,
    RatingResponse,
    SLAAgeResponse,
    TicketResponse,
    CommentResponse,
    AttachmentResponse,
    LinkResponse,
    LinkedDevTaskResponse,
    TicketEventResponse,
    TicketDetailResponse,
    TicketActionsResponse,
    AutoCloseResponse,
)
from tsklets.tickets.application.services import (
    TicketService,
    TicketFilter,
    TicketView,
    LinkedDevTask,
    ITicketRepository,
    ITicketActivityRepository,
    IDevTaskLookup,
    can_view,
)

__all__ = [
    # DTOs
    "TicketCreateDTO",
    "TicketStatusPatchDTO",
    "ReassignToInternalDTO",
    "ReopenDTO",
    "EscalateDTO",
    "RatingOverrideDTO",
    "AssignDTO",
    "CommentCreateDTO",
    "AttachmentCreateDTO",
    "LinkCreateDTO",
    "ParentDTO",
    "RatingResponse",
    "SLAAgeResponse",
    "TicketResponse",
    "CommentResponse",
    "AttachmentResponse",
    "LinkResponse",
    "LinkedDevTaskResponse",
    "TicketEventResponse",
    "TicketDetailResponse",
    "TicketActionsResponse",
    "AutoCloseResponse",
    # Services and read models
    "TicketService",
    "TicketFilter",
    "TicketView",
    "LinkedDevTask",
    "can_view",
    # Repository Interfaces
    "ITicketRepository",
    "ITicketActivityRepository",
    "IDevTaskLookup",
]
