"""
Tickets Domain Layer
====================

Ticket entity, status machine, role-gated action policy and escalation
tracker. Pure Python, no infrastructure dependencies.
"""

from tsklets.tickets.domain.entities import (
    ClientRating,
    OverriddenRating,
    Rating,
    rating_from,
    Ticket,
    TicketComment,
    TicketAttachment,
    TicketLink,
    TicketEvent,
)
from tsklets.tickets.domain.policy import (
    available_actions,
    is_action_allowed,
    require_action,
)
from tsklets.tickets.domain.escalation import (
    SLAAge,
    EscalationTracker,
    sla_age,
    is_escalated,
)
from tsklets.tickets.domain.status_machine import (
    StatusChange,
    apply_status_change,
    initial_status,
    parse_resolution,
    parse_ticket_status,
    reassign_to_internal,
    reopen,
    start_work_for_dev_task,
)

__all__ = [
    # Entities
    "ClientRating",
    "OverriddenRating",
    "Rating",
    "rating_from",
    "Ticket",
    "TicketComment",
    "TicketAttachment",
    "TicketLink",
    "TicketEvent",
    # Policy
    "available_actions",
    "is_action_allowed",
    "require_action",
    # Escalation
    "SLAAge",
    "EscalationTracker",
    "sla_age",
    "is_escalated",
    # Status machine
    "StatusChange",
    "apply_status_change",
    "initial_status",
    "parse_resolution",
    "parse_ticket_status",
    "reassign_to_internal",
    "reopen",
    "start_work_for_dev_task",
]
