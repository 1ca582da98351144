"""
Ticket Status Machine
======================

Validates and applies ticket status transitions.

Every function here checks everything first and only then mutates the
ticket, so a rejected transition leaves the ticket untouched.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from tsklets.config import Resolution, TicketAction, TicketEventType, TicketStatus
from tsklets.core import Actor, PermissionDeniedException, ValidationException
from tsklets.shared.infrastructure.clock import utcnow
from tsklets.tickets.domain.entities import Ticket
from tsklets.tickets.domain.policy import require_action

_REOPENABLE = (TicketStatus.CLOSED, TicketStatus.RESOLVED)


@dataclass(frozen=True)
class StatusChange:
    """Outcome of an applied transition, recorded in the ticket's history."""

    from_status: TicketStatus
    to_status: TicketStatus
    event_type: TicketEventType
    note: Optional[str] = None


def parse_ticket_status(value: Union[TicketStatus, str]) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in TicketStatus)
        raise ValidationException(f"Invalid status: {value}. Valid statuses: {valid}")


def parse_resolution(value: Optional[Union[Resolution, str]]) -> Resolution:
    if value is None:
        return Resolution.COMPLETED
    try:
        return Resolution(value)
    except ValueError:
        valid = ", ".join(r.value for r in Resolution)
        raise ValidationException(f"Invalid resolution: {value}. Valid resolutions: {valid}")


def initial_status(actor: Actor) -> TicketStatus:
    """Client-channel tickets wait for internal triage; internal ones start open."""
    return TicketStatus.OPEN if actor.is_internal else TicketStatus.PENDING_INTERNAL_REVIEW


def _check_transition(ticket: Ticket, target: TicketStatus, actor: Actor, reason: Optional[str]) -> TicketEventType:
    current = ticket.status

    if target == current:
        raise ValidationException(f"Ticket is already {current.value}")

    if target == TicketStatus.PENDING_INTERNAL_REVIEW:
        raise ValidationException(
            "Use reassign-to-internal to move a ticket to pending_internal_review"
        )

    has_client = ticket.has_client

    if target == TicketStatus.CANCELLED:
        require_action(TicketAction.CANCEL, current, actor, has_client=has_client)
        if not reason or not reason.strip():
            raise ValidationException("Please provide a reason for cancellation")
        return TicketEventType.STATUS_CHANGE

    if target == TicketStatus.CLOSED:
        require_action(TicketAction.CLOSE, current, actor, has_client=has_client)
        return TicketEventType.STATUS_CHANGE

    if target == TicketStatus.REBUTTAL:
        require_action(TicketAction.MARK_REBUTTAL, current, actor, has_client=has_client)
        return TicketEventType.STATUS_CHANGE

    if target == TicketStatus.OPEN and current in _REOPENABLE:
        require_action(TicketAction.REOPEN, current, actor, has_client=has_client)
        return TicketEventType.REOPEN

    # Plain working transitions belong to the internal team
    if not actor.is_internal:
        raise PermissionDeniedException(
            f"Only internal users can move a ticket to {target.value}"
        )
    if current == TicketStatus.CANCELLED:
        raise PermissionDeniedException("Cancelled tickets cannot change status")
    if current == TicketStatus.CLOSED:
        raise PermissionDeniedException("Ticket is closed; reopen it first")

    return TicketEventType.STATUS_CHANGE


def apply_status_change(
    ticket: Ticket,
    new_status: Union[TicketStatus, str],
    actor: Actor,
    *,
    reason: Optional[str] = None,
    resolution: Optional[Union[Resolution, str]] = None,
    resolution_note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> StatusChange:
    """
    Move a ticket to `new_status` on behalf of `actor`.

    Args:
        ticket: Ticket to mutate
        new_status: Target status (validated against the closed set)
        actor: Who is asking
        reason: Required when cancelling; kept as the note of a reopen
        resolution: Resolution when entering resolved (default: completed)
        resolution_note: Free-text note when entering resolved
        now: Timestamp to record

    Returns:
        StatusChange describing the applied transition

    Raises:
        ValidationException: Unknown status, no-op, missing reason
        PermissionDeniedException: Not allowed by the action policy
    """
    target = parse_ticket_status(new_status)
    event_type = _check_transition(ticket, target, actor, reason)
    parsed_resolution = parse_resolution(resolution) if target == TicketStatus.RESOLVED else None

    now = now or utcnow()
    previous = ticket.status
    note = reason.strip() if reason and reason.strip() else None

    ticket.status = target
    ticket.updated_at = now

    if target == TicketStatus.RESOLVED:
        ticket.resolution = parsed_resolution
        ticket.resolution_note = resolution_note
        note = resolution_note or note
    elif target == TicketStatus.CANCELLED:
        ticket.resolution_note = note
        ticket.closed_at = now
    elif target == TicketStatus.CLOSED:
        ticket.closed_at = now
    elif event_type == TicketEventType.REOPEN:
        ticket.closed_at = None
        ticket.resolution = None
        ticket.resolution_note = None

    return StatusChange(previous, target, event_type, note)


def reopen(ticket: Ticket, actor: Actor, reason: Optional[str] = None, now: Optional[datetime] = None) -> StatusChange:
    """Reopen a closed or resolved ticket. Any actor may reopen."""
    if ticket.status not in _REOPENABLE:
        raise ValidationException(f"Only closed or resolved tickets can be reopened, ticket is {ticket.status.value}")
    return apply_status_change(ticket, TicketStatus.OPEN, actor, reason=reason, now=now)


def reassign_to_internal(ticket: Ticket, comment: Optional[str], now: Optional[datetime] = None) -> StatusChange:
    """
    Push a client ticket back to the internal queue.

    Stamps pushed_to_systech_at. The caller stores `comment` as a
    client-visible comment.
    """
    if not comment or not comment.strip():
        raise ValidationException("A comment is required to reassign a ticket to internal")
    if not ticket.has_client:
        raise ValidationException("Only client tickets can be reassigned to internal")
    if ticket.status == TicketStatus.PENDING_INTERNAL_REVIEW:
        raise ValidationException("Ticket is already pending internal review")
    if ticket.status == TicketStatus.CLOSED:
        raise ValidationException("Closed tickets cannot be reassigned to internal")

    now = now or utcnow()
    previous = ticket.status
    ticket.status = TicketStatus.PENDING_INTERNAL_REVIEW
    ticket.pushed_to_systech_at = now
    ticket.updated_at = now

    return StatusChange(
        previous,
        TicketStatus.PENDING_INTERNAL_REVIEW,
        TicketEventType.REASSIGN_TO_INTERNAL,
        comment.strip(),
    )


def start_work_for_dev_task(ticket: Ticket, implementor_id: int, now: Optional[datetime] = None) -> StatusChange:
    """
    Ticket side of dev task conversion: assigned to the implementor and
    moved to in_progress (status kept if it already is).
    """
    now = now or utcnow()
    previous = ticket.status
    ticket.status = TicketStatus.IN_PROGRESS
    ticket.assigned_to = implementor_id
    ticket.updated_at = now
    return StatusChange(previous, TicketStatus.IN_PROGRESS, TicketEventType.DEV_TASK_CREATED)
