"""
Ticket Application Services
============================

Orchestrates the ticket lifecycle: creation, status transitions,
reassignment to the internal queue, escalation, ratings, comments and links.

Following SOLID principles:
- Single Responsibility: TicketService owns ticket use cases only
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import FrozenSet, List, Optional, Union

from tsklets.catalog.application import ICatalogRepository, IssueKeyService
from tsklets.config import (
    AUTO_CLOSED_LABEL,
    CREATED_BY_SYSTECH_LABEL,
    EscalationReason,
    Resolution,
    TicketAction,
    TicketEventType,
    TicketLinkType,
    TicketStatus,
    TicketType,
    UserRole,
)
from tsklets.core import (
    Actor,
    ConflictException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from tsklets.shared.infrastructure.clock import utcnow
from tsklets.shared.infrastructure.logging import get_logger
from tsklets.shared.infrastructure.workflow_config import IWorkflowConfigProvider
from tsklets.tickets.domain import (
    ClientRating,
    EscalationTracker,
    OverriddenRating,
    SLAAge,
    StatusChange,
    Ticket,
    TicketAttachment,
    TicketComment,
    TicketEvent,
    TicketLink,
    apply_status_change,
    available_actions,
    initial_status,
    reassign_to_internal,
    reopen,
)

logger = get_logger(__name__)


# ========== Read models ==========

@dataclass(frozen=True)
class LinkedDevTask:
    """Summary of a dev task raised from a ticket."""
    id: str
    issue_key: str
    title: str
    type: str
    status: str


@dataclass
class TicketFilter:
    status: Optional[TicketStatus] = None
    type: Optional[TicketType] = None
    product_id: Optional[str] = None
    client_id: Optional[int] = None
    created_by: Optional[int] = None
    assigned_to: Optional[int] = None
    escalated: Optional[bool] = None
    limit: int = 100
    offset: int = 0


@dataclass
class TicketView:
    """A ticket with everything a detail page shows, filtered for the viewer."""
    ticket: Ticket
    sla_age: SLAAge
    available_actions: FrozenSet[TicketAction]
    comments: List[TicketComment] = field(default_factory=list)
    attachments: List[TicketAttachment] = field(default_factory=list)
    parent: Optional[Ticket] = None
    children: List[Ticket] = field(default_factory=list)
    links: List[TicketLink] = field(default_factory=list)
    dev_tasks: List[LinkedDevTask] = field(default_factory=list)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def add(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket and return it with its id."""

    @abstractmethod
    async def get(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by id."""

    @abstractmethod
    async def get_by_issue_key(self, issue_key: str) -> Optional[Ticket]:
        """Get ticket by issue key."""

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """Write back every mutable field of the ticket."""

    @abstractmethod
    async def list(self, filters: TicketFilter) -> List[Ticket]:
        """List tickets, newest first."""

    @abstractmethod
    async def list_children(self, parent_id: str) -> List[Ticket]:
        """Direct children of a ticket."""

    @abstractmethod
    async def list_stale(self, statuses: List[TicketStatus], updated_before: datetime) -> List[Ticket]:
        """Tickets in `statuses` not updated since `updated_before`."""


class ITicketActivityRepository(ABC):
    """Interface for comments, attachments, links and the audit trail."""

    @abstractmethod
    async def add_comment(self, comment: TicketComment) -> TicketComment:
        """Persist a comment."""

    @abstractmethod
    async def list_comments(self, ticket_id: str, include_internal: bool = True) -> List[TicketComment]:
        """Comments oldest first."""

    @abstractmethod
    async def add_attachment(self, attachment: TicketAttachment) -> TicketAttachment:
        """Persist attachment metadata."""

    @abstractmethod
    async def list_attachments(self, ticket_id: str) -> List[TicketAttachment]:
        """Attachments oldest first."""

    @abstractmethod
    async def add_link(self, link: TicketLink) -> TicketLink:
        """Persist a link."""

    @abstractmethod
    async def link_exists(self, source_id: str, target_id: str, link_type: TicketLinkType) -> bool:
        """Check for an identical link."""

    @abstractmethod
    async def list_links(self, ticket_id: str) -> List[TicketLink]:
        """Links where the ticket is source or target."""

    @abstractmethod
    async def add_event(self, event: TicketEvent) -> TicketEvent:
        """Append to the audit trail."""

    @abstractmethod
    async def list_events(self, ticket_id: str) -> List[TicketEvent]:
        """Audit trail oldest first."""


class IDevTaskLookup(ABC):
    """Read-only access to dev tasks raised from tickets."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: str) -> List[LinkedDevTask]:
        """Dev tasks whose support ticket is `ticket_id`."""


# ========== Helpers ==========

def can_view(ticket: Ticket, actor: Actor) -> bool:
    """
    Internal users see every ticket, company admins see their client's
    tickets, other client users see only tickets they filed.
    """
    if actor.is_internal:
        return True
    if ticket.client_id != actor.client_id:
        return False
    if actor.role == UserRole.COMPANY_ADMIN:
        return True
    return ticket.created_by == actor.user_id


def _require_internal(actor: Actor, what: str) -> None:
    if not actor.is_internal:
        raise PermissionDeniedException(f"Only internal users can {what}")


# ========== Application Services ==========

class TicketService:
    """
    Service for ticket use cases.

    Each method performs its checks before writing, so a rejected call
    leaves storage untouched. Callers run a method inside one transaction.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        activity_repository: ITicketActivityRepository,
        catalog_repository: ICatalogRepository,
        issue_keys: IssueKeyService,
        config_provider: IWorkflowConfigProvider,
        dev_task_lookup: Optional[IDevTaskLookup] = None,
    ):
        self._tickets = ticket_repository
        self._activity = activity_repository
        self._catalog = catalog_repository
        self._issue_keys = issue_keys
        self._config_provider = config_provider
        self._dev_tasks = dev_task_lookup

    # ========== Internal helpers ==========

    def _tracker(self) -> EscalationTracker:
        escalation = self._config_provider.get_config().escalation
        return EscalationTracker(escalation.warning_hours, escalation.critical_hours)

    async def _load(self, ticket_id: str, actor: Optional[Actor] = None) -> Ticket:
        ticket = await self._tickets.get(ticket_id)
        if not ticket or (actor is not None and not can_view(ticket, actor)):
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def _record(
        self,
        ticket: Ticket,
        event_type: TicketEventType,
        actor_id: Optional[int],
        now: datetime,
        from_status: Optional[TicketStatus] = None,
        to_status: Optional[TicketStatus] = None,
        note: Optional[str] = None,
    ) -> None:
        await self._activity.add_event(
            TicketEvent(
                id=None,
                ticket_id=ticket.id,
                event_type=event_type,
                actor_id=actor_id,
                created_at=now,
                from_status=from_status,
                to_status=to_status,
                note=note,
            )
        )

    async def _record_change(self, ticket: Ticket, change: StatusChange, actor_id: Optional[int], now: datetime) -> None:
        await self._record(
            ticket, change.event_type, actor_id, now,
            from_status=change.from_status, to_status=change.to_status, note=change.note,
        )

    # ========== Creation and reads ==========

    async def create_ticket(
        self,
        actor: Actor,
        product_id: str,
        ticket_type: Union[TicketType, str],
        title: str,
        description: Optional[str] = None,
        client_priority: Optional[int] = None,
        client_severity: Optional[int] = None,
        labels: Optional[List[str]] = None,
        client_id: Optional[int] = None,
        parent_id: Optional[str] = None,
    ) -> Ticket:
        """
        File a new ticket.

        Client users always file for their own client. Internal users may
        file on behalf of a client by passing client_id, which marks the
        ticket with the created_by_systech label.
        """
        if not title or not title.strip():
            raise ValidationException("Title is required")

        try:
            priority = ClientRating(client_priority)
            severity = ClientRating(client_severity)
        except ValueError as e:
            raise ValidationException(str(e))

        if not await self._catalog.get_product(product_id):
            raise ResourceNotFoundException("Product", product_id)

        if parent_id:
            await self._check_parent_candidate(None, parent_id, actor)

        ticket_labels = [label.strip() for label in (labels or []) if label and label.strip()]
        owner_client_id = actor.client_id
        if actor.is_internal and client_id is not None:
            owner_client_id = client_id
            if CREATED_BY_SYSTECH_LABEL not in ticket_labels:
                ticket_labels.append(CREATED_BY_SYSTECH_LABEL)

        issue_key = await self._issue_keys.next_ticket_key(product_id, ticket_type)
        now = utcnow()

        ticket = Ticket(
            id=None,
            issue_key=issue_key,
            product_id=product_id,
            type=TicketType(ticket_type),
            status=initial_status(actor),
            title=title.strip(),
            description=description,
            created_by=actor.user_id,
            client_id=owner_client_id,
            created_at=now,
            updated_at=now,
            priority=priority,
            severity=severity,
            labels=list(dict.fromkeys(ticket_labels)),
            parent_id=parent_id,
        )
        ticket = await self._tickets.add(ticket)
        await self._record(ticket, TicketEventType.CREATED, actor.user_id, now, to_status=ticket.status)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket.id,
                "issue_key": ticket.issue_key,
                "status": ticket.status.value,
                "actor_id": actor.user_id,
            }
        )
        return ticket

    async def get_ticket(self, issue_key: str, actor: Actor, now: Optional[datetime] = None) -> TicketView:
        """Full detail view; internal comments are hidden from client users."""
        ticket = await self._tickets.get_by_issue_key(issue_key)
        if not ticket or not can_view(ticket, actor):
            raise ResourceNotFoundException("Ticket", issue_key)

        parent = await self._tickets.get(ticket.parent_id) if ticket.parent_id else None
        dev_tasks = await self._dev_tasks.list_for_ticket(ticket.id) if self._dev_tasks else []

        return TicketView(
            ticket=ticket,
            sla_age=self._tracker().age(ticket, now),
            available_actions=available_actions(ticket.status, actor.role, has_client=ticket.has_client),
            comments=await self._activity.list_comments(ticket.id, include_internal=actor.is_internal),
            attachments=await self._activity.list_attachments(ticket.id),
            parent=parent,
            children=await self._tickets.list_children(ticket.id),
            links=await self._activity.list_links(ticket.id),
            dev_tasks=dev_tasks,
        )

    async def get_ticket_by_id(self, ticket_id: str, actor: Actor) -> Ticket:
        return await self._load(ticket_id, actor)

    async def list_tickets(self, actor: Actor, filters: Optional[TicketFilter] = None) -> List[Ticket]:
        """List tickets visible to the actor."""
        filters = filters or TicketFilter()
        if not actor.is_internal:
            filters.client_id = actor.client_id
            if actor.role != UserRole.COMPANY_ADMIN:
                filters.created_by = actor.user_id
        return await self._tickets.list(filters)

    async def ticket_actions(self, ticket_id: str, actor: Actor) -> FrozenSet[TicketAction]:
        ticket = await self._load(ticket_id, actor)
        return available_actions(ticket.status, actor.role, has_client=ticket.has_client)

    async def sla_age(self, ticket_id: str, actor: Actor, now: Optional[datetime] = None) -> SLAAge:
        ticket = await self._load(ticket_id, actor)
        return self._tracker().age(ticket, now)

    async def ticket_history(self, ticket_id: str, actor: Actor) -> List[TicketEvent]:
        ticket = await self._load(ticket_id, actor)
        return await self._activity.list_events(ticket.id)

    # ========== Status transitions ==========

    async def patch_ticket_status(
        self,
        ticket_id: str,
        new_status: Union[TicketStatus, str],
        actor: Actor,
        reason: Optional[str] = None,
        resolution: Optional[Union[Resolution, str]] = None,
        resolution_note: Optional[str] = None,
    ) -> Ticket:
        ticket = await self._load(ticket_id, actor)
        now = utcnow()

        try:
            change = apply_status_change(
                ticket, new_status, actor,
                reason=reason, resolution=resolution, resolution_note=resolution_note, now=now,
            )
        except (ValidationException, PermissionDeniedException) as e:
            logger.warning(
                "Ticket status change rejected",
                extra={
                    "ticket_id": ticket.id,
                    "issue_key": ticket.issue_key,
                    "from_status": ticket.status.value,
                    "requested_status": str(new_status),
                    "actor_id": actor.user_id,
                    "reason": e.message,
                }
            )
            raise

        ticket = await self._tickets.update(ticket)
        await self._record_change(ticket, change, actor.user_id, now)

        logger.info(
            "Ticket status changed",
            extra={
                "ticket_id": ticket.id,
                "issue_key": ticket.issue_key,
                "from_status": change.from_status.value,
                "to_status": change.to_status.value,
                "actor_id": actor.user_id,
            }
        )
        return ticket

    async def reopen_ticket(self, ticket_id: str, actor: Actor, reason: Optional[str] = None) -> Ticket:
        ticket = await self._load(ticket_id, actor)
        now = utcnow()

        change = reopen(ticket, actor, reason, now)
        ticket = await self._tickets.update(ticket)
        await self._record_change(ticket, change, actor.user_id, now)

        logger.info(
            "Ticket reopened",
            extra={
                "ticket_id": ticket.id,
                "issue_key": ticket.issue_key,
                "from_status": change.from_status.value,
                "actor_id": actor.user_id,
            }
        )
        return ticket

    async def reassign_ticket_to_internal(self, ticket_id: str, comment: Optional[str], actor: Actor) -> Ticket:
        """
        Send a client ticket back to the internal queue with a comment
        the client can read.
        """
        ticket = await self._load(ticket_id, actor)
        now = utcnow()

        try:
            change = reassign_to_internal(ticket, comment, now)
        except ValidationException as e:
            logger.warning(
                "Reassign to internal rejected",
                extra={"ticket_id": ticket.id, "issue_key": ticket.issue_key, "reason": e.message}
            )
            raise

        ticket = await self._tickets.update(ticket)
        await self._activity.add_comment(
            TicketComment(
                id=None,
                ticket_id=ticket.id,
                author_id=actor.user_id,
                body=change.note,
                created_at=now,
                is_internal=False,
            )
        )
        await self._record_change(ticket, change, actor.user_id, now)

        logger.info(
            "Ticket reassigned to internal",
            extra={
                "ticket_id": ticket.id,
                "issue_key": ticket.issue_key,
                "from_status": change.from_status.value,
                "to_status": change.to_status.value,
                "actor_id": actor.user_id,
            }
        )
        return ticket

    async def auto_close_stale_tickets(self, now: Optional[datetime] = None) -> List[Ticket]:
        """
        Close resolved / waiting_for_customer tickets that nobody touched
        for the configured number of days.
        """
        now = now or utcnow()
        days = self._config_provider.get_config().tickets.auto_close_after_days
        stale = await self._tickets.list_stale(
            [TicketStatus.RESOLVED, TicketStatus.WAITING_FOR_CUSTOMER],
            now - timedelta(days=days),
        )

        closed = []
        for ticket in stale:
            previous = ticket.status
            ticket.status = TicketStatus.CLOSED
            ticket.closed_at = now
            ticket.updated_at = now
            ticket.add_label(AUTO_CLOSED_LABEL)
            ticket = await self._tickets.update(ticket)
            await self._record(
                ticket, TicketEventType.AUTO_CLOSED, None, now,
                from_status=previous, to_status=TicketStatus.CLOSED,
                note=f"No response for {days} days",
            )
            closed.append(ticket)

        logger.info("Stale tickets auto-closed", extra={"closed_count": len(closed), "after_days": days})
        return closed

    # ========== Escalation and triage ==========

    async def escalate_ticket(
        self,
        ticket_id: str,
        reason: Union[EscalationReason, str],
        actor: Actor,
        note: Optional[str] = None,
    ) -> Ticket:
        try:
            reason = EscalationReason(reason)
        except ValueError:
            valid = ", ".join(r.value for r in EscalationReason)
            raise ValidationException(f"Invalid escalation reason: {reason}. Valid reasons: {valid}")

        ticket = await self._load(ticket_id, actor)
        if ticket.is_terminal:
            raise ValidationException(f"Cannot escalate a {ticket.status.value} ticket")

        now = utcnow()
        EscalationTracker.escalate(ticket, reason, note, now)
        ticket = await self._tickets.update(ticket)
        await self._record(ticket, TicketEventType.ESCALATED, actor.user_id, now, note=reason.value)

        logger.info(
            "Ticket escalated",
            extra={
                "ticket_id": ticket.id,
                "issue_key": ticket.issue_key,
                "escalation_reason": reason.value,
                "actor_id": actor.user_id,
            }
        )
        return ticket

    async def de_escalate(self, ticket_id: str, actor: Actor) -> Ticket:
        _require_internal(actor, "de-escalate tickets")
        ticket = await self._load(ticket_id, actor)
        if not ticket.is_escalated:
            raise ValidationException("Ticket is not escalated")

        now = utcnow()
        EscalationTracker.de_escalate(ticket, now)
        ticket = await self._tickets.update(ticket)
        await self._record(ticket, TicketEventType.DE_ESCALATED, actor.user_id, now)

        logger.info("Ticket de-escalated", extra={"ticket_id": ticket.id, "actor_id": actor.user_id})
        return ticket

    async def override_ratings(
        self,
        ticket_id: str,
        actor: Actor,
        internal_priority: Optional[int] = None,
        internal_severity: Optional[int] = None,
    ) -> Ticket:
        """Set internal priority and/or severity; client values are kept."""
        _require_internal(actor, "override priority or severity")
        if internal_priority is None and internal_severity is None:
            raise ValidationException("Provide internal_priority and/or internal_severity")

        ticket = await self._load(ticket_id, actor)
        try:
            priority = (
                OverriddenRating(ticket.priority.client, internal_priority)
                if internal_priority is not None else ticket.priority
            )
            severity = (
                OverriddenRating(ticket.severity.client, internal_severity)
                if internal_severity is not None else ticket.severity
            )
        except ValueError as e:
            raise ValidationException(str(e))

        now = utcnow()
        ticket.priority = priority
        ticket.severity = severity
        ticket.updated_at = now
        ticket = await self._tickets.update(ticket)
        await self._record(
            ticket, TicketEventType.RATING_OVERRIDE, actor.user_id, now,
            note=f"priority={ticket.effective_priority} severity={ticket.effective_severity}",
        )
        return ticket

    async def assign_ticket(self, ticket_id: str, assignee_id: int, actor: Actor) -> Ticket:
        _require_internal(actor, "assign tickets")
        ticket = await self._load(ticket_id, actor)
        if ticket.is_terminal:
            raise ValidationException(f"Cannot assign a {ticket.status.value} ticket")

        now = utcnow()
        ticket.assigned_to = assignee_id
        ticket.updated_at = now
        ticket = await self._tickets.update(ticket)
        await self._record(ticket, TicketEventType.ASSIGNED, actor.user_id, now, note=str(assignee_id))

        logger.info(
            "Ticket assigned",
            extra={"ticket_id": ticket.id, "assignee_id": assignee_id, "actor_id": actor.user_id}
        )
        return ticket

    # ========== Comments, attachments, hierarchy ==========

    async def add_comment(self, ticket_id: str, body: str, actor: Actor, is_internal: bool = False) -> TicketComment:
        if not body or not body.strip():
            raise ValidationException("Comment cannot be empty")
        if is_internal:
            _require_internal(actor, "add internal comments")

        ticket = await self._load(ticket_id, actor)
        now = utcnow()
        comment = await self._activity.add_comment(
            TicketComment(
                id=None,
                ticket_id=ticket.id,
                author_id=actor.user_id,
                body=body.strip(),
                created_at=now,
                is_internal=is_internal,
            )
        )
        ticket.updated_at = now
        await self._tickets.update(ticket)
        return comment

    async def add_attachment(
        self,
        ticket_id: str,
        actor: Actor,
        file_name: str,
        file_url: str,
        content_type: Optional[str] = None,
        size_bytes: Optional[int] = None,
    ) -> TicketAttachment:
        if not file_name or not file_url:
            raise ValidationException("file_name and file_url are required")

        ticket = await self._load(ticket_id, actor)
        return await self._activity.add_attachment(
            TicketAttachment(
                id=None,
                ticket_id=ticket.id,
                uploaded_by=actor.user_id,
                file_name=file_name,
                file_url=file_url,
                created_at=utcnow(),
                content_type=content_type,
                size_bytes=size_bytes,
            )
        )

    async def link_tickets(
        self,
        source_id: str,
        target_id: str,
        link_type: Union[TicketLinkType, str],
        actor: Actor,
    ) -> TicketLink:
        _require_internal(actor, "link tickets")
        try:
            link_type = TicketLinkType(link_type)
        except ValueError:
            valid = ", ".join(t.value for t in TicketLinkType)
            raise ValidationException(f"Invalid link type: {link_type}. Valid types: {valid}")

        if source_id == target_id:
            raise ValidationException("A ticket cannot be linked to itself")

        source = await self._load(source_id)
        target = await self._load(target_id)

        if await self._activity.link_exists(source.id, target.id, link_type):
            raise ConflictException(
                f"{source.issue_key} already {link_type.value.replace('_', ' ')} {target.issue_key}"
            )

        return await self._activity.add_link(
            TicketLink(
                id=None,
                source_ticket_id=source.id,
                target_ticket_id=target.id,
                link_type=link_type,
                created_by=actor.user_id,
                created_at=utcnow(),
            )
        )

    async def _check_parent_candidate(self, ticket: Optional[Ticket], parent_id: str, actor: Actor) -> Ticket:
        # Parents the actor cannot see are reported as missing
        parent = await self._load(parent_id, actor)
        if parent.parent_id:
            raise ValidationException("Only one level of hierarchy is allowed: the parent is itself a child")
        if ticket is not None:
            if parent.id == ticket.id:
                raise ValidationException("A ticket cannot be its own parent")
            if await self._tickets.list_children(ticket.id):
                raise ValidationException("Only one level of hierarchy is allowed: the ticket has children")
        return parent

    async def set_parent(self, ticket_id: str, parent_id: Optional[str], actor: Actor) -> Ticket:
        _require_internal(actor, "change ticket hierarchy")
        ticket = await self._load(ticket_id)

        if parent_id is not None:
            if parent_id == ticket.id:
                raise ValidationException("A ticket cannot be its own parent")
            await self._check_parent_candidate(ticket, parent_id, actor)

        ticket.parent_id = parent_id
        ticket.updated_at = utcnow()
        return await self._tickets.update(ticket)
