"""
Ticket Controllers (API Routes)
================================

FastAPI routes for the ticket lifecycle.

Controllers are thin - they delegate to application services. Rejected
operations surface as typed exceptions mapped to 4xx by the app.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.catalog.application import IssueKeyService
from tsklets.catalog.infrastructure import SQLAlchemyCatalogRepository, SQLAlchemyIssueKeySequence
from tsklets.config import TicketStatus, TicketType
from tsklets.core import Actor
from tsklets.dev_tasks.infrastructure import SQLAlchemyDevTaskLookup
from tsklets.infrastructure.database import get_session
from tsklets.shared.api.dependencies import get_actor, get_workflow_config, require_internal_actor
from tsklets.shared.infrastructure.logging import get_logger, log_latency
from tsklets.shared.infrastructure.workflow_config import IWorkflowConfigProvider
from tsklets.tickets.application import (
    AssignDTO,
    AttachmentCreateDTO,
    AttachmentResponse,
    AutoCloseResponse,
    CommentCreateDTO,
    CommentResponse,
    EscalateDTO,
    LinkCreateDTO,
    LinkedDevTaskResponse,
    LinkResponse,
    ParentDTO,
    RatingOverrideDTO,
    RatingResponse,
    ReassignToInternalDTO,
    ReopenDTO,
    SLAAgeResponse,
    TicketActionsResponse,
    TicketCreateDTO,
    TicketDetailResponse,
    TicketEventResponse,
    TicketFilter,
    TicketResponse,
    TicketService,
    TicketStatusPatchDTO,
)
from tsklets.tickets.domain import SLAAge, Ticket, TicketAttachment, TicketComment, TicketLink
from tsklets.tickets.infrastructure import SQLAlchemyTicketActivityRepository, SQLAlchemyTicketRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


# ========== Dependencies ==========

async def get_ticket_service(
    session: AsyncSession = Depends(get_session),
    config_provider: IWorkflowConfigProvider = Depends(get_workflow_config),
) -> TicketService:
    """Get ticket service instance."""
    catalog_repo = SQLAlchemyCatalogRepository(session)
    return TicketService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        activity_repository=SQLAlchemyTicketActivityRepository(session),
        catalog_repository=catalog_repo,
        issue_keys=IssueKeyService(catalog_repo, SQLAlchemyIssueKeySequence(session)),
        config_provider=config_provider,
        dev_task_lookup=SQLAlchemyDevTaskLookup(session),
    )


# ========== Response mapping ==========

def to_ticket_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        issue_key=ticket.issue_key,
        product_id=ticket.product_id,
        type=ticket.type,
        status=ticket.status,
        title=ticket.title,
        description=ticket.description,
        created_by=ticket.created_by,
        client_id=ticket.client_id,
        assigned_to=ticket.assigned_to,
        priority=RatingResponse(
            client=ticket.priority.client,
            internal=ticket.priority.internal,
            effective=ticket.effective_priority,
        ),
        severity=RatingResponse(
            client=ticket.severity.client,
            internal=ticket.severity.internal,
            effective=ticket.effective_severity,
        ),
        labels=ticket.labels,
        is_escalated=ticket.is_escalated,
        is_created_by_systech=ticket.is_created_by_systech,
        escalation_reason=ticket.escalation_reason,
        escalation_note=ticket.escalation_note,
        pushed_to_systech_at=ticket.pushed_to_systech_at,
        parent_id=ticket.parent_id,
        resolution=ticket.resolution,
        resolution_note=ticket.resolution_note,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        closed_at=ticket.closed_at,
    )


def _comment_response(comment: TicketComment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        author_id=comment.author_id,
        body=comment.body,
        is_internal=comment.is_internal,
        created_at=comment.created_at,
    )


def _attachment_response(attachment: TicketAttachment) -> AttachmentResponse:
    return AttachmentResponse(
        id=attachment.id,
        uploaded_by=attachment.uploaded_by,
        file_name=attachment.file_name,
        file_url=attachment.file_url,
        content_type=attachment.content_type,
        size_bytes=attachment.size_bytes,
        created_at=attachment.created_at,
    )


def _link_response(link: TicketLink) -> LinkResponse:
    return LinkResponse(
        id=link.id,
        source_ticket_id=link.source_ticket_id,
        target_ticket_id=link.target_ticket_id,
        link_type=link.link_type,
        created_at=link.created_at,
    )


def _sla_response(age: SLAAge) -> SLAAgeResponse:
    return SLAAgeResponse(hours=age.hours, display=age.display, urgency=age.urgency)


def _sorted_actions(actions) -> list:
    return sorted(actions, key=lambda a: a.value)


# ========== Route Handlers ==========

@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File a ticket",
    description="""
    Internal users create `open` tickets. Client users create tickets in
    `pending_internal_review`, owned by their client.

    Internal users may pass `client_id` to file on behalf of a client; such
    tickets carry the `created_by_systech` label.
    """,
)
async def create_ticket(
    body: TicketCreateDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.create_ticket(
        actor,
        product_id=body.product_id,
        ticket_type=body.type,
        title=body.title,
        description=body.description,
        client_priority=body.client_priority,
        client_severity=body.client_severity,
        labels=body.labels,
        client_id=body.client_id,
        parent_id=body.parent_id,
    )
    return to_ticket_response(ticket)


@router.get("", response_model=List[TicketResponse], summary="List visible tickets")
async def list_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    type_filter: Optional[TicketType] = Query(None, alias="type"),
    product_id: Optional[str] = None,
    assigned_to: Optional[int] = None,
    escalated: Optional[bool] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    filters = TicketFilter(
        status=status_filter,
        type=type_filter,
        product_id=product_id,
        assigned_to=assigned_to,
        escalated=escalated,
        limit=limit,
        offset=offset,
    )
    return [to_ticket_response(t) for t in await service.list_tickets(actor, filters)]


@router.post(
    "/auto-close",
    response_model=AutoCloseResponse,
    summary="Close stale tickets",
    description="""
    Closes `resolved` and `waiting_for_customer` tickets that have not been
    updated for `tickets.auto_close_after_days` days. Meant to be called by
    an external scheduler.
    """,
)
async def auto_close(
    now: Optional[datetime] = None,
    actor: Actor = Depends(require_internal_actor),
    service: TicketService = Depends(get_ticket_service),
):
    with log_latency(logger, "auto_close_stale_tickets"):
        closed = await service.auto_close_stale_tickets(now)
    return AutoCloseResponse(closed_count=len(closed), issue_keys=[t.issue_key for t in closed])


@router.get(
    "/key/{issue_key}",
    response_model=TicketDetailResponse,
    summary="Get ticket detail by issue key",
    description="Ticket with comments, attachments, hierarchy, links, dev tasks, SLA age and allowed actions.",
)
async def get_ticket(
    issue_key: str,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    view = await service.get_ticket(issue_key, actor)
    return TicketDetailResponse(
        ticket=to_ticket_response(view.ticket),
        sla_age=_sla_response(view.sla_age),
        available_actions=_sorted_actions(view.available_actions),
        comments=[_comment_response(c) for c in view.comments],
        attachments=[_attachment_response(a) for a in view.attachments],
        parent=to_ticket_response(view.parent) if view.parent else None,
        children=[to_ticket_response(c) for c in view.children],
        links=[_link_response(link) for link in view.links],
        dev_tasks=[
            LinkedDevTaskResponse(
                id=task.id, issue_key=task.issue_key, title=task.title, type=task.type, status=task.status
            )
            for task in view.dev_tasks
        ],
    )


@router.get("/{ticket_id}", response_model=TicketResponse, summary="Get a ticket")
async def get_ticket_by_id(
    ticket_id: str,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return to_ticket_response(await service.get_ticket_by_id(ticket_id, actor))


@router.get("/{ticket_id}/actions", response_model=TicketActionsResponse, summary="Actions allowed for the caller")
async def get_ticket_actions(
    ticket_id: str,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.get_ticket_by_id(ticket_id, actor)
    actions = await service.ticket_actions(ticket_id, actor)
    return TicketActionsResponse(ticket_id=ticket.id, status=ticket.status, actions=_sorted_actions(actions))


@router.get("/{ticket_id}/sla", response_model=SLAAgeResponse, summary="SLA age since the internal push")
async def get_ticket_sla(
    ticket_id: str,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return _sla_response(await service.sla_age(ticket_id, actor))


@router.get("/{ticket_id}/history", response_model=List[TicketEventResponse], summary="Audit trail")
async def get_ticket_history(
    ticket_id: str,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    events = await service.ticket_history(ticket_id, actor)
    return [
        TicketEventResponse(
            id=e.id,
            event_type=e.event_type,
            actor_id=e.actor_id,
            from_status=e.from_status,
            to_status=e.to_status,
            note=e.note,
            created_at=e.created_at,
        )
        for e in events
    ]


@router.patch(
    "/{ticket_id}/status",
    response_model=TicketResponse,
    summary="Change ticket status",
    description="""
    Every transition is checked against the role-gated action policy:

    - `cancelled` needs the cancel action and a non-empty `reason`
    - `closed` needs the close action (admins, from `resolved`)
    - `rebuttal` needs the mark_rebuttal action
    - `open` from `closed`/`resolved` is a reopen
    - `pending_internal_review` is only reachable through reassign-to-internal
    - other moves are reserved to internal users on non-terminal tickets
    """,
)
async def patch_ticket_status(
    ticket_id: str,
    body: TicketStatusPatchDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.patch_ticket_status(
        ticket_id,
        body.status,
        actor,
        reason=body.reason,
        resolution=body.resolution,
        resolution_note=body.resolution_note,
    )
    return to_ticket_response(ticket)


@router.post("/{ticket_id}/reopen", response_model=TicketResponse, summary="Reopen a closed or resolved ticket")
async def reopen_ticket(
    ticket_id: str,
    body: Optional[ReopenDTO] = None,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    reason = body.reason if body else None
    return to_ticket_response(await service.reopen_ticket(ticket_id, actor, reason))


@router.post(
    "/{ticket_id}/reassign-to-internal",
    response_model=TicketResponse,
    summary="Send a client ticket back to the internal queue",
)
async def reassign_to_internal(
    ticket_id: str,
    body: ReassignToInternalDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return to_ticket_response(await service.reassign_ticket_to_internal(ticket_id, body.comment, actor))


@router.post("/{ticket_id}/escalate", response_model=TicketResponse, summary="Escalate a ticket")
async def escalate_ticket(
    ticket_id: str,
    body: EscalateDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return to_ticket_response(await service.escalate_ticket(ticket_id, body.reason, actor, body.note))


@router.post("/{ticket_id}/de-escalate", response_model=TicketResponse, summary="Remove the escalated flag")
async def de_escalate_ticket(
    ticket_id: str,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return to_ticket_response(await service.de_escalate(ticket_id, actor))


@router.put("/{ticket_id}/ratings", response_model=TicketResponse, summary="Override priority / severity")
async def override_ratings(
    ticket_id: str,
    body: RatingOverrideDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.override_ratings(
        ticket_id, actor,
        internal_priority=body.internal_priority,
        internal_severity=body.internal_severity,
    )
    return to_ticket_response(ticket)


@router.put("/{ticket_id}/assignee", response_model=TicketResponse, summary="Assign a ticket")
async def assign_ticket(
    ticket_id: str,
    body: AssignDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return to_ticket_response(await service.assign_ticket(ticket_id, body.assignee_id, actor))


@router.put("/{ticket_id}/parent", response_model=TicketResponse, summary="Set or clear the parent ticket")
async def set_parent(
    ticket_id: str,
    body: ParentDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return to_ticket_response(await service.set_parent(ticket_id, body.parent_id, actor))


@router.post(
    "/{ticket_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a comment",
)
async def add_comment(
    ticket_id: str,
    body: CommentCreateDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    return _comment_response(await service.add_comment(ticket_id, body.body, actor, body.is_internal))


@router.post(
    "/{ticket_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record attachment metadata",
)
async def add_attachment(
    ticket_id: str,
    body: AttachmentCreateDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    attachment = await service.add_attachment(
        ticket_id, actor,
        file_name=body.file_name,
        file_url=body.file_url,
        content_type=body.content_type,
        size_bytes=body.size_bytes,
    )
    return _attachment_response(attachment)


@router.post(
    "/{ticket_id}/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link two tickets",
)
async def link_tickets(
    ticket_id: str,
    body: LinkCreateDTO,
    actor: Actor = Depends(get_actor),
    service: TicketService = Depends(get_ticket_service),
):
    link = await service.link_tickets(ticket_id, body.target_ticket_id, body.link_type, actor)
    return _link_response(link)
