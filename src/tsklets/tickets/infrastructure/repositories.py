"""
Ticket Infrastructure Repositories
====================================

Concrete implementations of the ticket repository interfaces using
SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
entities from the database.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.config import (
    EscalationReason,
    Resolution,
    TicketEventType,
    TicketLinkType,
    TicketStatus,
    TicketType,
)
from tsklets.core import RepositoryException
from tsklets.infrastructure.database import from_uuid, to_uuid
from tsklets.shared.infrastructure.clock import as_utc
from tsklets.tickets.application import ITicketActivityRepository, ITicketRepository, TicketFilter
from tsklets.tickets.domain import (
    Ticket,
    TicketAttachment,
    TicketComment,
    TicketEvent,
    TicketLink,
    rating_from,
)
from tsklets.tickets.infrastructure.models import (
    TicketAttachmentModel,
    TicketCommentModel,
    TicketEventModel,
    TicketLinkModel,
    TicketModel,
)


def _optional_enum(enum_cls, value):
    return enum_cls(value) if value is not None else None


def _to_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=from_uuid(model.id),
        issue_key=model.issue_key,
        product_id=from_uuid(model.product_id),
        type=TicketType(model.type),
        status=TicketStatus(model.status),
        title=model.title,
        description=model.description,
        created_by=model.created_by,
        client_id=model.client_id,
        assigned_to=model.assigned_to,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        priority=rating_from(model.client_priority, model.internal_priority),
        severity=rating_from(model.client_severity, model.internal_severity),
        labels=list(model.labels or []),
        escalation_reason=_optional_enum(EscalationReason, model.escalation_reason),
        escalation_note=model.escalation_note,
        pushed_to_systech_at=as_utc(model.pushed_to_systech_at),
        parent_id=from_uuid(model.parent_id),
        resolution=_optional_enum(Resolution, model.resolution),
        resolution_note=model.resolution_note,
        closed_at=as_utc(model.closed_at),
    )


def _copy_to_model(ticket: Ticket, model: TicketModel) -> None:
    """Write every mutable field of the entity onto the row."""
    model.status = ticket.status.value
    model.title = ticket.title
    model.description = ticket.description
    model.assigned_to = ticket.assigned_to
    model.client_id = ticket.client_id
    model.client_priority = ticket.priority.client
    model.internal_priority = ticket.priority.internal
    model.client_severity = ticket.severity.client
    model.internal_severity = ticket.severity.internal
    model.labels = list(ticket.labels)
    model.escalation_reason = ticket.escalation_reason.value if ticket.escalation_reason else None
    model.escalation_note = ticket.escalation_note
    model.pushed_to_systech_at = ticket.pushed_to_systech_at
    model.parent_id = to_uuid(ticket.parent_id)
    model.resolution = ticket.resolution.value if ticket.resolution else None
    model.resolution_note = ticket.resolution_note
    model.updated_at = ticket.updated_at
    model.closed_at = ticket.closed_at


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, ticket_id: Optional[str]) -> Optional[TicketModel]:
        key = to_uuid(ticket_id)
        if key is None:
            return None
        return await self._session.get(TicketModel, key)

    async def add(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            issue_key=ticket.issue_key,
            product_id=to_uuid(ticket.product_id),
            type=ticket.type.value,
            created_by=ticket.created_by,
            created_at=ticket.created_at,
        )
        _copy_to_model(ticket, model)

        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        return _to_entity(model) if model else None

    async def get_by_issue_key(self, issue_key: str) -> Optional[Ticket]:
        stmt = select(TicketModel).where(TicketModel.issue_key == issue_key)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def update(self, ticket: Ticket) -> Ticket:
        model = await self._get_model(ticket.id)
        if not model:
            raise RepositoryException(f"Ticket {ticket.id} not found")

        _copy_to_model(ticket, model)
        await self._session.flush()
        return _to_entity(model)

    async def list(self, filters: TicketFilter) -> List[Ticket]:
        stmt = select(TicketModel)

        if filters.status is not None:
            stmt = stmt.where(TicketModel.status == TicketStatus(filters.status).value)
        if filters.type is not None:
            stmt = stmt.where(TicketModel.type == TicketType(filters.type).value)
        if filters.product_id is not None:
            stmt = stmt.where(TicketModel.product_id == to_uuid(filters.product_id))
        if filters.client_id is not None:
            stmt = stmt.where(TicketModel.client_id == filters.client_id)
        if filters.created_by is not None:
            stmt = stmt.where(TicketModel.created_by == filters.created_by)
        if filters.assigned_to is not None:
            stmt = stmt.where(TicketModel.assigned_to == filters.assigned_to)

        # Order by created_at descending
        stmt = stmt.order_by(TicketModel.created_at.desc(), TicketModel.issue_key.desc())

        if filters.escalated is None:
            stmt = stmt.limit(filters.limit).offset(filters.offset)
            result = await self._session.execute(stmt)
            return [_to_entity(m) for m in result.scalars().all()]

        # Labels are a JSON array; the escalated flag is filtered here
        result = await self._session.execute(stmt)
        tickets = [
            t for t in (_to_entity(m) for m in result.scalars().all())
            if t.is_escalated == filters.escalated
        ]
        return tickets[filters.offset:filters.offset + filters.limit]

    async def list_children(self, parent_id: str) -> List[Ticket]:
        key = to_uuid(parent_id)
        if key is None:
            return []
        stmt = select(TicketModel).where(TicketModel.parent_id == key).order_by(TicketModel.created_at)
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def list_stale(self, statuses: List[TicketStatus], updated_before: datetime) -> List[Ticket]:
        stmt = (
            select(TicketModel)
            .where(
                TicketModel.status.in_([TicketStatus(s).value for s in statuses]),
                TicketModel.updated_at < updated_before,
            )
            .order_by(TicketModel.updated_at)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]


class SQLAlchemyTicketActivityRepository(ITicketActivityRepository):
    """Comments, attachments, links and events of tickets."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ========== Comments ==========

    async def add_comment(self, comment: TicketComment) -> TicketComment:
        model = TicketCommentModel(
            ticket_id=to_uuid(comment.ticket_id),
            author_id=comment.author_id,
            body=comment.body,
            is_internal=comment.is_internal,
            created_at=comment.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._comment(model)

    async def list_comments(self, ticket_id: str, include_internal: bool = True) -> List[TicketComment]:
        stmt = select(TicketCommentModel).where(TicketCommentModel.ticket_id == to_uuid(ticket_id))
        if not include_internal:
            stmt = stmt.where(TicketCommentModel.is_internal.is_(False))
        stmt = stmt.order_by(TicketCommentModel.created_at, TicketCommentModel.id)

        result = await self._session.execute(stmt)
        return [self._comment(m) for m in result.scalars().all()]

    @staticmethod
    def _comment(model: TicketCommentModel) -> TicketComment:
        return TicketComment(
            id=str(model.id),
            ticket_id=from_uuid(model.ticket_id),
            author_id=model.author_id,
            body=model.body,
            is_internal=model.is_internal,
            created_at=as_utc(model.created_at),
        )

    # ========== Attachments ==========

    async def add_attachment(self, attachment: TicketAttachment) -> TicketAttachment:
        model = TicketAttachmentModel(
            ticket_id=to_uuid(attachment.ticket_id),
            uploaded_by=attachment.uploaded_by,
            file_name=attachment.file_name,
            file_url=attachment.file_url,
            content_type=attachment.content_type,
            size_bytes=attachment.size_bytes,
            created_at=attachment.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._attachment(model)

    async def list_attachments(self, ticket_id: str) -> List[TicketAttachment]:
        stmt = (
            select(TicketAttachmentModel)
            .where(TicketAttachmentModel.ticket_id == to_uuid(ticket_id))
            .order_by(TicketAttachmentModel.created_at, TicketAttachmentModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._attachment(m) for m in result.scalars().all()]

    @staticmethod
    def _attachment(model: TicketAttachmentModel) -> TicketAttachment:
        return TicketAttachment(
            id=str(model.id),
            ticket_id=from_uuid(model.ticket_id),
            uploaded_by=model.uploaded_by,
            file_name=model.file_name,
            file_url=model.file_url,
            content_type=model.content_type,
            size_bytes=model.size_bytes,
            created_at=as_utc(model.created_at),
        )

    # ========== Links ==========

    async def add_link(self, link: TicketLink) -> TicketLink:
        model = TicketLinkModel(
            source_ticket_id=to_uuid(link.source_ticket_id),
            target_ticket_id=to_uuid(link.target_ticket_id),
            link_type=TicketLinkType(link.link_type).value,
            created_by=link.created_by,
            created_at=link.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._link(model)

    async def link_exists(self, source_id: str, target_id: str, link_type: TicketLinkType) -> bool:
        stmt = select(TicketLinkModel.id).where(
            TicketLinkModel.source_ticket_id == to_uuid(source_id),
            TicketLinkModel.target_ticket_id == to_uuid(target_id),
            TicketLinkModel.link_type == TicketLinkType(link_type).value,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_links(self, ticket_id: str) -> List[TicketLink]:
        key = to_uuid(ticket_id)
        stmt = (
            select(TicketLinkModel)
            .where(or_(TicketLinkModel.source_ticket_id == key, TicketLinkModel.target_ticket_id == key))
            .order_by(TicketLinkModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._link(m) for m in result.scalars().all()]

    @staticmethod
    def _link(model: TicketLinkModel) -> TicketLink:
        return TicketLink(
            id=str(model.id),
            source_ticket_id=from_uuid(model.source_ticket_id),
            target_ticket_id=from_uuid(model.target_ticket_id),
            link_type=TicketLinkType(model.link_type),
            created_by=model.created_by,
            created_at=as_utc(model.created_at),
        )

    # ========== Events ==========

    async def add_event(self, event: TicketEvent) -> TicketEvent:
        model = TicketEventModel(
            ticket_id=to_uuid(event.ticket_id),
            event_type=TicketEventType(event.event_type).value,
            actor_id=event.actor_id,
            from_status=event.from_status.value if event.from_status else None,
            to_status=event.to_status.value if event.to_status else None,
            note=event.note,
            created_at=event.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._event(model)

    async def list_events(self, ticket_id: str) -> List[TicketEvent]:
        stmt = (
            select(TicketEventModel)
            .where(TicketEventModel.ticket_id == to_uuid(ticket_id))
            .order_by(TicketEventModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._event(m) for m in result.scalars().all()]

    @staticmethod
    def _event(model: TicketEventModel) -> TicketEvent:
        return TicketEvent(
            id=str(model.id),
            ticket_id=from_uuid(model.ticket_id),
            event_type=TicketEventType(model.event_type),
            actor_id=model.actor_id,
            from_status=_optional_enum(TicketStatus, model.from_status),
            to_status=_optional_enum(TicketStatus, model.to_status),
            note=model.note,
            created_at=as_utc(model.created_at),
        )
