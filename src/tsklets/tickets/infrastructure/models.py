"""
Ticket Infrastructure Models
=============================

SQLAlchemy ORM models for tickets and their activity.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tsklets.config import TicketStatus
from tsklets.infrastructure.database import Base
from tsklets.shared.infrastructure.clock import utcnow


class TicketModel(Base):
    """
    Database model for Ticket entity.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Business identifier
    issue_key: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    product_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketStatus.OPEN.value, index=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Ownership
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    client_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Dual-tracked ratings, 1 = critical .. 5 = trivial
    client_priority: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    internal_priority: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    client_severity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    internal_severity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    labels: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Escalation
    escalation_reason: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    escalation_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pushed_to_systech_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # One level of hierarchy
    parent_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=True, index=True)

    resolution: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    resolution_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class TicketCommentModel(Base):
    __tablename__ = "ticket_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    author_id: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class TicketAttachmentModel(Base):
    __tablename__ = "ticket_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    uploaded_by: Mapped[int] = mapped_column(Integer, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    content_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    size_bytes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class TicketLinkModel(Base):
    __tablename__ = "ticket_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    target_ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    link_type: Mapped[str] = mapped_column(String(50), nullable=False)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("source_ticket_id", "target_ticket_id", "link_type", name="uq_ticket_links_triple"),
    )


class TicketEventModel(Base):
    """Append-only audit trail of ticket lifecycle events."""
    __tablename__ = "ticket_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    from_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    to_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
