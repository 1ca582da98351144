"""
Dev Task Infrastructure Models
===============================

SQLAlchemy ORM model for dev tasks.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tsklets.config import DEFAULT_RATING, DevTaskStatus
from tsklets.infrastructure.database import Base
from tsklets.shared.infrastructure.clock import utcnow


class DevTaskModel(Base):
    """
    Database model for DevTask entity.

    Maps to the 'dev_tasks' table.
    """
    __tablename__ = "dev_tasks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    issue_key: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    product_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=DevTaskStatus.TODO.value, index=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_RATING)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Roles
    implementor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    developer_id: Mapped[int] = mapped_column(Integer, nullable=False)
    tester_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Product structure
    module_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("product_modules.id"), nullable=True)
    component_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("product_components.id"), nullable=True)
    addon_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("product_addons.id"), nullable=True)
    feature_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("features.id"), nullable=True)

    support_ticket_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("tickets.id"), nullable=True, index=True)

    # Planning
    sprint_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("sprints.id"), nullable=True, index=True)
    story_points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    blocked_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolution: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    resolution_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
