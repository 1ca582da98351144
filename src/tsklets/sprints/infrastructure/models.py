"""
Sprint Infrastructure Models
=============================

SQLAlchemy ORM models for sprints, capacity and retrospectives.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from tsklets.config import SprintStatus
from tsklets.infrastructure.database import Base
from tsklets.shared.infrastructure.clock import utcnow

ACTIVE_SPRINT_INDEX = "uq_sprints_single_active"


class SprintModel(Base):
    """
    Database model for Sprint entity.

    Maps to the 'sprints' table.
    """
    __tablename__ = "sprints"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SprintStatus.PLANNING.value)

    velocity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        # At most one active sprint
        Index(
            ACTIVE_SPRINT_INDEX,
            "status",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )


class SprintCapacityModel(Base):
    __tablename__ = "sprint_capacity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sprint_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("sprints.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    available_points: Mapped[int] = mapped_column(Integer, nullable=False, default=20)

    __table_args__ = (
        UniqueConstraint("sprint_id", "user_id", name="uq_sprint_capacity_user"),
    )


class SprintRetroModel(Base):
    __tablename__ = "sprint_retros"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sprint_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("sprints.id"), nullable=False, unique=True)
    went_well: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    improvements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    action_items: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
