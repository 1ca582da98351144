"""
Catalog Infrastructure Models
==============================

SQLAlchemy ORM models for products, product structure and issue-key
sequences.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tsklets.infrastructure.database import Base
from tsklets.shared.infrastructure.clock import utcnow


class ProductModel(Base):
    """
    Database model for Product entity.

    Maps to the 'products' table.
    """
    __tablename__ = "products"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Default dev-task team
    default_implementor_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    default_developer_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    default_tester_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class ProductModuleModel(Base):
    __tablename__ = "product_modules"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    product_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ProductComponentModel(Base):
    __tablename__ = "product_components"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    module_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("product_modules.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ProductAddonModel(Base):
    __tablename__ = "product_addons"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    product_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class EpicModel(Base):
    __tablename__ = "epics"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    product_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


class FeatureModel(Base):
    __tablename__ = "features"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    epic_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("epics.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


class ProductSequenceModel(Base):
    """
    Last issued number per (product, scope, type code).

    Scope separates ticket numbering from dev task numbering.
    """
    __tablename__ = "product_sequences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("products.id"), nullable=False)
    scope: Mapped[str] = mapped_column(String(20), nullable=False)
    type_code: Mapped[str] = mapped_column(String(1), nullable=False)
    last_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("product_id", "scope", "type_code", name="uq_product_sequences_key"),
    )
