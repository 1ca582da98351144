"""
Catalog Infrastructure Layer
=============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from tsklets.catalog.infrastructure.repositories import (
    SQLAlchemyCatalogRepository,
    SQLAlchemyIssueKeySequence,
)

__all__ = [
    "SQLAlchemyCatalogRepository",
    "SQLAlchemyIssueKeySequence",
]
