"""
Dev Tasks Infrastructure Layer
===============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from tsklets.dev_tasks.infrastructure.repositories import (
    SQLAlchemyDevTaskRepository,
    SQLAlchemyDevTaskLookup,
)

__all__ = [
    "SQLAlchemyDevTaskRepository",
    "SQLAlchemyDevTaskLookup",
]
