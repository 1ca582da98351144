"""
Sprints Infrastructure Layer
=============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from tsklets.sprints.infrastructure.repositories import (
    SQLAlchemySprintRepository,
    SQLAlchemySprintLookup,
)

__all__ = [
    "SQLAlchemySprintRepository",
    "SQLAlchemySprintLookup",
]
