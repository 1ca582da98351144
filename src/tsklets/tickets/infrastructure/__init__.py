"""
Tickets Infrastructure Layer
=============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from tsklets.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyTicketActivityRepository,
)

__all__ = [
    "SQLAlchemyTicketRepository",
    "SQLAlchemyTicketActivityRepository",
]
