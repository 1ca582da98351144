"""
Tickets Interfaces Layer
========================

Contains:
- Controllers: FastAPI route handlers
"""

from tsklets.tickets.interfaces.controllers import router as tickets_router

__all__ = ["tickets_router"]
