"""
Sprints Interfaces Layer
========================

Contains:
- Controllers: FastAPI route handlers
"""

from tsklets.sprints.interfaces.controllers import router as sprints_router

__all__ = ["sprints_router"]
