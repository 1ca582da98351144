"""
Dev Tasks Interfaces Layer
==========================

Contains:
- Controllers: FastAPI route handlers
"""

from tsklets.dev_tasks.interfaces.controllers import router as dev_tasks_router

__all__ = ["dev_tasks_router"]
