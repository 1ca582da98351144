"""
Catalog Interfaces Layer
========================

Contains:
- Controllers: FastAPI route handlers
"""

from tsklets.catalog.interfaces.controllers import router as catalog_router

__all__ = ["catalog_router"]
