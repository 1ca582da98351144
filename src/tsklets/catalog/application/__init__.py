"""
Catalog Application Layer
==========================

Contains:
- Services: product structure management, issue-key allocation
- DTOs: Data transfer objects for API serialization
"""

from tsklets.catalog.application.dto import (
    DefaultTeamDTO,
    ProductCreateDTO,
    ProductResponse,
    NamedItemCreateDTO,
    TitledItemCreateDTO,
    StructureItemResponse,
)
from tsklets.catalog.application.services import (
    CatalogService,
    IssueKeyService,
    ICatalogRepository,
    IIssueKeySequence,
)

__all__ = [
    # DTOs
    "DefaultTeamDTO",
    "ProductCreateDTO",
    "ProductResponse",
    "NamedItemCreateDTO",
    "TitledItemCreateDTO",
    "StructureItemResponse",
    # Services
    "CatalogService",
    "IssueKeyService",
    # Repository Interfaces
    "ICatalogRepository",
    "IIssueKeySequence",
]
