"""
Sprints Application Layer
==========================

Contains:
- Services: sprint planning use cases
- DTOs: Data transfer objects for API serialization
"""

from tsklets.sprints.application.dto import (
    SprintCreateDTO,
    SprintUpdateDTO,
    SprintCompleteDTO,
    CapacityDTO,
    RetroDTO,
    SprintResponse,
    CapacityResponse,
    RetroResponse,
    SprintDetailResponse,
    SprintCompletionResponse,
    BurndownResponse,
    VelocityPointResponse,
    VelocityTrendResponse,
)
from tsklets.sprints.application.services import (
    SprintPlannerService,
    SprintDetail,
    SprintCompletion,
    ISprintRepository,
)

__all__ = [
    # DTOs
    "SprintCreateDTO",
    "SprintUpdateDTO",
    "SprintCompleteDTO",
    "CapacityDTO",
    "RetroDTO",
    "SprintResponse",
    "CapacityResponse",
    "RetroResponse",
    "SprintDetailResponse",
    "SprintCompletionResponse",
    "BurndownResponse",
    "VelocityPointResponse",
    "VelocityTrendResponse",
    # Services
    "SprintPlannerService",
    "SprintDetail",
    "SprintCompletion",
    # Interfaces
    "ISprintRepository",
]
