"""
Dev Tasks Application Layer
============================

Contains:
- Services: dev task use cases and ticket conversion
- DTOs: Data transfer objects for API serialization
"""

from tsklets.dev_tasks.application.dto import (
    DevTaskCreateDTO,
    ConvertTicketDTO,
    DevTaskStatusPatchDTO,
    StoryPointsDTO,
    SprintAssignDTO,
    CloseDevTaskDTO,
    DevTaskResponse,
    DevTaskStatusResponse,
    DefaultRolesResponse,
)
from tsklets.dev_tasks.application.services import (
    DevTaskService,
    DevTaskConversionService,
    DevTaskInput,
    DevTaskFilter,
    StatusUpdateResult,
    IDevTaskRepository,
    ISprintLookup,
)

__all__ = [
    # DTOs
    "DevTaskCreateDTO",
    "ConvertTicketDTO",
    "DevTaskStatusPatchDTO",
    "StoryPointsDTO",
    "SprintAssignDTO",
    "CloseDevTaskDTO",
    "DevTaskResponse",
    "DevTaskStatusResponse",
    "DefaultRolesResponse",
    # Services
    "DevTaskService",
    "DevTaskConversionService",
    "DevTaskInput",
    "DevTaskFilter",
    "StatusUpdateResult",
    # Interfaces
    "IDevTaskRepository",
    "ISprintLookup",
]
