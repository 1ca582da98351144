"""
Dev Task Controllers (API Routes)
==================================

FastAPI routes for dev tasks and ticket conversion.

Controllers are thin - they delegate to application services.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.catalog.application import CatalogService, IssueKeyService
from tsklets.catalog.infrastructure import SQLAlchemyCatalogRepository, SQLAlchemyIssueKeySequence
from tsklets.config import DevTaskStatus, DevTaskType
from tsklets.core import Actor
from tsklets.dev_tasks.application import (
    CloseDevTaskDTO,
    ConvertTicketDTO,
    DefaultRolesResponse,
    DevTaskConversionService,
    DevTaskCreateDTO,
    DevTaskFilter,
    DevTaskInput,
    DevTaskResponse,
    DevTaskService,
    DevTaskStatusPatchDTO,
    DevTaskStatusResponse,
    SprintAssignDTO,
    StoryPointsDTO,
)
from tsklets.dev_tasks.domain import DevTask
from tsklets.dev_tasks.infrastructure import SQLAlchemyDevTaskRepository
from tsklets.infrastructure.database import get_session
from tsklets.shared.api.dependencies import get_actor, require_internal_actor
from tsklets.sprints.infrastructure import SQLAlchemySprintLookup
from tsklets.tickets.infrastructure import SQLAlchemyTicketActivityRepository, SQLAlchemyTicketRepository

router = APIRouter(prefix="/dev-tasks", tags=["Dev Tasks"])


# ========== Dependencies ==========

async def get_dev_task_service(
    session: AsyncSession = Depends(get_session)
) -> DevTaskService:
    """Get dev task service instance."""
    catalog_repo = SQLAlchemyCatalogRepository(session)
    return DevTaskService(
        task_repository=SQLAlchemyDevTaskRepository(session),
        catalog_service=CatalogService(catalog_repo),
        issue_keys=IssueKeyService(catalog_repo, SQLAlchemyIssueKeySequence(session)),
        sprint_lookup=SQLAlchemySprintLookup(session),
    )


async def get_conversion_service(
    session: AsyncSession = Depends(get_session),
    task_service: DevTaskService = Depends(get_dev_task_service),
) -> DevTaskConversionService:
    """Get conversion service instance; shares the request session with the task service."""
    return DevTaskConversionService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        activity_repository=SQLAlchemyTicketActivityRepository(session),
        task_service=task_service,
        catalog_service=CatalogService(SQLAlchemyCatalogRepository(session)),
    )


def to_dev_task_response(task: DevTask) -> DevTaskResponse:
    return DevTaskResponse(
        id=task.id,
        issue_key=task.issue_key,
        product_id=task.product_id,
        type=task.type,
        status=task.status,
        title=task.title,
        description=task.description,
        priority=task.priority,
        implementor_id=task.implementor_id,
        developer_id=task.developer_id,
        tester_id=task.tester_id,
        created_by=task.created_by,
        module_id=task.module_id,
        component_id=task.component_id,
        addon_id=task.addon_id,
        feature_id=task.feature_id,
        support_ticket_id=task.support_ticket_id,
        sprint_id=task.sprint_id,
        story_points=task.story_points,
        blocked_reason=task.blocked_reason,
        resolution=task.resolution,
        resolution_note=task.resolution_note,
        created_at=task.created_at,
        updated_at=task.updated_at,
        closed_at=task.closed_at,
    )


def _task_input(body, title: Optional[str]) -> DevTaskInput:
    return DevTaskInput(
        title=title,
        type=body.type,
        implementor_id=body.implementor_id,
        developer_id=body.developer_id,
        tester_id=body.tester_id,
        description=body.description,
        priority=body.priority,
        story_points=body.story_points,
        module_id=body.module_id,
        component_id=body.component_id,
        addon_id=body.addon_id,
        feature_id=body.feature_id,
    )


# ========== Conversion ==========

@router.post(
    "/from-ticket/{ticket_id}",
    response_model=DevTaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Convert a ticket into a dev task",
    description="""
    Creates a dev task linked to the ticket. The ticket moves to
    in_progress and is assigned to the implementor. Implementor,
    developer and tester are all required.
    """,
)
async def convert_ticket(
    ticket_id: str,
    body: ConvertTicketDTO,
    actor: Actor = Depends(get_actor),
    service: DevTaskConversionService = Depends(get_conversion_service),
):
    task = await service.convert_ticket_to_dev_task(ticket_id, _task_input(body, body.title), actor)
    return to_dev_task_response(task)


@router.get(
    "/from-ticket/{ticket_id}/defaults",
    response_model=DefaultRolesResponse,
    summary="Default roles for converting a ticket",
)
async def conversion_defaults(
    ticket_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskConversionService = Depends(get_conversion_service),
):
    team = await service.conversion_defaults(ticket_id, actor)
    return DefaultRolesResponse(
        implementor_id=team.implementor_id,
        developer_id=team.developer_id,
        tester_id=team.tester_id,
    )


# ========== Dev Tasks ==========

@router.post(
    "",
    response_model=DevTaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a standalone dev task",
)
async def create_dev_task(
    body: DevTaskCreateDTO,
    actor: Actor = Depends(get_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    task = await service.create_dev_task(body.product_id, _task_input(body, body.title), actor)
    return to_dev_task_response(task)


@router.get("", response_model=List[DevTaskResponse], summary="List dev tasks")
async def list_dev_tasks(
    status_filter: Optional[DevTaskStatus] = Query(default=None, alias="status"),
    type_filter: Optional[DevTaskType] = Query(default=None, alias="type"),
    product_id: Optional[str] = None,
    sprint_id: Optional[str] = None,
    support_ticket_id: Optional[str] = None,
    assignee_id: Optional[int] = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    filters = DevTaskFilter(
        status=status_filter,
        type=type_filter,
        product_id=product_id,
        sprint_id=sprint_id,
        support_ticket_id=support_ticket_id,
        assignee_id=assignee_id,
        limit=limit,
        offset=offset,
    )
    return [to_dev_task_response(t) for t in await service.list_dev_tasks(filters)]


@router.get("/backlog", response_model=List[DevTaskResponse], summary="Unfinished tasks outside any sprint")
async def list_backlog(
    product_id: Optional[str] = None,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    return [to_dev_task_response(t) for t in await service.list_backlog(product_id)]


@router.get("/{task_id}", response_model=DevTaskResponse, summary="Get a dev task")
async def get_dev_task(
    task_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    return to_dev_task_response(await service.get_dev_task(task_id))


@router.patch(
    "/{task_id}/status",
    response_model=DevTaskStatusResponse,
    summary="Change dev task status",
    description="Any status may follow any other. Blocking without a reason succeeds with a warning.",
)
async def patch_status(
    task_id: str,
    body: DevTaskStatusPatchDTO,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    result = await service.patch_dev_task_status(task_id, body.status, body.blocked_reason)
    return DevTaskStatusResponse(task=to_dev_task_response(result.task), warnings=result.warnings)


@router.put("/{task_id}/story-points", response_model=DevTaskResponse, summary="Set story points")
async def set_story_points(
    task_id: str,
    body: StoryPointsDTO,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    return to_dev_task_response(await service.set_story_points(task_id, body.story_points))


@router.put("/{task_id}/sprint", response_model=DevTaskResponse, summary="Plan a task into a sprint")
async def assign_to_sprint(
    task_id: str,
    body: SprintAssignDTO,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    return to_dev_task_response(await service.assign_to_sprint(task_id, body.sprint_id))


@router.post("/{task_id}/close", response_model=DevTaskResponse, summary="Close a dev task with a resolution")
async def close_dev_task(
    task_id: str,
    body: CloseDevTaskDTO,
    actor: Actor = Depends(require_internal_actor),
    service: DevTaskService = Depends(get_dev_task_service),
):
    return to_dev_task_response(await service.close_dev_task(task_id, body.resolution, body.note))
