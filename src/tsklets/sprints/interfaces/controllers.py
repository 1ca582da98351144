"""
Sprint Controllers (API Routes)
================================

FastAPI routes for sprint planning, capacity, retrospectives and
velocity metrics. Internal users only.

Controllers are thin - they delegate to application services.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.config import SprintStatus
from tsklets.core import Actor
from tsklets.dev_tasks.infrastructure import SQLAlchemyDevTaskRepository
from tsklets.dev_tasks.interfaces.controllers import to_dev_task_response
from tsklets.infrastructure.database import get_session
from tsklets.shared.api.dependencies import get_workflow_config, require_internal_actor
from tsklets.shared.infrastructure.workflow_config import IWorkflowConfigProvider
from tsklets.sprints.application import (
    BurndownResponse,
    CapacityDTO,
    CapacityResponse,
    RetroDTO,
    RetroResponse,
    SprintCompleteDTO,
    SprintCompletionResponse,
    SprintCreateDTO,
    SprintDetail,
    SprintDetailResponse,
    SprintPlannerService,
    SprintResponse,
    SprintUpdateDTO,
    VelocityPointResponse,
    VelocityTrendResponse,
)
from tsklets.sprints.domain import Sprint, SprintCapacity, SprintRetro
from tsklets.sprints.infrastructure import SQLAlchemySprintRepository

router = APIRouter(prefix="/sprints", tags=["Sprints"])


# ========== Dependencies ==========

async def get_sprint_service(
    session: AsyncSession = Depends(get_session),
    config_provider: IWorkflowConfigProvider = Depends(get_workflow_config),
) -> SprintPlannerService:
    """Get sprint planner service instance."""
    return SprintPlannerService(
        sprint_repository=SQLAlchemySprintRepository(session),
        task_repository=SQLAlchemyDevTaskRepository(session),
        config_provider=config_provider,
    )


def _sprint_response(sprint: Sprint) -> SprintResponse:
    return SprintResponse(
        id=sprint.id,
        name=sprint.name,
        start_date=sprint.start_date,
        end_date=sprint.end_date,
        status=sprint.status,
        goal=sprint.goal,
        velocity=sprint.velocity,
        created_at=sprint.created_at,
        updated_at=sprint.updated_at,
    )


def _capacity_response(capacity: SprintCapacity) -> CapacityResponse:
    return CapacityResponse(
        id=capacity.id,
        sprint_id=capacity.sprint_id,
        user_id=capacity.user_id,
        available_points=capacity.available_points,
    )


def _retro_response(retro: SprintRetro) -> RetroResponse:
    return RetroResponse(
        id=retro.id,
        sprint_id=retro.sprint_id,
        went_well=retro.went_well,
        improvements=retro.improvements,
        action_items=retro.action_items,
        created_at=retro.created_at,
        updated_at=retro.updated_at,
    )


def _detail_response(detail: SprintDetail) -> SprintDetailResponse:
    return SprintDetailResponse(
        sprint=_sprint_response(detail.sprint),
        tasks=[to_dev_task_response(t) for t in detail.tasks],
        capacities=[_capacity_response(c) for c in detail.capacities],
    )


# ========== Sprints ==========

@router.post(
    "",
    response_model=SprintResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a sprint",
    description="Starts in planning. The window is 14 days inclusive; the name defaults to e.g. Jan-I-26.",
)
async def create_sprint(
    body: SprintCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    sprint = await service.create_sprint(body.start_date, goal=body.goal, name=body.name)
    return _sprint_response(sprint)


@router.get("", response_model=List[SprintResponse], summary="List sprints")
async def list_sprints(
    status_filter: Optional[SprintStatus] = Query(default=None, alias="status"),
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    return [_sprint_response(s) for s in await service.list_sprints(status_filter)]


@router.get("/active", response_model=Optional[SprintDetailResponse], summary="The active sprint, or null")
async def get_active_sprint(
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    detail = await service.get_active_sprint()
    return _detail_response(detail) if detail else None


@router.get("/velocity", response_model=VelocityTrendResponse, summary="Velocity of recent completed sprints")
async def get_velocity_trend(
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    trend = await service.velocity_trend()
    return VelocityTrendResponse(
        sprints=[
            VelocityPointResponse(
                sprint_id=p.sprint_id,
                name=p.name,
                velocity=p.velocity,
                end_date=p.end_date,
                height_ratio=p.height_ratio,
            )
            for p in trend.points
        ],
        average=trend.average,
    )


@router.get("/{sprint_id}", response_model=SprintDetailResponse, summary="Sprint with tasks and capacity")
async def get_sprint(
    sprint_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    return _detail_response(await service.get_sprint(sprint_id))


@router.patch("/{sprint_id}", response_model=SprintResponse, summary="Rename a sprint or change its goal")
async def update_sprint(
    sprint_id: str,
    body: SprintUpdateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    return _sprint_response(await service.update_sprint(sprint_id, goal=body.goal, name=body.name))


# ========== Lifecycle ==========

@router.post(
    "/{sprint_id}/start",
    response_model=SprintResponse,
    summary="Start a sprint",
    description="409 when another sprint is already active.",
)
async def start_sprint(
    sprint_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    return _sprint_response(await service.start_sprint(sprint_id))


@router.post(
    "/{sprint_id}/complete",
    response_model=SprintCompletionResponse,
    summary="Complete the active sprint",
    description="Freezes velocity and moves unfinished tasks to the backlog, the next sprint, or a given sprint.",
)
async def complete_sprint(
    sprint_id: str,
    body: Optional[SprintCompleteDTO] = None,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    body = body or SprintCompleteDTO()
    result = await service.complete_sprint(sprint_id, body.move_incomplete_to)
    return SprintCompletionResponse(
        sprint=_sprint_response(result.sprint),
        total_tasks=result.total_tasks,
        completed_tasks=result.completed_tasks,
        incomplete_tasks=result.incomplete_tasks,
        velocity=result.velocity,
        moved_to_sprint_id=result.moved_to_sprint_id,
    )


@router.post("/{sprint_id}/cancel", response_model=SprintResponse, summary="Cancel a sprint")
async def cancel_sprint(
    sprint_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    return _sprint_response(await service.cancel_sprint(sprint_id))


# ========== Capacity ==========

@router.get("/{sprint_id}/capacity", response_model=List[CapacityResponse])
async def list_capacity(
    sprint_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    return [_capacity_response(c) for c in await service.list_capacities(sprint_id)]


@router.put("/{sprint_id}/capacity", response_model=CapacityResponse, summary="Set a person's capacity")
async def set_capacity(
    sprint_id: str,
    body: CapacityDTO,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    capacity = await service.set_capacity(sprint_id, body.user_id, body.available_points)
    return _capacity_response(capacity)


# ========== Retrospective ==========

@router.get("/{sprint_id}/retro", response_model=Optional[RetroResponse])
async def get_retro(
    sprint_id: str,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    retro = await service.get_retro(sprint_id)
    return _retro_response(retro) if retro else None


@router.put("/{sprint_id}/retro", response_model=RetroResponse, summary="Write or update the retrospective")
async def save_retro(
    sprint_id: str,
    body: RetroDTO,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    retro = await service.save_retro(
        sprint_id,
        went_well=body.went_well,
        improvements=body.improvements,
        action_items=body.action_items,
    )
    return _retro_response(retro)


# ========== Metrics ==========

@router.get("/{sprint_id}/burndown", response_model=BurndownResponse)
async def get_burndown(
    sprint_id: str,
    today: Optional[date] = None,
    actor: Actor = Depends(require_internal_actor),
    service: SprintPlannerService = Depends(get_sprint_service),
):
    result = await service.burndown(sprint_id, today)
    return BurndownResponse(
        total_points=result.total_points,
        completed_points=result.completed_points,
        remaining_points=result.remaining_points,
        ideal_remaining=result.ideal_remaining,
        total_days=result.total_days,
        elapsed_days=result.elapsed_days,
        start_date=result.start_date,
        end_date=result.end_date,
    )
