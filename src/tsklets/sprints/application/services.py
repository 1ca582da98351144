"""
Sprint Application Services
============================

Sprint lifecycle, capacity, retrospectives and velocity read models.

Following SOLID principles:
- Single Responsibility: SprintPlannerService handles sprint planning only
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from tsklets.config import IncompleteTaskPolicy, SprintStatus
from tsklets.core import ConflictException, ResourceNotFoundException, ValidationException
from tsklets.dev_tasks.application import IDevTaskRepository
from tsklets.dev_tasks.domain import DevTask
from tsklets.shared.infrastructure.clock import utcnow
from tsklets.shared.infrastructure.logging import get_logger
from tsklets.shared.infrastructure.workflow_config import IWorkflowConfigProvider
from tsklets.sprints.domain import (
    Burndown,
    Sprint,
    SprintCapacity,
    SprintRetro,
    VelocityTrend,
    burndown,
    calculate_end_date,
    compute_velocity,
    generate_sprint_name,
    velocity_trend,
)

logger = get_logger(__name__)


@dataclass
class SprintDetail:
    sprint: Sprint
    tasks: List[DevTask] = field(default_factory=list)
    capacities: List[SprintCapacity] = field(default_factory=list)


@dataclass
class SprintCompletion:
    sprint: Sprint
    total_tasks: int
    completed_tasks: int
    incomplete_tasks: int
    velocity: int
    moved_to_sprint_id: Optional[str] = None


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISprintRepository(ABC):
    """Interface for sprint data access."""

    @abstractmethod
    async def add(self, sprint: Sprint) -> Sprint:
        """Persist a new sprint."""

    @abstractmethod
    async def get(self, sprint_id: str) -> Optional[Sprint]:
        """Get sprint by id."""

    @abstractmethod
    async def update(self, sprint: Sprint) -> Sprint:
        """
        Write back the sprint.

        Raises:
            ConflictException: when the write would leave two active sprints
        """

    @abstractmethod
    async def list(self, status: Optional[SprintStatus] = None) -> List[Sprint]:
        """Sprints, latest start date first."""

    @abstractmethod
    async def get_active(self) -> Optional[Sprint]:
        """The active sprint, if any."""

    @abstractmethod
    async def next_planning(self, exclude_id: Optional[str] = None) -> Optional[Sprint]:
        """Earliest-starting sprint still in planning."""

    @abstractmethod
    async def list_capacities(self, sprint_id: str) -> List[SprintCapacity]:
        """Capacity rows of a sprint."""

    @abstractmethod
    async def save_capacity(self, capacity: SprintCapacity) -> SprintCapacity:
        """Insert or update the (sprint, user) capacity row."""

    @abstractmethod
    async def get_retro(self, sprint_id: str) -> Optional[SprintRetro]:
        """Retrospective of a sprint, if written."""

    @abstractmethod
    async def save_retro(self, retro: SprintRetro) -> SprintRetro:
        """Insert or update the sprint's retrospective."""


# ========== Application Services ==========

class SprintPlannerService:
    """
    Service for sprint planning.

    At most one sprint is active at a time. The check here gives the
    caller a clear error; the repository's unique index catches the
    concurrent case.
    """

    def __init__(
        self,
        sprint_repository: ISprintRepository,
        task_repository: IDevTaskRepository,
        config_provider: IWorkflowConfigProvider,
    ):
        self._sprints = sprint_repository
        self._tasks = task_repository
        self._config_provider = config_provider

    @property
    def _settings(self):
        return self._config_provider.get_config().sprints

    async def _load(self, sprint_id: str) -> Sprint:
        sprint = await self._sprints.get(sprint_id)
        if not sprint:
            raise ResourceNotFoundException("Sprint", sprint_id)
        return sprint

    async def create_sprint(
        self,
        start_date: date,
        goal: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Sprint:
        """New sprint in planning; the name is derived from the start date unless given."""
        now = utcnow()
        sprint = Sprint(
            id=None,
            name=name.strip() if name and name.strip() else generate_sprint_name(start_date),
            start_date=start_date,
            end_date=calculate_end_date(start_date, self._settings.length_days),
            status=SprintStatus.PLANNING,
            goal=goal,
            created_at=now,
            updated_at=now,
        )
        sprint = await self._sprints.add(sprint)

        logger.info(
            "Sprint created",
            extra={"sprint_id": sprint.id, "sprint_name": sprint.name, "start_date": str(start_date)}
        )
        return sprint

    async def start_sprint(self, sprint_id: str) -> Sprint:
        """
        planning → active.

        Raises:
            ConflictException: another sprint is active, or this one is not in planning
        """
        sprint = await self._load(sprint_id)
        if sprint.status != SprintStatus.PLANNING:
            raise ConflictException(
                "Can only start sprints in planning status",
                {"sprint_id": sprint.id, "status": sprint.status.value}
            )

        active = await self._sprints.get_active()
        if active:
            logger.warning(
                "Sprint start rejected",
                extra={"sprint_id": sprint.id, "active_sprint_id": active.id}
            )
            raise ConflictException(
                "Another sprint is already active. Complete it first.",
                {"active_sprint_id": active.id}
            )

        sprint.status = SprintStatus.ACTIVE
        sprint.updated_at = utcnow()
        sprint = await self._sprints.update(sprint)

        logger.info("Sprint started", extra={"sprint_id": sprint.id, "sprint_name": sprint.name})
        return sprint

    async def _resolve_target(
        self,
        sprint: Sprint,
        move_incomplete_to: Union[IncompleteTaskPolicy, str],
    ) -> Optional[str]:
        if move_incomplete_to in (IncompleteTaskPolicy.BACKLOG, IncompleteTaskPolicy.BACKLOG.value):
            return None

        if move_incomplete_to in (IncompleteTaskPolicy.NEXT, IncompleteTaskPolicy.NEXT.value):
            following = await self._sprints.next_planning(exclude_id=sprint.id)
            return following.id if following else None

        target = await self._sprints.get(move_incomplete_to)
        if not target:
            raise ResourceNotFoundException("Sprint", move_incomplete_to)
        if target.id == sprint.id or target.status != SprintStatus.PLANNING:
            raise ValidationException("Incomplete tasks can only move to a sprint in planning status")
        return target.id

    async def complete_sprint(
        self,
        sprint_id: str,
        move_incomplete_to: Union[IncompleteTaskPolicy, str] = IncompleteTaskPolicy.BACKLOG,
    ) -> SprintCompletion:
        """
        active → completed.

        Velocity is computed from the tasks bound right now and never
        recomputed. Unfinished tasks keep their status and move to the
        backlog, the next planning sprint, or the given sprint.
        """
        sprint = await self._load(sprint_id)
        if sprint.status != SprintStatus.ACTIVE:
            raise ConflictException(
                "Can only complete active sprints",
                {"sprint_id": sprint.id, "status": sprint.status.value}
            )

        tasks = await self._tasks.list_by_sprint(sprint.id)
        velocity = compute_velocity(tasks)
        incomplete = [t for t in tasks if not t.is_done]

        target_id = await self._resolve_target(sprint, move_incomplete_to) if incomplete else None
        now = utcnow()
        for task in incomplete:
            task.sprint_id = target_id
            task.updated_at = now
            await self._tasks.update(task)

        sprint.status = SprintStatus.COMPLETED
        sprint.velocity = velocity
        sprint.updated_at = now
        sprint = await self._sprints.update(sprint)

        completion = SprintCompletion(
            sprint=sprint,
            total_tasks=len(tasks),
            completed_tasks=len(tasks) - len(incomplete),
            incomplete_tasks=len(incomplete),
            velocity=velocity,
            moved_to_sprint_id=target_id,
        )
        logger.info(
            "Sprint completed",
            extra={
                "sprint_id": sprint.id,
                "velocity": velocity,
                "incomplete_tasks": completion.incomplete_tasks,
                "moved_to_sprint_id": target_id,
            }
        )
        return completion

    async def cancel_sprint(self, sprint_id: str) -> Sprint:
        """planning/active → cancelled; every bound task returns to the backlog."""
        sprint = await self._load(sprint_id)
        if not sprint.is_open:
            raise ConflictException(
                "Only planning or active sprints can be cancelled",
                {"sprint_id": sprint.id, "status": sprint.status.value}
            )

        now = utcnow()
        for task in await self._tasks.list_by_sprint(sprint.id):
            task.sprint_id = None
            task.updated_at = now
            await self._tasks.update(task)

        sprint.status = SprintStatus.CANCELLED
        sprint.updated_at = now
        sprint = await self._sprints.update(sprint)

        logger.info("Sprint cancelled", extra={"sprint_id": sprint.id})
        return sprint

    async def update_sprint(
        self,
        sprint_id: str,
        goal: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Sprint:
        sprint = await self._load(sprint_id)
        if name is not None:
            if not name.strip():
                raise ValidationException("Sprint name cannot be empty")
            sprint.name = name.strip()
        if goal is not None:
            sprint.goal = goal
        sprint.updated_at = utcnow()
        return await self._sprints.update(sprint)

    async def get_sprint(self, sprint_id: str) -> SprintDetail:
        sprint = await self._load(sprint_id)
        return SprintDetail(
            sprint=sprint,
            tasks=await self._tasks.list_by_sprint(sprint.id),
            capacities=await self._sprints.list_capacities(sprint.id),
        )

    async def get_active_sprint(self) -> Optional[SprintDetail]:
        sprint = await self._sprints.get_active()
        if not sprint:
            return None
        return await self.get_sprint(sprint.id)

    async def list_sprints(self, status: Optional[Union[SprintStatus, str]] = None) -> List[Sprint]:
        if status is not None:
            try:
                status = SprintStatus(status)
            except ValueError:
                valid = ", ".join(s.value for s in SprintStatus)
                raise ValidationException(f"Invalid status: {status}. Valid statuses: {valid}")
        return await self._sprints.list(status)

    # ========== Capacity ==========

    async def set_capacity(
        self,
        sprint_id: str,
        user_id: int,
        available_points: Optional[int] = None,
    ) -> SprintCapacity:
        sprint = await self._load(sprint_id)
        if available_points is None:
            available_points = self._settings.default_capacity_points
        if available_points < 0:
            raise ValidationException("Available points cannot be negative")

        return await self._sprints.save_capacity(
            SprintCapacity(id=None, sprint_id=sprint.id, user_id=user_id, available_points=available_points)
        )

    async def list_capacities(self, sprint_id: str) -> List[SprintCapacity]:
        sprint = await self._load(sprint_id)
        return await self._sprints.list_capacities(sprint.id)

    # ========== Retrospective ==========

    async def save_retro(
        self,
        sprint_id: str,
        went_well: Optional[str] = None,
        improvements: Optional[str] = None,
        action_items: Optional[str] = None,
    ) -> SprintRetro:
        """Create the retrospective, or update it; omitted fields keep their value."""
        sprint = await self._load(sprint_id)
        now = utcnow()

        retro = await self._sprints.get_retro(sprint.id)
        if retro is None:
            retro = SprintRetro(id=None, sprint_id=sprint.id, created_at=now, updated_at=now)

        if went_well is not None:
            retro.went_well = went_well
        if improvements is not None:
            retro.improvements = improvements
        if action_items is not None:
            retro.action_items = action_items
        retro.updated_at = now

        return await self._sprints.save_retro(retro)

    async def get_retro(self, sprint_id: str) -> Optional[SprintRetro]:
        sprint = await self._load(sprint_id)
        return await self._sprints.get_retro(sprint.id)

    # ========== Metrics ==========

    async def burndown(self, sprint_id: str, today: Optional[date] = None) -> Burndown:
        sprint = await self._load(sprint_id)
        tasks = await self._tasks.list_by_sprint(sprint.id)
        return burndown(sprint, tasks, today)

    async def velocity_trend(self) -> VelocityTrend:
        completed = await self._sprints.list(SprintStatus.COMPLETED)
        return velocity_trend(completed, self._settings.velocity_history)
