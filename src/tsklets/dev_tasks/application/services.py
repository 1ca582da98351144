"""
Dev Task Application Services
==============================

Dev task use cases and the ticket-to-dev-task conversion.

Following SOLID principles:
- Single Responsibility: DevTaskService manages tasks, DevTaskConversionService
  owns the one cross-context write (ticket + task)
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from tsklets.catalog.application import CatalogService, IssueKeyService
from tsklets.catalog.domain import DefaultTeam
from tsklets.config import DevTaskStatus, DevTaskType, Resolution, SprintStatus, TicketAction, TicketEventType
from tsklets.core import (
    Actor,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from tsklets.dev_tasks.domain import (
    DevTask,
    apply_dev_task_status,
    close,
    require_roles,
    validate_priority,
    validate_story_points,
)
from tsklets.shared.infrastructure.clock import utcnow
from tsklets.shared.infrastructure.logging import get_logger
from tsklets.tickets.application import ITicketActivityRepository, ITicketRepository, can_view
from tsklets.tickets.domain import TicketEvent, require_action, start_work_for_dev_task

logger = get_logger(__name__)


# ========== Inputs and results ==========

@dataclass
class DevTaskInput:
    """
    Fields for a new dev task.

    Role ids are optional here so that a missing role is reported with
    the specific message rather than a type error.
    """
    title: Optional[str] = None
    type: Union[DevTaskType, str] = DevTaskType.TASK
    implementor_id: Optional[int] = None
    developer_id: Optional[int] = None
    tester_id: Optional[int] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    story_points: Optional[int] = None
    module_id: Optional[str] = None
    component_id: Optional[str] = None
    addon_id: Optional[str] = None
    feature_id: Optional[str] = None


@dataclass
class DevTaskFilter:
    status: Optional[DevTaskStatus] = None
    type: Optional[DevTaskType] = None
    product_id: Optional[str] = None
    sprint_id: Optional[str] = None
    backlog_only: bool = False
    support_ticket_id: Optional[str] = None
    assignee_id: Optional[int] = None
    limit: int = 100
    offset: int = 0


@dataclass
class StatusUpdateResult:
    task: DevTask
    warnings: List[str] = field(default_factory=list)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IDevTaskRepository(ABC):
    """Interface for dev task data access."""

    @abstractmethod
    async def add(self, task: DevTask) -> DevTask:
        """Persist a new task and return it with its id."""

    @abstractmethod
    async def get(self, task_id: str) -> Optional[DevTask]:
        """Get task by id."""

    @abstractmethod
    async def update(self, task: DevTask) -> DevTask:
        """Write back every mutable field of the task."""

    @abstractmethod
    async def list(self, filters: DevTaskFilter) -> List[DevTask]:
        """List tasks, newest first."""

    @abstractmethod
    async def list_by_sprint(self, sprint_id: str) -> List[DevTask]:
        """Tasks currently bound to a sprint."""


class ISprintLookup(ABC):
    """Read-only sprint access needed to plan tasks into sprints."""

    @abstractmethod
    async def get_status(self, sprint_id: str) -> Optional[SprintStatus]:
        """Status of the sprint, None when it does not exist."""


# ========== Application Services ==========

class DevTaskService:
    """Service for dev task management."""

    def __init__(
        self,
        task_repository: IDevTaskRepository,
        catalog_service: CatalogService,
        issue_keys: IssueKeyService,
        sprint_lookup: Optional[ISprintLookup] = None,
    ):
        self._tasks = task_repository
        self._catalog = catalog_service
        self._issue_keys = issue_keys
        self._sprints = sprint_lookup

    async def _load(self, task_id: str) -> DevTask:
        task = await self._tasks.get(task_id)
        if not task:
            raise ResourceNotFoundException("DevTask", task_id)
        return task

    async def build_task(
        self,
        product_id: str,
        data: DevTaskInput,
        actor: Actor,
        support_ticket_id: Optional[str] = None,
    ) -> DevTask:
        """
        Validate `data` and persist a new task.

        All checks run before the issue key is allocated.
        """
        roles = require_roles(data.implementor_id, data.developer_id, data.tester_id)
        if not data.title or not data.title.strip():
            raise ValidationException("Title is required")

        try:
            task_type = DevTaskType(data.type)
        except ValueError:
            raise ValidationException(f"Invalid dev task type: {data.type}. Valid types: task, bug")

        validate_story_points(data.story_points)
        priority = validate_priority(data.priority)

        await self._catalog.get_product(product_id)
        await self._catalog.validate_structure(
            product_id=product_id,
            module_id=data.module_id,
            component_id=data.component_id,
            addon_id=data.addon_id,
            feature_id=data.feature_id,
        )

        issue_key = await self._issue_keys.next_dev_task_key(product_id, task_type)
        now = utcnow()
        task = DevTask(
            id=None,
            issue_key=issue_key,
            product_id=product_id,
            type=task_type,
            status=DevTaskStatus.TODO,
            title=data.title.strip(),
            roles=roles,
            created_at=now,
            updated_at=now,
            description=data.description,
            created_by=actor.user_id,
            module_id=data.module_id,
            component_id=data.component_id,
            addon_id=data.addon_id,
            feature_id=data.feature_id,
            support_ticket_id=support_ticket_id,
            story_points=data.story_points,
        )
        if priority is not None:
            task.priority = priority

        return await self._tasks.add(task)

    async def create_dev_task(self, product_id: str, data: DevTaskInput, actor: Actor) -> DevTask:
        """Create a standalone task (no originating ticket)."""
        if not actor.is_internal:
            raise PermissionDeniedException("Only internal users can create dev tasks")

        task = await self.build_task(product_id, data, actor)
        logger.info(
            "Dev task created",
            extra={"dev_task_id": task.id, "issue_key": task.issue_key, "actor_id": actor.user_id}
        )
        return task

    async def get_dev_task(self, task_id: str) -> DevTask:
        return await self._load(task_id)

    async def list_dev_tasks(self, filters: Optional[DevTaskFilter] = None) -> List[DevTask]:
        return await self._tasks.list(filters or DevTaskFilter())

    async def list_backlog(self, product_id: Optional[str] = None) -> List[DevTask]:
        """Unfinished tasks not bound to any sprint."""
        tasks = await self._tasks.list(DevTaskFilter(product_id=product_id, backlog_only=True, limit=1000))
        return [t for t in tasks if not t.is_done]

    async def patch_dev_task_status(
        self,
        task_id: str,
        new_status: Union[DevTaskStatus, str],
        blocked_reason: Optional[str] = None,
    ) -> StatusUpdateResult:
        task = await self._load(task_id)
        previous = task.status

        warnings = apply_dev_task_status(task, new_status, blocked_reason)
        task = await self._tasks.update(task)

        logger.info(
            "Dev task status changed",
            extra={
                "dev_task_id": task.id,
                "issue_key": task.issue_key,
                "from_status": previous.value,
                "to_status": task.status.value,
                "warnings": warnings,
            }
        )
        return StatusUpdateResult(task=task, warnings=warnings)

    async def set_story_points(self, task_id: str, points: Optional[int]) -> DevTask:
        validate_story_points(points)
        task = await self._load(task_id)
        task.story_points = points
        task.updated_at = utcnow()
        return await self._tasks.update(task)

    async def assign_to_sprint(self, task_id: str, sprint_id: Optional[str]) -> DevTask:
        """Bind a task to a planning/active sprint, or back to the backlog with None."""
        task = await self._load(task_id)

        if sprint_id is not None:
            status = await self._sprints.get_status(sprint_id) if self._sprints else None
            if status is None:
                raise ResourceNotFoundException("Sprint", sprint_id)
            if status not in (SprintStatus.PLANNING, SprintStatus.ACTIVE):
                raise ValidationException(
                    f"Tasks can only be added to planning or active sprints, sprint is {status.value}"
                )

        task.sprint_id = sprint_id
        task.updated_at = utcnow()
        task = await self._tasks.update(task)

        logger.info(
            "Dev task planned",
            extra={"dev_task_id": task.id, "issue_key": task.issue_key, "sprint_id": sprint_id}
        )
        return task

    async def close_dev_task(
        self,
        task_id: str,
        resolution: Union[Resolution, str],
        note: Optional[str] = None,
    ) -> DevTask:
        task = await self._load(task_id)
        close(task, resolution, note)
        task = await self._tasks.update(task)

        logger.info(
            "Dev task closed",
            extra={"dev_task_id": task.id, "issue_key": task.issue_key, "resolution": task.resolution.value}
        )
        return task


class DevTaskConversionService:
    """
    Turns a ticket into a dev task.

    The task insert and the ticket update happen in the caller's
    transaction, so they are persisted together or not at all.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        activity_repository: ITicketActivityRepository,
        task_service: DevTaskService,
        catalog_service: CatalogService,
    ):
        self._tickets = ticket_repository
        self._activity = activity_repository
        self._task_service = task_service
        self._catalog = catalog_service

    async def conversion_defaults(self, ticket_id: str, actor: Actor) -> DefaultTeam:
        """Default implementor/developer/tester of the ticket's product, for pre-filling."""
        ticket = await self._tickets.get(ticket_id)
        if not ticket or not can_view(ticket, actor):
            raise ResourceNotFoundException("Ticket", ticket_id)
        return await self._catalog.default_roles(ticket.product_id)

    async def convert_ticket_to_dev_task(self, ticket_id: str, data: DevTaskInput, actor: Actor) -> DevTask:
        """
        Create a dev task bound to the ticket; the ticket moves to
        in_progress and is assigned to the implementor.

        A ticket may be converted more than once; each call creates a
        new task.

        Raises:
            PermissionDeniedException: client actor, or ticket status does not allow it
            ValidationException: missing role, bad type or points
            ResourceNotFoundException: unknown ticket or product structure
        """
        if not actor.is_internal:
            raise PermissionDeniedException("Only internal users can create dev tasks")

        ticket = await self._tickets.get(ticket_id)
        if not ticket:
            raise ResourceNotFoundException("Ticket", ticket_id)

        require_action(TicketAction.CREATE_DEV_TASK, ticket.status, actor, has_client=ticket.has_client)

        # Blank fields fall back to the ticket's own text
        data = replace(
            data,
            title=data.title if data.title and data.title.strip() else ticket.title,
            description=data.description if data.description is not None else ticket.description,
        )

        try:
            task = await self._task_service.build_task(ticket.product_id, data, actor, support_ticket_id=ticket.id)
        except ValidationException as e:
            logger.warning(
                "Dev task conversion rejected",
                extra={"ticket_id": ticket.id, "issue_key": ticket.issue_key, "reason": e.message}
            )
            raise

        now = utcnow()
        change = start_work_for_dev_task(ticket, task.implementor_id, now)
        await self._tickets.update(ticket)
        await self._activity.add_event(
            TicketEvent(
                id=None,
                ticket_id=ticket.id,
                event_type=TicketEventType.DEV_TASK_CREATED,
                actor_id=actor.user_id,
                created_at=now,
                from_status=change.from_status,
                to_status=change.to_status,
                note=task.issue_key,
            )
        )

        logger.info(
            "Ticket converted to dev task",
            extra={
                "ticket_id": ticket.id,
                "issue_key": ticket.issue_key,
                "dev_task_id": task.id,
                "dev_task_key": task.issue_key,
                "from_status": change.from_status.value,
                "to_status": change.to_status.value,
                "actor_id": actor.user_id,
            }
        )
        return task
