"""
Dev Task Infrastructure Repositories
=====================================

SQLAlchemy implementations of the dev task repository and of the
read-only lookup the tickets context uses.
"""

from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.config import DevTaskStatus, DevTaskType, Resolution
from tsklets.core import RepositoryException
from tsklets.dev_tasks.application import DevTaskFilter, IDevTaskRepository
from tsklets.dev_tasks.domain import DevTask, RoleAssignment
from tsklets.dev_tasks.infrastructure.models import DevTaskModel
from tsklets.infrastructure.database import from_uuid, to_uuid
from tsklets.shared.infrastructure.clock import as_utc
from tsklets.tickets.application import IDevTaskLookup, LinkedDevTask


def _to_entity(model: DevTaskModel) -> DevTask:
    return DevTask(
        id=from_uuid(model.id),
        issue_key=model.issue_key,
        product_id=from_uuid(model.product_id),
        type=DevTaskType(model.type),
        status=DevTaskStatus(model.status),
        title=model.title,
        description=model.description,
        priority=model.priority,
        created_by=model.created_by,
        roles=RoleAssignment(
            implementor_id=model.implementor_id,
            developer_id=model.developer_id,
            tester_id=model.tester_id,
        ),
        module_id=from_uuid(model.module_id),
        component_id=from_uuid(model.component_id),
        addon_id=from_uuid(model.addon_id),
        feature_id=from_uuid(model.feature_id),
        support_ticket_id=from_uuid(model.support_ticket_id),
        sprint_id=from_uuid(model.sprint_id),
        story_points=model.story_points,
        blocked_reason=model.blocked_reason,
        resolution=Resolution(model.resolution) if model.resolution else None,
        resolution_note=model.resolution_note,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        closed_at=as_utc(model.closed_at),
    )


def _copy_to_model(task: DevTask, model: DevTaskModel) -> None:
    model.status = task.status.value
    model.title = task.title
    model.description = task.description
    model.priority = task.priority
    model.implementor_id = task.roles.implementor_id
    model.developer_id = task.roles.developer_id
    model.tester_id = task.roles.tester_id
    model.module_id = to_uuid(task.module_id)
    model.component_id = to_uuid(task.component_id)
    model.addon_id = to_uuid(task.addon_id)
    model.feature_id = to_uuid(task.feature_id)
    model.sprint_id = to_uuid(task.sprint_id)
    model.story_points = task.story_points
    model.blocked_reason = task.blocked_reason
    model.resolution = task.resolution.value if task.resolution else None
    model.resolution_note = task.resolution_note
    model.updated_at = task.updated_at
    model.closed_at = task.closed_at


class SQLAlchemyDevTaskRepository(IDevTaskRepository):
    """
    SQLAlchemy implementation of dev task repository.

    Handles persistence of DevTask entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, task_id: Optional[str]) -> Optional[DevTaskModel]:
        key = to_uuid(task_id)
        if key is None:
            return None
        return await self._session.get(DevTaskModel, key)

    async def add(self, task: DevTask) -> DevTask:
        model = DevTaskModel(
            issue_key=task.issue_key,
            product_id=to_uuid(task.product_id),
            type=task.type.value,
            created_by=task.created_by,
            support_ticket_id=to_uuid(task.support_ticket_id),
            created_at=task.created_at,
        )
        _copy_to_model(task, model)

        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def get(self, task_id: str) -> Optional[DevTask]:
        model = await self._get_model(task_id)
        return _to_entity(model) if model else None

    async def update(self, task: DevTask) -> DevTask:
        model = await self._get_model(task.id)
        if not model:
            raise RepositoryException(f"Dev task {task.id} not found")

        _copy_to_model(task, model)
        await self._session.flush()
        return _to_entity(model)

    async def list(self, filters: DevTaskFilter) -> List[DevTask]:
        stmt = select(DevTaskModel)

        if filters.status is not None:
            stmt = stmt.where(DevTaskModel.status == DevTaskStatus(filters.status).value)
        if filters.type is not None:
            stmt = stmt.where(DevTaskModel.type == DevTaskType(filters.type).value)
        if filters.product_id is not None:
            stmt = stmt.where(DevTaskModel.product_id == to_uuid(filters.product_id))
        if filters.sprint_id is not None:
            stmt = stmt.where(DevTaskModel.sprint_id == to_uuid(filters.sprint_id))
        if filters.backlog_only:
            stmt = stmt.where(DevTaskModel.sprint_id.is_(None))
        if filters.support_ticket_id is not None:
            stmt = stmt.where(DevTaskModel.support_ticket_id == to_uuid(filters.support_ticket_id))
        if filters.assignee_id is not None:
            stmt = stmt.where(or_(
                DevTaskModel.implementor_id == filters.assignee_id,
                DevTaskModel.developer_id == filters.assignee_id,
                DevTaskModel.tester_id == filters.assignee_id,
            ))

        stmt = (
            stmt.order_by(DevTaskModel.created_at.desc(), DevTaskModel.issue_key.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def list_by_sprint(self, sprint_id: str) -> List[DevTask]:
        key = to_uuid(sprint_id)
        if key is None:
            return []
        stmt = select(DevTaskModel).where(DevTaskModel.sprint_id == key).order_by(DevTaskModel.created_at)
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]


class SQLAlchemyDevTaskLookup(IDevTaskLookup):
    """Dev task summaries shown on a ticket's detail view."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_for_ticket(self, ticket_id: str) -> List[LinkedDevTask]:
        key = to_uuid(ticket_id)
        if key is None:
            return []
        stmt = (
            select(DevTaskModel)
            .where(DevTaskModel.support_ticket_id == key)
            .order_by(DevTaskModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [
            LinkedDevTask(
                id=from_uuid(m.id),
                issue_key=m.issue_key,
                title=m.title,
                type=m.type,
                status=m.status,
            )
            for m in result.scalars().all()
        ]
