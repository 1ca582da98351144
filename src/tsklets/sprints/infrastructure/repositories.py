"""
Sprint Infrastructure Repositories
===================================

SQLAlchemy implementations of the sprint repository and of the sprint
lookup used by the dev tasks context.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.config import SprintStatus
from tsklets.core import ConflictException, RepositoryException
from tsklets.dev_tasks.application import ISprintLookup
from tsklets.infrastructure.database import from_uuid, to_uuid
from tsklets.shared.infrastructure.clock import as_utc
from tsklets.sprints.application import ISprintRepository
from tsklets.sprints.domain import Sprint, SprintCapacity, SprintRetro
from tsklets.sprints.infrastructure.models import SprintCapacityModel, SprintModel, SprintRetroModel


def _to_entity(model: SprintModel) -> Sprint:
    return Sprint(
        id=from_uuid(model.id),
        name=model.name,
        goal=model.goal,
        start_date=model.start_date,
        end_date=model.end_date,
        status=SprintStatus(model.status),
        velocity=model.velocity,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
    )


def _capacity(model: SprintCapacityModel) -> SprintCapacity:
    return SprintCapacity(
        id=str(model.id),
        sprint_id=from_uuid(model.sprint_id),
        user_id=model.user_id,
        available_points=model.available_points,
    )


def _retro(model: SprintRetroModel) -> SprintRetro:
    return SprintRetro(
        id=str(model.id),
        sprint_id=from_uuid(model.sprint_id),
        went_well=model.went_well,
        improvements=model.improvements,
        action_items=model.action_items,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
    )


class SQLAlchemySprintRepository(ISprintRepository):
    """
    SQLAlchemy implementation of sprint repository.

    Handles persistence of Sprint entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, sprint_id: Optional[str]) -> Optional[SprintModel]:
        key = to_uuid(sprint_id)
        if key is None:
            return None
        return await self._session.get(SprintModel, key)

    async def _flush(self, sprint_id: Optional[str]) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            # Only the single-active index can fail on a sprint row
            raise ConflictException(
                "Another sprint is already active. Complete it first.",
                {"sprint_id": sprint_id}
            ) from e

    async def add(self, sprint: Sprint) -> Sprint:
        model = SprintModel(
            name=sprint.name,
            goal=sprint.goal,
            start_date=sprint.start_date,
            end_date=sprint.end_date,
            status=sprint.status.value,
            velocity=sprint.velocity,
            created_at=sprint.created_at,
            updated_at=sprint.updated_at,
        )
        self._session.add(model)
        await self._flush(None)
        return _to_entity(model)

    async def get(self, sprint_id: str) -> Optional[Sprint]:
        model = await self._get_model(sprint_id)
        return _to_entity(model) if model else None

    async def update(self, sprint: Sprint) -> Sprint:
        model = await self._get_model(sprint.id)
        if not model:
            raise RepositoryException(f"Sprint {sprint.id} not found")

        model.name = sprint.name
        model.goal = sprint.goal
        model.start_date = sprint.start_date
        model.end_date = sprint.end_date
        model.status = sprint.status.value
        model.velocity = sprint.velocity
        model.updated_at = sprint.updated_at

        await self._flush(sprint.id)
        return _to_entity(model)

    async def list(self, status: Optional[SprintStatus] = None) -> List[Sprint]:
        stmt = select(SprintModel)
        if status is not None:
            stmt = stmt.where(SprintModel.status == SprintStatus(status).value)
        stmt = stmt.order_by(SprintModel.start_date.desc(), SprintModel.created_at.desc())

        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def get_active(self) -> Optional[Sprint]:
        stmt = select(SprintModel).where(SprintModel.status == SprintStatus.ACTIVE.value).limit(1)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def next_planning(self, exclude_id: Optional[str] = None) -> Optional[Sprint]:
        stmt = select(SprintModel).where(SprintModel.status == SprintStatus.PLANNING.value)
        excluded = to_uuid(exclude_id)
        if excluded is not None:
            stmt = stmt.where(SprintModel.id != excluded)
        stmt = stmt.order_by(SprintModel.start_date, SprintModel.created_at).limit(1)

        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    # ========== Capacity ==========

    async def list_capacities(self, sprint_id: str) -> List[SprintCapacity]:
        stmt = (
            select(SprintCapacityModel)
            .where(SprintCapacityModel.sprint_id == to_uuid(sprint_id))
            .order_by(SprintCapacityModel.user_id)
        )
        result = await self._session.execute(stmt)
        return [_capacity(m) for m in result.scalars().all()]

    async def save_capacity(self, capacity: SprintCapacity) -> SprintCapacity:
        stmt = select(SprintCapacityModel).where(
            SprintCapacityModel.sprint_id == to_uuid(capacity.sprint_id),
            SprintCapacityModel.user_id == capacity.user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            model = SprintCapacityModel(sprint_id=to_uuid(capacity.sprint_id), user_id=capacity.user_id)
            self._session.add(model)
        model.available_points = capacity.available_points

        await self._session.flush()
        return _capacity(model)

    # ========== Retrospective ==========

    async def _get_retro_model(self, sprint_id: str) -> Optional[SprintRetroModel]:
        stmt = select(SprintRetroModel).where(SprintRetroModel.sprint_id == to_uuid(sprint_id))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_retro(self, sprint_id: str) -> Optional[SprintRetro]:
        model = await self._get_retro_model(sprint_id)
        return _retro(model) if model else None

    async def save_retro(self, retro: SprintRetro) -> SprintRetro:
        model = await self._get_retro_model(retro.sprint_id)
        if model is None:
            model = SprintRetroModel(sprint_id=to_uuid(retro.sprint_id), created_at=retro.created_at)
            self._session.add(model)

        model.went_well = retro.went_well
        model.improvements = retro.improvements
        model.action_items = retro.action_items
        model.updated_at = retro.updated_at

        await self._session.flush()
        return _retro(model)


class SQLAlchemySprintLookup(ISprintLookup):
    """Sprint status for planning dev tasks."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_status(self, sprint_id: str) -> Optional[SprintStatus]:
        key = to_uuid(sprint_id)
        if key is None:
            return None
        result = await self._session.execute(select(SprintModel.status).where(SprintModel.id == key))
        value = result.scalar_one_or_none()
        return SprintStatus(value) if value is not None else None
