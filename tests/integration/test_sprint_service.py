# tests/integration/test_sprint_service.py
"""
Sprint planning use cases against a real (SQLite) database.
"""

from datetime import date

import pytest

from tsklets.config import DevTaskStatus, IncompleteTaskPolicy, SprintStatus
from tsklets.core import ConflictException, ResourceNotFoundException, ValidationException
from tsklets.dev_tasks.application import DevTaskInput

from tests.conftest import ADMIN

TEAM = dict(implementor_id=10, developer_id=11, tester_id=12)


async def _planned_task(services, product, sprint_id, points, status=None):
    task = await services.dev_tasks.create_dev_task(
        product.id, DevTaskInput(title=f"{points} pts", story_points=points, **TEAM), ADMIN
    )
    await services.dev_tasks.assign_to_sprint(task.id, sprint_id)
    if status is not None:
        await services.dev_tasks.patch_dev_task_status(task.id, status)
    return task


class TestCreateSprint:

    async def test_name_and_window(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 1, 10), goal="Stabilize billing")
        assert sprint.name == "Jan-I-26"
        assert sprint.end_date == date(2026, 1, 23)
        assert sprint.status == SprintStatus.PLANNING
        assert sprint.velocity is None

    async def test_explicit_name(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 1, 20), name="  Hardening  ")
        assert sprint.name == "Hardening"

    async def test_rename_rejects_blank(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 1, 20))
        with pytest.raises(ValidationException):
            await services.sprints.update_sprint(sprint.id, name=" ")


class TestSingleActiveSprint:
    """Only one sprint may be active at a time."""

    async def test_second_start_conflicts_until_first_completes(self, services):
        first = await services.sprints.create_sprint(date(2026, 2, 2))
        second = await services.sprints.create_sprint(date(2026, 2, 16))

        started = await services.sprints.start_sprint(first.id)
        assert started.status == SprintStatus.ACTIVE

        with pytest.raises(ConflictException) as exc_info:
            await services.sprints.start_sprint(second.id)
        assert exc_info.value.message == "Another sprint is already active. Complete it first."

        await services.sprints.complete_sprint(first.id)
        started = await services.sprints.start_sprint(second.id)
        assert started.status == SprintStatus.ACTIVE
        assert (await services.sprints.get_active_sprint()).sprint.id == second.id

    async def test_only_planning_sprints_start(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await services.sprints.start_sprint(sprint.id)
        with pytest.raises(ConflictException):
            await services.sprints.start_sprint(sprint.id)

    async def test_only_active_sprints_complete(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        with pytest.raises(ConflictException):
            await services.sprints.complete_sprint(sprint.id)

    async def test_unknown_sprint(self, services):
        with pytest.raises(ResourceNotFoundException):
            await services.sprints.start_sprint("7e0c1f57-0000-4000-8000-000000000000")

    async def test_no_active_sprint(self, services):
        assert await services.sprints.get_active_sprint() is None


class TestCompleteSprint:

    async def test_velocity_is_frozen(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await services.sprints.start_sprint(sprint.id)
        done = await _planned_task(services, product, sprint.id, 5, DevTaskStatus.DONE)
        await _planned_task(services, product, sprint.id, 3, DevTaskStatus.DONE)
        await _planned_task(services, product, sprint.id, 8, DevTaskStatus.IN_PROGRESS)

        result = await services.sprints.complete_sprint(sprint.id)
        assert result.velocity == 8
        assert result.total_tasks == 3
        assert result.completed_tasks == 2
        assert result.incomplete_tasks == 1
        assert result.moved_to_sprint_id is None

        # Later edits to the tasks do not change a completed sprint
        await services.dev_tasks.patch_dev_task_status(done.id, DevTaskStatus.IN_PROGRESS)
        await services.dev_tasks.set_story_points(done.id, 13)
        detail = await services.sprints.get_sprint(sprint.id)
        assert detail.sprint.velocity == 8

    async def test_incomplete_tasks_go_to_backlog_keeping_status(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await services.sprints.start_sprint(sprint.id)
        task = await _planned_task(services, product, sprint.id, 5, DevTaskStatus.REVIEW)

        await services.sprints.complete_sprint(sprint.id, IncompleteTaskPolicy.BACKLOG)
        moved = await services.dev_tasks.get_dev_task(task.id)
        assert moved.sprint_id is None
        assert moved.status == DevTaskStatus.REVIEW

    async def test_incomplete_tasks_go_to_next_planning_sprint(self, services, product):
        current = await services.sprints.create_sprint(date(2026, 2, 2))
        later = await services.sprints.create_sprint(date(2026, 3, 2))
        following = await services.sprints.create_sprint(date(2026, 2, 16))
        await services.sprints.start_sprint(current.id)
        task = await _planned_task(services, product, current.id, 3)

        result = await services.sprints.complete_sprint(current.id, "next")
        assert result.moved_to_sprint_id == following.id
        assert (await services.dev_tasks.get_dev_task(task.id)).sprint_id == following.id
        assert (await services.sprints.get_sprint(later.id)).tasks == []

    async def test_next_without_planning_sprint_falls_back_to_backlog(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await services.sprints.start_sprint(sprint.id)
        task = await _planned_task(services, product, sprint.id, 3)

        result = await services.sprints.complete_sprint(sprint.id, IncompleteTaskPolicy.NEXT)
        assert result.moved_to_sprint_id is None
        assert (await services.dev_tasks.get_dev_task(task.id)).in_backlog

    async def test_explicit_target_must_be_planning(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await services.sprints.start_sprint(sprint.id)
        await _planned_task(services, product, sprint.id, 3)

        with pytest.raises(ValidationException):
            await services.sprints.complete_sprint(sprint.id, sprint.id)

    async def test_explicit_target(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        target = await services.sprints.create_sprint(date(2026, 4, 1))
        await services.sprints.start_sprint(sprint.id)
        task = await _planned_task(services, product, sprint.id, 3)

        result = await services.sprints.complete_sprint(sprint.id, target.id)
        assert result.moved_to_sprint_id == target.id
        assert (await services.dev_tasks.get_dev_task(task.id)).sprint_id == target.id

    async def test_cancel_returns_tasks_to_backlog(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        task = await _planned_task(services, product, sprint.id, 3, DevTaskStatus.DONE)

        cancelled = await services.sprints.cancel_sprint(sprint.id)
        assert cancelled.status == SprintStatus.CANCELLED
        assert (await services.dev_tasks.get_dev_task(task.id)).in_backlog

        with pytest.raises(ConflictException):
            await services.sprints.cancel_sprint(sprint.id)


class TestCapacityAndRetro:

    async def test_capacity_defaults_and_upserts(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        capacity = await services.sprints.set_capacity(sprint.id, user_id=11)
        assert capacity.available_points == 20

        await services.sprints.set_capacity(sprint.id, user_id=11, available_points=13)
        capacities = await services.sprints.list_capacities(sprint.id)
        assert [(c.user_id, c.available_points) for c in capacities] == [(11, 13)]

    async def test_negative_capacity(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        with pytest.raises(ValidationException):
            await services.sprints.set_capacity(sprint.id, user_id=11, available_points=-1)

    async def test_retro_keeps_omitted_fields(self, services):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        assert await services.sprints.get_retro(sprint.id) is None

        await services.sprints.save_retro(sprint.id, went_well="Pairing", improvements="Estimates")
        retro = await services.sprints.save_retro(sprint.id, action_items="Split big tickets")
        assert retro.went_well == "Pairing"
        assert retro.improvements == "Estimates"
        assert retro.action_items == "Split big tickets"


class TestMetrics:

    async def test_burndown(self, services, product):
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await _planned_task(services, product, sprint.id, 8, DevTaskStatus.DONE)
        await _planned_task(services, product, sprint.id, 5)
        await _planned_task(services, product, sprint.id, 1)

        result = await services.sprints.burndown(sprint.id, today=date(2026, 2, 9))
        assert result.total_points == 14
        assert result.remaining_points == 6
        assert result.elapsed_days == 7
        assert result.ideal_remaining == 7

    async def test_velocity_trend(self, services, product):
        for start, points in ((date(2026, 1, 5), 5), (date(2026, 1, 19), 13)):
            sprint = await services.sprints.create_sprint(start)
            await services.sprints.start_sprint(sprint.id)
            await _planned_task(services, product, sprint.id, points, DevTaskStatus.DONE)
            await services.sprints.complete_sprint(sprint.id)

        trend = await services.sprints.velocity_trend()
        assert [p.name for p in trend.points] == ["Jan-I-26", "Jan-II-26"]
        assert [p.velocity for p in trend.points] == [5, 13]
        assert trend.average == 9
