# tests/integration/test_dev_task_service.py
"""
Dev task use cases and ticket conversion against a real (SQLite) database.
"""

from datetime import date

import pytest

from tsklets.config import DevTaskStatus, SprintStatus, TicketEventType, TicketStatus
from tsklets.core import (
    PermissionDeniedException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from tsklets.dev_tasks.application import DevTaskConversionService, DevTaskFilter, DevTaskInput
from tsklets.dev_tasks.domain import BLOCKED_WITHOUT_REASON, MISSING_ROLES_MESSAGE
from tsklets.tickets.infrastructure import SQLAlchemyTicketActivityRepository, SQLAlchemyTicketRepository

from tests.conftest import ADMIN, CLIENT_USER, SUPPORT, build_services

TEAM = dict(implementor_id=10, developer_id=11, tester_id=12)


class FailingEventRepository(SQLAlchemyTicketActivityRepository):
    """Activity repository whose history write always fails."""

    async def add_event(self, event):
        raise RepositoryException("history store unavailable")


class TestCreateDevTask:

    async def test_standalone_task(self, services, product):
        task = await services.dev_tasks.create_dev_task(
            product.id, DevTaskInput(title="Rotate API keys", story_points=3, **TEAM), ADMIN
        )
        assert task.issue_key == "CRM-T001"
        assert task.status == DevTaskStatus.TODO
        assert task.support_ticket_id is None
        assert task.sprint_id is None
        assert task.priority == 3

    async def test_bug_numbering_is_separate(self, services, product):
        await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="a", **TEAM), ADMIN)
        bug = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="b", type="bug", **TEAM), ADMIN)
        assert bug.issue_key == "CRM-B001"

    async def test_client_cannot_create(self, services, product):
        with pytest.raises(PermissionDeniedException):
            await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), CLIENT_USER)

    async def test_missing_role(self, services, product):
        with pytest.raises(ValidationException) as exc_info:
            await services.dev_tasks.create_dev_task(
                product.id, DevTaskInput(title="x", implementor_id=10, developer_id=11), ADMIN
            )
        assert exc_info.value.message == MISSING_ROLES_MESSAGE

    async def test_off_scale_story_points(self, services, product):
        with pytest.raises(ValidationException):
            await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", story_points=4, **TEAM), ADMIN)

    async def test_component_must_belong_to_module(self, services, product):
        billing = await services.catalog.create_module(product.id, "Billing")
        reports = await services.catalog.create_module(product.id, "Reports")
        invoices = await services.catalog.create_component(billing.id, "Invoices")

        with pytest.raises(ResourceNotFoundException):
            await services.dev_tasks.create_dev_task(
                product.id,
                DevTaskInput(title="x", module_id=reports.id, component_id=invoices.id, **TEAM),
                ADMIN,
            )

        task = await services.dev_tasks.create_dev_task(
            product.id,
            DevTaskInput(title="x", module_id=billing.id, component_id=invoices.id, **TEAM),
            ADMIN,
        )
        assert task.component_id == invoices.id

    async def test_structure_must_belong_to_task_product(self, services, product):
        hrm = await services.catalog.create_product("hrm", "HRM")
        payroll = await services.catalog.create_module(hrm.id, "Payroll")
        kiosk = await services.catalog.create_addon(hrm.id, "Kiosk")
        onboarding = await services.catalog.create_epic(hrm.id, "Onboarding")
        checklist = await services.catalog.create_feature(onboarding.id, "Checklist")

        for reference in (dict(module_id=payroll.id), dict(addon_id=kiosk.id), dict(feature_id=checklist.id)):
            with pytest.raises(ResourceNotFoundException):
                await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **reference, **TEAM), ADMIN)

        assert await services.dev_tasks.list_dev_tasks() == []

        task = await services.dev_tasks.create_dev_task(
            hrm.id, DevTaskInput(title="x", module_id=payroll.id, feature_id=checklist.id, **TEAM), ADMIN
        )
        assert task.issue_key == "HRM-T001"

    async def test_module_id_case_does_not_matter(self, services, product):
        billing = await services.catalog.create_module(product.id, "Billing")
        invoices = await services.catalog.create_component(billing.id, "Invoices")

        task = await services.dev_tasks.create_dev_task(
            product.id,
            DevTaskInput(title="x", module_id=billing.id.upper(), component_id=invoices.id, **TEAM),
            ADMIN,
        )
        assert task.component_id == invoices.id

    async def test_component_without_module(self, services, product):
        billing = await services.catalog.create_module(product.id, "Billing")
        invoices = await services.catalog.create_component(billing.id, "Invoices")
        with pytest.raises(ValidationException):
            await services.dev_tasks.create_dev_task(
                product.id, DevTaskInput(title="x", component_id=invoices.id, **TEAM), ADMIN
            )


class TestDevTaskLifecycle:

    async def test_blocked_without_reason_warns(self, services, product):
        task = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), ADMIN)
        result = await services.dev_tasks.patch_dev_task_status(task.id, "blocked")
        assert result.warnings == [BLOCKED_WITHOUT_REASON]
        assert result.task.status == DevTaskStatus.BLOCKED

    async def test_done_then_backlog_excludes_it(self, services, product):
        done = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="done", **TEAM), ADMIN)
        todo = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="todo", **TEAM), ADMIN)
        await services.dev_tasks.patch_dev_task_status(done.id, "done")

        backlog = await services.dev_tasks.list_backlog(product.id)
        assert [t.id for t in backlog] == [todo.id]

    async def test_close_with_resolution(self, services, product):
        task = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), ADMIN)
        closed = await services.dev_tasks.close_dev_task(task.id, "duplicate", "same as CRM-T009")
        assert closed.status == DevTaskStatus.DONE
        assert closed.resolution_note == "same as CRM-T009"
        assert closed.closed_at is not None

    async def test_assign_to_sprint(self, services, product):
        task = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), ADMIN)
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))

        planned = await services.dev_tasks.assign_to_sprint(task.id, sprint.id)
        assert planned.sprint_id == sprint.id

        back = await services.dev_tasks.assign_to_sprint(task.id, None)
        assert back.in_backlog

    async def test_assign_to_unknown_sprint(self, services, product):
        task = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), ADMIN)
        with pytest.raises(ResourceNotFoundException):
            await services.dev_tasks.assign_to_sprint(task.id, "0b5c1f57-0000-4000-8000-000000000000")

    async def test_assign_to_completed_sprint(self, services, product):
        task = await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), ADMIN)
        sprint = await services.sprints.create_sprint(date(2026, 2, 2))
        await services.sprints.start_sprint(sprint.id)
        completed = await services.sprints.complete_sprint(sprint.id)
        assert completed.sprint.status == SprintStatus.COMPLETED

        with pytest.raises(ValidationException):
            await services.dev_tasks.assign_to_sprint(task.id, sprint.id)

    async def test_filter_by_assignee_matches_any_role(self, services, product):
        await services.dev_tasks.create_dev_task(product.id, DevTaskInput(title="x", **TEAM), ADMIN)
        assert len(await services.dev_tasks.list_dev_tasks(DevTaskFilter(assignee_id=12))) == 1
        assert await services.dev_tasks.list_dev_tasks(DevTaskFilter(assignee_id=99)) == []


class TestConversion:
    """Ticket → dev task."""

    async def test_convert_ticket(self, services, product):
        ticket = await services.tickets.create_ticket(CLIENT_USER, product.id, "bug", "Export fails", description="CSV")
        task = await services.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(type="bug", **TEAM), SUPPORT)

        assert task.issue_key == "CRM-B001"
        assert task.title == "Export fails"
        assert task.description == "CSV"
        assert task.support_ticket_id == ticket.id

        ticket = await services.tickets.get_ticket_by_id(ticket.id, ADMIN)
        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.assigned_to == 10

        events = await services.tickets.ticket_history(ticket.id, ADMIN)
        assert events[-1].event_type == TicketEventType.DEV_TASK_CREATED
        assert events[-1].note == "CRM-B001"

        view = await services.tickets.get_ticket(ticket.issue_key, ADMIN)
        assert [d.issue_key for d in view.dev_tasks] == ["CRM-B001"]

    async def test_caller_input_is_not_modified(self, services, product):
        ticket = await services.tickets.create_ticket(ADMIN, product.id, "support", "Export fails", description="CSV")
        data = DevTaskInput(**TEAM)

        task = await services.conversion.convert_ticket_to_dev_task(ticket.id, data, ADMIN)
        assert task.title == "Export fails"
        assert data.title is None
        assert data.description is None

    async def test_missing_roles_leave_ticket_untouched(self, services, product):
        ticket = await services.tickets.create_ticket(ADMIN, product.id, "support", "x")
        with pytest.raises(ValidationException) as exc_info:
            await services.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(implementor_id=10), ADMIN)
        assert exc_info.value.message == MISSING_ROLES_MESSAGE

        reloaded = await services.tickets.get_ticket_by_id(ticket.id, ADMIN)
        assert reloaded.status == TicketStatus.OPEN
        assert reloaded.assigned_to is None
        assert await services.dev_tasks.list_dev_tasks() == []

    async def test_client_cannot_convert(self, services, product):
        ticket = await services.tickets.create_ticket(CLIENT_USER, product.id, "support", "x")
        with pytest.raises(PermissionDeniedException):
            await services.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(**TEAM), CLIENT_USER)

    async def test_closed_ticket_cannot_be_converted(self, services, product):
        ticket = await services.tickets.create_ticket(ADMIN, product.id, "support", "x")
        await services.tickets.patch_ticket_status(ticket.id, "cancelled", ADMIN, reason="spam")
        with pytest.raises(PermissionDeniedException):
            await services.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(**TEAM), ADMIN)

    async def test_reconversion_creates_another_task(self, services, product):
        ticket = await services.tickets.create_ticket(ADMIN, product.id, "support", "x")
        await services.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(**TEAM), ADMIN)
        await services.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(**TEAM), ADMIN)

        tasks = await services.dev_tasks.list_dev_tasks(DevTaskFilter(support_ticket_id=ticket.id))
        assert sorted(t.issue_key for t in tasks) == ["CRM-T001", "CRM-T002"]

    async def test_defaults_come_from_product(self, services, product):
        ticket = await services.tickets.create_ticket(ADMIN, product.id, "support", "x")
        team = await services.conversion.conversion_defaults(ticket.id, ADMIN)
        assert (team.implementor_id, team.developer_id, team.tester_id) == (10, 11, 12)

    async def test_failure_after_task_insert_rolls_back_both(self, session, workflow_config, services, product):
        ticket = await services.tickets.create_ticket(ADMIN, product.id, "support", "x")
        await session.commit()

        failing = DevTaskConversionService(
            ticket_repository=SQLAlchemyTicketRepository(session),
            activity_repository=FailingEventRepository(session),
            task_service=services.dev_tasks,
            catalog_service=services.catalog,
        )
        with pytest.raises(RepositoryException):
            await failing.convert_ticket_to_dev_task(ticket.id, DevTaskInput(**TEAM), ADMIN)
        await session.rollback()

        fresh = build_services(session, workflow_config)
        assert await fresh.dev_tasks.list_dev_tasks() == []
        reloaded = await fresh.tickets.get_ticket_by_id(ticket.id, ADMIN)
        assert reloaded.status == TicketStatus.OPEN
        assert reloaded.assigned_to is None

        # The issue key counter was rolled back too
        task = await fresh.conversion.convert_ticket_to_dev_task(ticket.id, DevTaskInput(**TEAM), ADMIN)
        assert task.issue_key == "CRM-T001"
