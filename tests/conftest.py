# tests/conftest.py
"""
Pytest configuration and fixtures for the lifecycle engine test suite.

Provides:
- In-memory SQLite database (aiosqlite) with every table created
- A session for service-level tests
- An httpx AsyncClient wired to the FastAPI app
- Actor header helpers and small seeding helpers

Note: ASGITransport does not run the app lifespan, so tables and the
workflow config are set up here instead.
"""

import os
from types import SimpleNamespace
from typing import Any, Dict

import pytest

# Set test environment before imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tsklets.catalog.application import CatalogService, IssueKeyService
from tsklets.catalog.domain import DefaultTeam
from tsklets.catalog.infrastructure import SQLAlchemyCatalogRepository, SQLAlchemyIssueKeySequence
from tsklets.catalog.infrastructure import models as _catalog_models  # noqa: F401
from tsklets.config import UserRole
from tsklets.core import Actor
from tsklets.dev_tasks.application import DevTaskConversionService, DevTaskService
from tsklets.dev_tasks.infrastructure import SQLAlchemyDevTaskLookup, SQLAlchemyDevTaskRepository
from tsklets.dev_tasks.infrastructure import models as _task_models  # noqa: F401
from tsklets.infrastructure.database import Base, get_session
from tsklets.main import app
from tsklets.shared.api.dependencies import get_workflow_config
from tsklets.shared.infrastructure.workflow_config import StaticWorkflowConfigProvider
from tsklets.sprints.application import SprintPlannerService
from tsklets.sprints.infrastructure import SQLAlchemySprintLookup, SQLAlchemySprintRepository
from tsklets.sprints.infrastructure import models as _sprint_models  # noqa: F401
from tsklets.tickets.application import TicketService
from tsklets.tickets.infrastructure import SQLAlchemyTicketActivityRepository, SQLAlchemyTicketRepository
from tsklets.tickets.infrastructure import models as _ticket_models  # noqa: F401


# ============== Actors ==============

ADMIN = Actor(user_id=1, role=UserRole.ADMIN)
SUPPORT = Actor(user_id=2, role=UserRole.SUPPORT)
DEVELOPER = Actor(user_id=3, role=UserRole.DEVELOPER)
CLIENT_USER = Actor(user_id=100, role=UserRole.USER, client_id=42)
CLIENT_ADMIN = Actor(user_id=101, role=UserRole.COMPANY_ADMIN, client_id=42)
OTHER_CLIENT_USER = Actor(user_id=200, role=UserRole.USER, client_id=7)


def headers_for(actor: Actor) -> Dict[str, str]:
    """Trusted actor headers as set by the upstream gateway."""
    headers = {"X-User-Id": str(actor.user_id), "X-User-Role": actor.role.value}
    if actor.client_id is not None:
        headers["X-Client-Id"] = str(actor.client_id)
    return headers


# ============== Database Fixtures ==============

@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def workflow_config():
    return StaticWorkflowConfigProvider()


# ============== Service Fixtures ==============

def build_services(session: AsyncSession, workflow_config) -> SimpleNamespace:
    """Wire every service over one session, the way the routers do per request."""
    catalog_repo = SQLAlchemyCatalogRepository(session)
    issue_keys = IssueKeyService(catalog_repo, SQLAlchemyIssueKeySequence(session))
    catalog = CatalogService(catalog_repo)
    tickets = TicketService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        activity_repository=SQLAlchemyTicketActivityRepository(session),
        catalog_repository=catalog_repo,
        issue_keys=issue_keys,
        config_provider=workflow_config,
        dev_task_lookup=SQLAlchemyDevTaskLookup(session),
    )
    dev_tasks = DevTaskService(
        task_repository=SQLAlchemyDevTaskRepository(session),
        catalog_service=catalog,
        issue_keys=issue_keys,
        sprint_lookup=SQLAlchemySprintLookup(session),
    )
    conversion = DevTaskConversionService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        activity_repository=SQLAlchemyTicketActivityRepository(session),
        task_service=dev_tasks,
        catalog_service=catalog,
    )
    sprints = SprintPlannerService(
        sprint_repository=SQLAlchemySprintRepository(session),
        task_repository=SQLAlchemyDevTaskRepository(session),
        config_provider=workflow_config,
    )
    return SimpleNamespace(
        catalog=catalog,
        tickets=tickets,
        dev_tasks=dev_tasks,
        conversion=conversion,
        sprints=sprints,
    )


@pytest.fixture
def services(session, workflow_config):
    return build_services(session, workflow_config)


@pytest.fixture
async def product(services):
    """Product CRM with a default team (10, 11, 12)."""
    return await services.catalog.create_product(
        "crm", "CRM", default_team=DefaultTeam(implementor_id=10, developer_id=11, tester_id=12)
    )


# ============== API Client Fixtures ==============

@pytest.fixture
async def client(session_maker, workflow_config):
    """AsyncClient over the app with the database and config overridden."""

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_workflow_config():
        return workflow_config

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_workflow_config] = override_get_workflow_config

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def as_admin():
    return headers_for(ADMIN)


@pytest.fixture
def as_client_user():
    return headers_for(CLIENT_USER)


@pytest.fixture
async def api_product(client, as_admin) -> Dict[str, Any]:
    response = await client.post(
        "/catalog/products",
        json={
            "code": "CRM",
            "name": "CRM",
            "default_team": {"implementor_id": 10, "developer_id": 11, "tester_id": 12},
        },
        headers=as_admin,
    )
    assert response.status_code == 201, response.text
    return response.json()
