"""
Tsklets Lifecycle Engine - Main Application
============================================

Ticket and dev-task lifecycle engine.

Modules:
- Catalog: products, product structure and issue keys
- Tickets: status machine, role-gated actions, escalation and SLA age
- Dev Tasks: ticket conversion with role assignment, open status machine
- Sprints: single-active sprint lifecycle, frozen velocity, burndown

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and state machines
- Infrastructure: Database
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from tsklets.config import settings
from tsklets.core import ApplicationException

# Infrastructure
from tsklets.infrastructure.database import close_database, create_tables, init_database
from tsklets.shared.infrastructure.workflow_config import get_workflow_config_provider

# Module Routers
from tsklets.catalog.interfaces import catalog_router
from tsklets.tickets.interfaces import tickets_router
from tsklets.dev_tasks.interfaces import dev_tasks_router
from tsklets.sprints.interfaces import sprints_router

# Middleware
from tsklets.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    application_exception_handler,
    global_exception_handler,
)

# Logging
from tsklets.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables
    4. Load workflow configuration

    SHUTDOWN:
    1. Close database connections
    """
    # === STARTUP ===
    setup_logging(level=settings.log_level, environment=settings.environment)
    logger.info("Starting lifecycle engine", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use Alembic in production)
    logger.info("Creating database tables")
    await create_tables()

    # Fail fast on a malformed workflow file
    workflow = get_workflow_config_provider().get_config()
    logger.info("Workflow thresholds", extra={
        "warning_hours": workflow.escalation.warning_hours,
        "critical_hours": workflow.escalation.critical_hours,
        "sprint_length_days": workflow.sprints.length_days,
    })

    logger.info("Lifecycle engine started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down lifecycle engine")
    await close_database()
    logger.info("Lifecycle engine shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Tsklets Lifecycle API",
    description="""
    ## Ticket and Dev Task Lifecycle Engine

    Support tickets, escalation to the internal queue, conversion into dev
    tasks, and two-week sprints.

    ---

    ### Actor

    Every request carries the already-authenticated caller:
    `X-User-Id`, `X-User-Role` and, for client users, `X-Client-Id`.

    ---

    ### Error mapping

    | Error | Status |
    |-------|--------|
    | ValidationException | 400 |
    | PermissionDeniedException | 403 |
    | ResourceNotFoundException | 404 |
    | ConflictException | 409 |

    ---
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)
app.state.settings = settings

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
# Added last runs first: the correlation ID must exist before request logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(catalog_router)
app.include_router(tickets_router)
app.include_router(dev_tasks_router)
app.include_router(sprints_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers and orchestrators."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "catalog": {"prefix": "/catalog"},
            "tickets": {"prefix": "/tickets"},
            "dev_tasks": {"prefix": "/dev-tasks"},
            "sprints": {"prefix": "/sprints"},
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tsklets.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
