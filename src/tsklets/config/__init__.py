"""
Configuration Module
====================

Application settings and workflow constants.

Settings are loaded from environment variables with Pydantic. Workflow
enumerations live here so every bounded context shares one vocabulary.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="tsklets-engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/tsklets",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Workflow ==========
    workflow_config_path: Path = Field(
        default=Path("workflow_config.yaml"),
        description="Path to the workflow YAML (escalation thresholds, sprint length)"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:4020"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Tickets ==========

class TicketType(str, Enum):
    SUPPORT = "support"
    BUG = "bug"
    TASK = "task"
    FEATURE = "feature"
    FEATURE_REQUEST = "feature_request"
    EPIC = "epic"
    SPIKE = "spike"
    NOTE = "note"


class TicketStatus(str, Enum):
    PENDING_INTERNAL_REVIEW = "pending_internal_review"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_FOR_CUSTOMER = "waiting_for_customer"
    REBUTTAL = "rebuttal"
    REVIEW = "review"
    BLOCKED = "blocked"
    RESOLVED = "resolved"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class EscalationReason(str, Enum):
    EXECUTIVE_REQUEST = "executive_request"
    PRODUCTION_DOWN = "production_down"
    COMPLIANCE = "compliance"
    CUSTOMER_IMPACT = "customer_impact"
    OTHER = "other"


class Resolution(str, Enum):
    """Shared by tickets and dev tasks."""
    COMPLETED = "completed"
    DUPLICATE = "duplicate"
    WONT_DO = "wont_do"
    MOVED = "moved"
    INVALID = "invalid"
    OBSOLETE = "obsolete"
    CANNOT_REPRODUCE = "cannot_reproduce"


class TicketLinkType(str, Enum):
    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    RELATES_TO = "relates_to"
    DUPLICATES = "duplicates"
    DUPLICATED_BY = "duplicated_by"
    PARENT_OF = "parent_of"
    CHILD_OF = "child_of"


class TicketEventType(str, Enum):
    """Audit trail entries recorded on a ticket."""
    CREATED = "created"
    STATUS_CHANGE = "status_change"
    REOPEN = "reopen"
    REASSIGN_TO_INTERNAL = "reassign_to_internal"
    ESCALATED = "escalated"
    DE_ESCALATED = "de_escalated"
    RATING_OVERRIDE = "rating_override"
    ASSIGNED = "assigned"
    DEV_TASK_CREATED = "dev_task_created"
    AUTO_CLOSED = "auto_closed"


class TicketAction(str, Enum):
    """Role-gated actions offered on a ticket."""
    CANCEL = "cancel"
    CLOSE = "close"
    REOPEN = "reopen"
    REASSIGN_TO_INTERNAL = "reassign_to_internal"
    CREATE_DEV_TASK = "create_dev_task"
    MARK_REBUTTAL = "mark_rebuttal"


class SLAUrgency(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


# ========== Users ==========

class UserRole(str, Enum):
    USER = "user"
    GATEKEEPER = "gatekeeper"
    COMPANY_ADMIN = "company_admin"
    APPROVER = "approver"
    INTEGRATOR = "integrator"
    SUPPORT = "support"
    CEO = "ceo"
    ADMIN = "admin"
    DEVELOPER = "developer"


# ========== Dev Tasks ==========

class DevTaskType(str, Enum):
    TASK = "task"
    BUG = "bug"


class DevTaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    TESTING = "testing"
    BLOCKED = "blocked"
    DONE = "done"


# ========== Sprints ==========

class SprintStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class IncompleteTaskPolicy(str, Enum):
    """Where unfinished tasks go when a sprint completes."""
    BACKLOG = "backlog"
    NEXT = "next"


# ========== Constants ==========

PRIVILEGED_ROLES = frozenset({UserRole.ADMIN, UserRole.COMPANY_ADMIN})

# Reserved labels read as boolean flags
ESCALATED_LABEL = "escalated"
CREATED_BY_SYSTECH_LABEL = "created_by_systech"
AUTO_CLOSED_LABEL = "auto_closed_no_response"

# 1 = critical .. 5 = trivial
DEFAULT_RATING = 3
RATING_RANGE = range(1, 6)

STORY_POINT_SCALE = (1, 2, 3, 5, 8, 13)

TICKET_TYPE_CODES = {
    TicketType.EPIC: "E",
    TicketType.FEATURE: "F",
    TicketType.TASK: "T",
    TicketType.BUG: "B",
    TicketType.SUPPORT: "S",
    TicketType.FEATURE_REQUEST: "R",
    TicketType.SPIKE: "K",
    TicketType.NOTE: "N",
}

DEV_TASK_TYPE_CODES = {
    DevTaskType.TASK: "T",
    DevTaskType.BUG: "B",
}


# ========== Lists for validation ==========

VALID_TICKET_STATUSES = [s.value for s in TicketStatus]
VALID_DEV_TASK_STATUSES = [s.value for s in DevTaskStatus]
VALID_SPRINT_STATUSES = [s.value for s in SprintStatus]
