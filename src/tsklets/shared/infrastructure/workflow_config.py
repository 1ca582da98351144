"""
Workflow Configuration
=======================

Tunable workflow thresholds loaded from YAML.

Example workflow_config.yaml:

    escalation:
      warning_hours: 8
      critical_hours: 24
    sprints:
      length_days: 14
      velocity_history: 6
      default_capacity_points: 20
    tickets:
      auto_close_after_days: 5

A missing file yields the defaults above.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from tsklets.config import settings
from tsklets.core import ConfigurationException
from tsklets.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class EscalationSettings(BaseModel):
    """SLA urgency tiers, in whole hours since the ticket reached the internal queue."""
    warning_hours: int = Field(default=8, ge=1)
    critical_hours: int = Field(default=24, ge=1)

    @model_validator(mode="after")
    def check_order(self) -> "EscalationSettings":
        if self.critical_hours <= self.warning_hours:
            raise ValueError("critical_hours must be greater than warning_hours")
        return self


class SprintSettings(BaseModel):
    length_days: int = Field(default=14, ge=1)
    velocity_history: int = Field(default=6, ge=1)
    default_capacity_points: int = Field(default=20, ge=0)


class TicketSettings(BaseModel):
    auto_close_after_days: int = Field(default=5, ge=1)


class WorkflowConfig(BaseModel):
    """Value object holding every workflow tunable."""
    escalation: EscalationSettings = Field(default_factory=EscalationSettings)
    sprints: SprintSettings = Field(default_factory=SprintSettings)
    tickets: TicketSettings = Field(default_factory=TicketSettings)


class IWorkflowConfigProvider(ABC):
    """Interface for workflow configuration access."""

    @abstractmethod
    def get_config(self) -> WorkflowConfig:
        """Get current workflow configuration."""


class StaticWorkflowConfigProvider(IWorkflowConfigProvider):
    """Serves a fixed configuration (defaults unless one is given)."""

    def __init__(self, config: Optional[WorkflowConfig] = None):
        self._config = config or WorkflowConfig()

    def get_config(self) -> WorkflowConfig:
        return self._config


class YAMLWorkflowConfigProvider(IWorkflowConfigProvider):
    """
    Workflow configuration provider that loads from YAML.

    Call reload() after editing the file.
    """

    def __init__(self, config_path: Union[str, Path]):
        self._config_path = Path(config_path)
        self._config: Optional[WorkflowConfig] = None
        self._load_config()

    def _load_config(self) -> None:
        if not self._config_path.exists():
            logger.info(
                "Workflow config not found, using defaults",
                extra={"config_path": str(self._config_path)}
            )
            self._config = WorkflowConfig()
            return

        with open(self._config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        try:
            self._config = WorkflowConfig(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid workflow config at {self._config_path}",
                {"errors": str(e)}
            ) from e

        logger.info("Workflow config loaded", extra={"config_path": str(self._config_path)})

    def get_config(self) -> WorkflowConfig:
        return self._config

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()


@lru_cache()
def get_workflow_config_provider() -> IWorkflowConfigProvider:
    """Returns the cached provider for the configured YAML path."""
    return YAMLWorkflowConfigProvider(settings.workflow_config_path)
