"""
Sprint Domain Entities
=======================

Time-boxed planning windows, per-person capacity and retrospectives.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from tsklets.config import SprintStatus


@dataclass
class Sprint:
    id: Optional[str]
    name: str
    start_date: date
    end_date: date
    status: SprintStatus
    created_at: datetime
    updated_at: datetime
    goal: Optional[str] = None

    # Frozen at completion, None until then
    velocity: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == SprintStatus.ACTIVE

    @property
    def is_open(self) -> bool:
        """Tasks may still be planned into the sprint."""
        return self.status in (SprintStatus.PLANNING, SprintStatus.ACTIVE)


@dataclass
class SprintCapacity:
    id: Optional[str]
    sprint_id: str
    user_id: int
    available_points: int


@dataclass
class SprintRetro:
    id: Optional[str]
    sprint_id: str
    created_at: datetime
    updated_at: datetime
    went_well: Optional[str] = None
    improvements: Optional[str] = None
    action_items: Optional[str] = None
