"""
Sprint Application DTOs
========================

Pydantic models for the sprint API.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tsklets.config import IncompleteTaskPolicy, SprintStatus
from tsklets.dev_tasks.application import DevTaskResponse


class SprintCreateDTO(BaseModel):
    start_date: date
    goal: Optional[str] = None
    name: Optional[str] = Field(default=None, description="Defaults to e.g. Jan-I-26")


class SprintUpdateDTO(BaseModel):
    name: Optional[str] = None
    goal: Optional[str] = None


class SprintCompleteDTO(BaseModel):
    move_incomplete_to: str = Field(
        default=IncompleteTaskPolicy.BACKLOG.value,
        description="'backlog', 'next', or the id of a planning sprint"
    )


class CapacityDTO(BaseModel):
    user_id: int
    available_points: Optional[int] = None


class RetroDTO(BaseModel):
    went_well: Optional[str] = None
    improvements: Optional[str] = None
    action_items: Optional[str] = None


class SprintResponse(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    status: SprintStatus
    goal: Optional[str] = None
    velocity: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CapacityResponse(BaseModel):
    id: str
    sprint_id: str
    user_id: int
    available_points: int


class RetroResponse(BaseModel):
    id: str
    sprint_id: str
    went_well: Optional[str] = None
    improvements: Optional[str] = None
    action_items: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SprintDetailResponse(BaseModel):
    sprint: SprintResponse
    tasks: List[DevTaskResponse] = Field(default_factory=list)
    capacities: List[CapacityResponse] = Field(default_factory=list)


class SprintCompletionResponse(BaseModel):
    sprint: SprintResponse
    total_tasks: int
    completed_tasks: int
    incomplete_tasks: int
    velocity: int
    moved_to_sprint_id: Optional[str] = None


class BurndownResponse(BaseModel):
    total_points: int
    completed_points: int
    remaining_points: int
    ideal_remaining: int
    total_days: int
    elapsed_days: int
    start_date: date
    end_date: date


class VelocityPointResponse(BaseModel):
    sprint_id: str
    name: str
    velocity: int
    end_date: date
    height_ratio: float


class VelocityTrendResponse(BaseModel):
    sprints: List[VelocityPointResponse]
    average: int
