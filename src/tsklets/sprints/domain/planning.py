"""
Sprint Planning Math
=====================

Pure functions for sprint naming, window arithmetic, velocity and
burndown. No I/O.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from tsklets.config import SprintStatus
from tsklets.dev_tasks.domain import DevTask
from tsklets.sprints.domain.entities import Sprint

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DEFAULT_LENGTH_DAYS = 14


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_sprint_name(start_date: date) -> str:
    """
    `{Mon}-{I|II}-{YY}`: days 1-15 are the first half of the month.

    >>> generate_sprint_name(date(2026, 1, 10))
    'Jan-I-26'
    """
    half = "I" if start_date.day <= 15 else "II"
    return f"{MONTH_ABBREVIATIONS[start_date.month - 1]}-{half}-{start_date.year % 100:02d}"


def calculate_end_date(start_date: date, length_days: int = DEFAULT_LENGTH_DAYS) -> date:
    """Last day of an inclusive window of `length_days` days."""
    return start_date + timedelta(days=length_days - 1)


def sum_points(tasks: Iterable[DevTask]) -> int:
    return sum(t.story_points or 0 for t in tasks)


def compute_velocity(tasks: Iterable[DevTask]) -> int:
    """Story points of done tasks; unestimated tasks count as 0."""
    return sum_points(t for t in tasks if t.is_done)


# ========== Velocity trend ==========

@dataclass(frozen=True)
class VelocityPoint:
    sprint_id: str
    name: str
    velocity: int
    end_date: date
    height_ratio: float


@dataclass(frozen=True)
class VelocityTrend:
    points: List[VelocityPoint]
    average: int


def velocity_trend(sprints: Iterable[Sprint], history: int = 6) -> VelocityTrend:
    """
    Velocity of the last `history` completed sprints, oldest first.

    Bar heights are normalized to the highest velocity in the window.
    """
    completed = sorted(
        (s for s in sprints if s.status == SprintStatus.COMPLETED),
        key=lambda s: s.end_date,
    )[-history:]

    velocities = [s.velocity or 0 for s in completed]
    peak = max(velocities, default=0)

    points = [
        VelocityPoint(
            sprint_id=s.id,
            name=s.name,
            velocity=v,
            end_date=s.end_date,
            height_ratio=(v / peak) if peak else 0.0,
        )
        for s, v in zip(completed, velocities)
    ]
    average = round_half_up(sum(velocities) / len(velocities)) if velocities else 0
    return VelocityTrend(points=points, average=average)


# ========== Burndown ==========

@dataclass(frozen=True)
class Burndown:
    total_points: int
    completed_points: int
    remaining_points: int
    ideal_remaining: int
    total_days: int
    elapsed_days: int
    start_date: date
    end_date: date


def burndown(sprint: Sprint, tasks: Iterable[DevTask], today: Optional[date] = None) -> Burndown:
    """Points burned so far against a straight-line ideal."""
    tasks = list(tasks)
    today = today or date.today()

    total = sum_points(tasks)
    completed = compute_velocity(tasks)

    total_days = (sprint.end_date - sprint.start_date).days + 1
    elapsed = min(max((today - sprint.start_date).days, 0), total_days)
    ideal = max(0.0, total - (total / total_days) * elapsed)

    return Burndown(
        total_points=total,
        completed_points=completed,
        remaining_points=total - completed,
        ideal_remaining=round_half_up(ideal),
        total_days=total_days,
        elapsed_days=elapsed,
        start_date=sprint.start_date,
        end_date=sprint.end_date,
    )
