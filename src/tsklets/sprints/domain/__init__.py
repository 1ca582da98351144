"""
Sprints Domain Layer
====================

Sprint entities and the planning math (naming, windows, velocity,
burndown).
"""

from tsklets.sprints.domain.entities import Sprint, SprintCapacity, SprintRetro
from tsklets.sprints.domain.planning import (
    MONTH_ABBREVIATIONS,
    Burndown,
    VelocityPoint,
    VelocityTrend,
    burndown,
    calculate_end_date,
    compute_velocity,
    generate_sprint_name,
    round_half_up,
    velocity_trend,
)

__all__ = [
    "Sprint",
    "SprintCapacity",
    "SprintRetro",
    "MONTH_ABBREVIATIONS",
    "Burndown",
    "VelocityPoint",
    "VelocityTrend",
    "burndown",
    "calculate_end_date",
    "compute_velocity",
    "generate_sprint_name",
    "round_half_up",
    "velocity_trend",
]
