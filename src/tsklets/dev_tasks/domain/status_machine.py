"""
Dev Task Status Machine
========================

Open state machine: any status in the closed set may follow any other.
Unknown values are rejected; entering `blocked` without a reason is
accepted but reported back as a warning for the UI.
"""

from datetime import datetime
from typing import List, Optional, Union

from tsklets.config import RATING_RANGE, STORY_POINT_SCALE, DevTaskStatus, Resolution
from tsklets.core import ValidationException
from tsklets.dev_tasks.domain.entities import DevTask, RoleAssignment
from tsklets.shared.infrastructure.clock import utcnow

BLOCKED_WITHOUT_REASON = "blocked_without_reason"

MISSING_ROLES_MESSAGE = "Please assign Implementor, Developer, and Tester"


def parse_dev_task_status(value: Union[DevTaskStatus, str]) -> DevTaskStatus:
    try:
        return DevTaskStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in DevTaskStatus)
        raise ValidationException(f"Invalid status: {value}. Valid statuses: {valid}")


def require_roles(
    implementor_id: Optional[int],
    developer_id: Optional[int],
    tester_id: Optional[int],
) -> RoleAssignment:
    """All three roles are mandatory."""
    missing = [
        name for name, value in (
            ("implementor_id", implementor_id),
            ("developer_id", developer_id),
            ("tester_id", tester_id),
        )
        if value is None
    ]
    if missing:
        raise ValidationException(MISSING_ROLES_MESSAGE, {"missing": missing})
    return RoleAssignment(implementor_id, developer_id, tester_id)


def validate_story_points(points: Optional[int]) -> Optional[int]:
    if points is not None and points not in STORY_POINT_SCALE:
        scale = ", ".join(str(p) for p in STORY_POINT_SCALE)
        raise ValidationException(f"Story points must be one of {scale}")
    return points


def validate_priority(priority: Optional[int]) -> Optional[int]:
    if priority is not None and priority not in RATING_RANGE:
        raise ValidationException("Priority must be between 1 (critical) and 5 (trivial)")
    return priority


def apply_dev_task_status(
    task: DevTask,
    new_status: Union[DevTaskStatus, str],
    blocked_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[str]:
    """
    Move a task to `new_status`.

    Returns:
        UX warnings (possibly empty), e.g. BLOCKED_WITHOUT_REASON
    """
    target = parse_dev_task_status(new_status)
    now = now or utcnow()
    warnings = []

    if target == DevTaskStatus.BLOCKED:
        reason = blocked_reason.strip() if blocked_reason and blocked_reason.strip() else None
        task.blocked_reason = reason or (task.blocked_reason if task.status == DevTaskStatus.BLOCKED else None)
        if not task.blocked_reason:
            warnings.append(BLOCKED_WITHOUT_REASON)
    else:
        task.blocked_reason = None

    if target == DevTaskStatus.DONE:
        if task.closed_at is None:
            task.closed_at = now
    else:
        task.closed_at = None
        task.resolution = None
        task.resolution_note = None

    task.status = target
    task.updated_at = now
    return warnings


def close(task: DevTask, resolution: Union[Resolution, str], note: Optional[str] = None, now: Optional[datetime] = None) -> None:
    """Finish a task with a resolution."""
    try:
        resolution = Resolution(resolution)
    except ValueError:
        valid = ", ".join(r.value for r in Resolution)
        raise ValidationException(f"Invalid resolution: {resolution}. Valid resolutions: {valid}")

    now = now or utcnow()
    task.status = DevTaskStatus.DONE
    task.resolution = resolution
    task.resolution_note = note
    task.blocked_reason = None
    task.closed_at = now
    task.updated_at = now
