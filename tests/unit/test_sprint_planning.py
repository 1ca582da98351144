# tests/unit/test_sprint_planning.py
"""
Tests for sprint naming, window arithmetic, velocity and burndown.
"""

from datetime import date, datetime, timezone

import pytest

from tsklets.config import DevTaskStatus, DevTaskType, SprintStatus
from tsklets.dev_tasks.domain import DevTask, RoleAssignment
from tsklets.sprints.domain import (
    Sprint,
    burndown,
    calculate_end_date,
    compute_velocity,
    generate_sprint_name,
    round_half_up,
    velocity_trend,
)

CREATED = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_sprint(name="Jan-I-26", start=date(2026, 1, 10), status=SprintStatus.ACTIVE, velocity=None, **overrides):
    values = dict(
        id=name,
        name=name,
        start_date=start,
        end_date=calculate_end_date(start),
        status=status,
        created_at=CREATED,
        updated_at=CREATED,
        velocity=velocity,
    )
    values.update(overrides)
    return Sprint(**values)


def make_task(points, status=DevTaskStatus.TODO) -> DevTask:
    return DevTask(
        id=None,
        issue_key="CRM-T001",
        product_id="p-1",
        type=DevTaskType.TASK,
        status=status,
        title="Task",
        roles=RoleAssignment(10, 11, 12),
        created_at=CREATED,
        updated_at=CREATED,
        story_points=points,
    )


class TestNaming:

    @pytest.mark.parametrize(
        "start,name",
        [
            (date(2026, 1, 10), "Jan-I-26"),
            (date(2026, 1, 15), "Jan-I-26"),
            (date(2026, 1, 16), "Jan-II-26"),
            (date(2026, 12, 31), "Dec-II-26"),
            (date(2009, 3, 1), "Mar-I-09"),
        ],
    )
    def test_generate_name(self, start, name):
        assert generate_sprint_name(start) == name


class TestWindow:

    def test_fourteen_day_inclusive_window(self):
        assert calculate_end_date(date(2026, 1, 10)) == date(2026, 1, 23)

    def test_custom_length(self):
        assert calculate_end_date(date(2026, 2, 2), length_days=7) == date(2026, 2, 8)

    def test_window_crosses_year_end(self):
        assert calculate_end_date(date(2026, 12, 25)) == date(2027, 1, 7)


class TestVelocity:

    def test_only_done_points_count(self):
        tasks = [
            make_task(5, DevTaskStatus.DONE),
            make_task(3, DevTaskStatus.DONE),
            make_task(8, DevTaskStatus.TESTING),
            make_task(None, DevTaskStatus.DONE),
        ]
        assert compute_velocity(tasks) == 8

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_trend_uses_completed_sprints_oldest_first(self):
        sprints = [
            make_sprint("Feb-I-26", date(2026, 2, 1), SprintStatus.COMPLETED, velocity=10),
            make_sprint("Jan-I-26", date(2026, 1, 1), SprintStatus.COMPLETED, velocity=20),
            make_sprint("Feb-II-26", date(2026, 2, 16), SprintStatus.ACTIVE),
            make_sprint("Jan-II-26", date(2026, 1, 16), SprintStatus.CANCELLED, velocity=99),
        ]
        trend = velocity_trend(sprints)
        assert [p.name for p in trend.points] == ["Jan-I-26", "Feb-I-26"]
        assert [p.height_ratio for p in trend.points] == [1.0, 0.5]
        assert trend.average == 15

    def test_trend_keeps_last_history_entries(self):
        sprints = [
            make_sprint(f"S{i}", date(2026, 1, 1 + i), SprintStatus.COMPLETED, velocity=i)
            for i in range(8)
        ]
        trend = velocity_trend(sprints, history=6)
        assert [p.velocity for p in trend.points] == [2, 3, 4, 5, 6, 7]
        assert trend.average == 5  # 4.5 rounds up

    def test_trend_with_zero_peak(self):
        trend = velocity_trend([make_sprint(status=SprintStatus.COMPLETED, velocity=0)])
        assert trend.points[0].height_ratio == 0.0
        assert trend.average == 0

    def test_empty_trend(self):
        trend = velocity_trend([])
        assert trend.points == []
        assert trend.average == 0


class TestBurndown:

    def test_midway(self):
        sprint = make_sprint(start=date(2026, 1, 10))
        tasks = [make_task(8, DevTaskStatus.DONE), make_task(5), make_task(1)]
        result = burndown(sprint, tasks, today=date(2026, 1, 17))
        assert result.total_points == 14
        assert result.completed_points == 8
        assert result.remaining_points == 6
        assert result.total_days == 14
        assert result.elapsed_days == 7
        assert result.ideal_remaining == 7

    def test_before_start_clamps_to_zero(self):
        sprint = make_sprint(start=date(2026, 1, 10))
        result = burndown(sprint, [make_task(5)], today=date(2026, 1, 1))
        assert result.elapsed_days == 0
        assert result.ideal_remaining == 5

    def test_after_end_clamps_to_window(self):
        sprint = make_sprint(start=date(2026, 1, 10))
        result = burndown(sprint, [make_task(5)], today=date(2026, 3, 1))
        assert result.elapsed_days == 14
        assert result.ideal_remaining == 0
