# tests/unit/test_escalation.py
"""
Tests for SLA age and label-based escalation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tsklets.config import ESCALATED_LABEL, EscalationReason, SLAUrgency, TicketStatus, TicketType
from tsklets.tickets.domain import EscalationTracker, Ticket, is_escalated, sla_age
from tsklets.tickets.domain.escalation import NOT_PUSHED, format_age

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class TestSLAAge:
    """Urgency thresholds and display strings."""

    def test_never_pushed(self):
        assert sla_age(None, NOW) == NOT_PUSHED

    @pytest.mark.parametrize(
        "elapsed,urgency",
        [
            (timedelta(hours=7, minutes=59), SLAUrgency.NORMAL),
            (timedelta(hours=8), SLAUrgency.WARNING),
            (timedelta(hours=23, minutes=59), SLAUrgency.WARNING),
            (timedelta(hours=24), SLAUrgency.CRITICAL),
        ],
    )
    def test_urgency_boundaries(self, elapsed, urgency):
        assert sla_age(NOW - elapsed, NOW).urgency == urgency

    def test_whole_hours(self):
        age = sla_age(NOW - timedelta(hours=3, minutes=5), NOW)
        assert age.hours == 3
        assert age.display == "3h 5m"

    def test_future_push_counts_as_zero(self):
        age = sla_age(NOW + timedelta(hours=2), NOW)
        assert age.hours == 0
        assert age.display == "0m"
        assert age.urgency == SLAUrgency.NORMAL

    def test_naive_timestamps_are_treated_as_utc(self):
        pushed = datetime(2026, 3, 2, 2, 0)
        assert sla_age(pushed, NOW).hours == 10

    def test_custom_thresholds(self):
        age = sla_age(NOW - timedelta(hours=5), NOW, warning_hours=4, critical_hours=6)
        assert age.urgency == SLAUrgency.WARNING


class TestFormatAge:

    @pytest.mark.parametrize(
        "elapsed,display",
        [
            (timedelta(minutes=45), "45m"),
            (timedelta(hours=3, minutes=5), "3h 5m"),
            (timedelta(days=2, hours=3, minutes=40), "2d 3h"),
            (timedelta(seconds=-30), "0m"),
        ],
    )
    def test_display(self, elapsed, display):
        assert format_age(elapsed) == display


class TestEscalationTracker:

    @staticmethod
    def _ticket(**overrides) -> Ticket:
        values = dict(
            id="t-1",
            issue_key="CRM-S-001",
            product_id="p-1",
            type=TicketType.SUPPORT,
            status=TicketStatus.OPEN,
            title="Slow reports",
            created_by=1,
            created_at=NOW,
            updated_at=NOW,
            client_id=42,
        )
        values.update(overrides)
        return Ticket(**values)

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValueError):
            EscalationTracker(warning_hours=24, critical_hours=8)

    def test_escalate_sets_label_and_push_time(self):
        ticket = self._ticket()
        EscalationTracker.escalate(ticket, EscalationReason.PRODUCTION_DOWN, note=" overdue ", now=NOW)
        assert ticket.is_escalated
        assert is_escalated(ticket.labels)
        assert ticket.escalation_reason == EscalationReason.PRODUCTION_DOWN
        assert ticket.escalation_note == "overdue"
        assert ticket.pushed_to_systech_at == NOW

    def test_escalate_keeps_existing_push_time(self):
        pushed = NOW - timedelta(hours=30)
        ticket = self._ticket(pushed_to_systech_at=pushed)
        EscalationTracker.escalate(ticket, EscalationReason.CUSTOMER_IMPACT, now=NOW)
        assert ticket.pushed_to_systech_at == pushed
        assert EscalationTracker().age(ticket, NOW).urgency == SLAUrgency.CRITICAL

    def test_escalate_twice_keeps_one_label(self):
        ticket = self._ticket()
        EscalationTracker.escalate(ticket, EscalationReason.PRODUCTION_DOWN, now=NOW)
        EscalationTracker.escalate(ticket, EscalationReason.PRODUCTION_DOWN, now=NOW)
        assert ticket.labels.count(ESCALATED_LABEL) == 1

    def test_de_escalate_removes_label_only(self):
        ticket = self._ticket(labels=["billing", ESCALATED_LABEL])
        EscalationTracker.de_escalate(ticket, now=NOW)
        assert ticket.labels == ["billing"]
        assert not ticket.is_escalated
