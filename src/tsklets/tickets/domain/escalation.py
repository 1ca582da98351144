"""
Escalation Tracker
==================

SLA age of tickets pushed to the internal queue, and the label-based
escalation flag.

Ages are computed on read; nothing here schedules or stores them.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from tsklets.config import ESCALATED_LABEL, EscalationReason, SLAUrgency
from tsklets.shared.infrastructure.clock import as_utc, utcnow

DEFAULT_WARNING_HOURS = 8
DEFAULT_CRITICAL_HOURS = 24


@dataclass(frozen=True)
class SLAAge:
    """Elapsed time since a ticket was pushed to the internal queue."""

    hours: int
    display: str
    urgency: SLAUrgency


NOT_PUSHED = SLAAge(hours=0, display="-", urgency=SLAUrgency.NORMAL)


def format_age(elapsed: timedelta) -> str:
    total_minutes = max(int(elapsed.total_seconds() // 60), 0)
    hours, minutes = divmod(total_minutes, 60)

    if hours >= 24:
        return f"{hours // 24}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def urgency_for(
    hours: int,
    warning_hours: int = DEFAULT_WARNING_HOURS,
    critical_hours: int = DEFAULT_CRITICAL_HOURS,
) -> SLAUrgency:
    if hours >= critical_hours:
        return SLAUrgency.CRITICAL
    if hours >= warning_hours:
        return SLAUrgency.WARNING
    return SLAUrgency.NORMAL


def sla_age(
    pushed_at: Optional[datetime],
    now: Optional[datetime] = None,
    *,
    warning_hours: int = DEFAULT_WARNING_HOURS,
    critical_hours: int = DEFAULT_CRITICAL_HOURS,
) -> SLAAge:
    """
    Compute SLA age for a push timestamp.

    Args:
        pushed_at: When the ticket entered the internal queue (None if never)
        now: Evaluation time, defaults to the current UTC time
        warning_hours: Hours at which urgency becomes warning
        critical_hours: Hours at which urgency becomes critical

    Returns:
        SLAAge with whole elapsed hours, a display string and urgency.
        A timestamp in the future counts as zero elapsed time.
    """
    if pushed_at is None:
        return NOT_PUSHED

    now = as_utc(now) if now else utcnow()
    elapsed = now - as_utc(pushed_at)
    if elapsed < timedelta(0):
        elapsed = timedelta(0)

    hours = int(elapsed.total_seconds() // 3600)
    return SLAAge(
        hours=hours,
        display=format_age(elapsed),
        urgency=urgency_for(hours, warning_hours, critical_hours),
    )


def is_escalated(labels: Iterable[str]) -> bool:
    return ESCALATED_LABEL in labels


class EscalationTracker:
    """
    Applies configured thresholds and the escalate / de-escalate mutations.
    """

    def __init__(
        self,
        warning_hours: int = DEFAULT_WARNING_HOURS,
        critical_hours: int = DEFAULT_CRITICAL_HOURS,
    ):
        if critical_hours <= warning_hours:
            raise ValueError("critical_hours must be greater than warning_hours")
        self.warning_hours = warning_hours
        self.critical_hours = critical_hours

    def age(self, ticket, now: Optional[datetime] = None) -> SLAAge:
        return sla_age(
            ticket.pushed_to_systech_at,
            now,
            warning_hours=self.warning_hours,
            critical_hours=self.critical_hours,
        )

    @staticmethod
    def escalate(
        ticket,
        reason: EscalationReason,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Flag the ticket; the push timestamp is kept if already set."""
        now = now or utcnow()
        ticket.add_label(ESCALATED_LABEL)
        ticket.escalation_reason = EscalationReason(reason)
        ticket.escalation_note = note.strip() if note and note.strip() else None
        if ticket.pushed_to_systech_at is None:
            ticket.pushed_to_systech_at = now
        ticket.updated_at = now

    @staticmethod
    def de_escalate(ticket, now: Optional[datetime] = None) -> None:
        ticket.remove_label(ESCALATED_LABEL)
        ticket.updated_at = now or utcnow()
