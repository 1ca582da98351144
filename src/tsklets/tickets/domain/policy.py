"""
Role-Gated Action Policy
=========================

Decides which actions a (status, role) pair allows on a ticket.

This is the only place the table lives. The HTTP layer exposes it so
clients can render buttons, and the status machine re-checks it before
every transition.
"""

from typing import Dict, FrozenSet, Union

from tsklets.config import PRIVILEGED_ROLES, TicketAction, TicketStatus, UserRole
from tsklets.core import Actor, PermissionDeniedException

# Offered only to admin / company_admin
_ADMIN_ACTIONS: Dict[TicketStatus, FrozenSet[TicketAction]] = {
    TicketStatus.PENDING_INTERNAL_REVIEW: frozenset({TicketAction.CANCEL}),
    TicketStatus.RESOLVED: frozenset({TicketAction.CLOSE}),
}

# Offered to any authenticated actor
_COMMON_ACTIONS: Dict[TicketStatus, FrozenSet[TicketAction]] = {
    TicketStatus.OPEN: frozenset({TicketAction.CANCEL}),
    TicketStatus.IN_PROGRESS: frozenset({TicketAction.CANCEL}),
    TicketStatus.RESOLVED: frozenset({TicketAction.CANCEL, TicketAction.REOPEN}),
    TicketStatus.WAITING_FOR_CUSTOMER: frozenset({TicketAction.CANCEL}),
    TicketStatus.REBUTTAL: frozenset({TicketAction.CANCEL}),
    TicketStatus.CLOSED: frozenset({TicketAction.REOPEN}),
    TicketStatus.CANCELLED: frozenset(),
}

_NO_DEV_TASK = frozenset({TicketStatus.CLOSED, TicketStatus.RESOLVED, TicketStatus.CANCELLED})
_NO_REBUTTAL = frozenset({TicketStatus.REBUTTAL, TicketStatus.CLOSED, TicketStatus.RESOLVED})
_NO_REASSIGN = frozenset({TicketStatus.PENDING_INTERNAL_REVIEW, TicketStatus.CLOSED})


def available_actions(
    status: Union[TicketStatus, str],
    role: Union[UserRole, str],
    *,
    has_client: bool,
) -> FrozenSet[TicketAction]:
    """
    Actions offered for a ticket in `status` to an actor with `role`.

    Args:
        status: Current ticket status
        role: Actor role
        has_client: Whether the ticket belongs to a client

    Returns:
        The set of allowed actions (possibly empty)
    """
    status = TicketStatus(status)
    role = UserRole(role)

    actions = set(_COMMON_ACTIONS.get(status, frozenset()))
    if role in PRIVILEGED_ROLES:
        actions |= _ADMIN_ACTIONS.get(status, frozenset())

    if status not in _NO_DEV_TASK:
        actions.add(TicketAction.CREATE_DEV_TASK)
    if status not in _NO_REBUTTAL:
        actions.add(TicketAction.MARK_REBUTTAL)
    if has_client and status not in _NO_REASSIGN:
        actions.add(TicketAction.REASSIGN_TO_INTERNAL)

    return frozenset(actions)


def is_action_allowed(
    action: TicketAction,
    status: Union[TicketStatus, str],
    role: Union[UserRole, str],
    *,
    has_client: bool,
) -> bool:
    return action in available_actions(status, role, has_client=has_client)


def require_action(
    action: TicketAction,
    status: Union[TicketStatus, str],
    actor: Actor,
    *,
    has_client: bool,
) -> None:
    """Raise PermissionDeniedException unless the actor may perform `action`."""
    if not is_action_allowed(action, status, actor.role, has_client=has_client):
        raise PermissionDeniedException(
            f"Action '{TicketAction(action).value}' is not allowed for role "
            f"'{actor.role.value}' on a ticket in status '{TicketStatus(status).value}'",
            action=TicketAction(action).value,
        )
