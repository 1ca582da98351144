"""
Issue Keys
==========

Human-readable, product-prefixed identifiers.

Tickets:   {PRODUCT}-{TYPE}-{NNN}   e.g. TKL-S-001, HRMS-F-023
Dev tasks: {PRODUCT}-{TYPE}{NNN}    e.g. CRM-B001, CRM-T042

Numbers are zero-padded to three digits and keep growing past 999.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from tsklets.config import (
    DEV_TASK_TYPE_CODES,
    TICKET_TYPE_CODES,
    DevTaskType,
    TicketType,
)
from tsklets.core import ValidationException

TICKET_SCOPE = "ticket"
DEV_TASK_SCOPE = "dev_task"

_VALID_TICKET_CODES = frozenset(TICKET_TYPE_CODES.values())
_TICKET_KEY_RE = re.compile(r"^([A-Z0-9-]+)-([A-Z])-(\d+)$")
_DEV_TASK_KEY_RE = re.compile(r"^([A-Z0-9-]+)-([TB])(\d+)$")


@dataclass(frozen=True)
class ParsedIssueKey:
    product_code: str
    type_code: str
    sequence_num: int


def ticket_type_code(ticket_type: Union[TicketType, str]) -> str:
    try:
        return TICKET_TYPE_CODES[TicketType(ticket_type)]
    except ValueError:
        valid = ", ".join(t.value for t in TicketType)
        raise ValidationException(f"Invalid ticket type: {ticket_type}. Valid types: {valid}")


def dev_task_type_code(task_type: Union[DevTaskType, str]) -> str:
    try:
        return DEV_TASK_TYPE_CODES[DevTaskType(task_type)]
    except ValueError:
        raise ValidationException(f"Invalid dev task type: {task_type}. Valid types: task, bug")


def format_ticket_key(product_code: str, type_code: str, sequence_num: int) -> str:
    return f"{product_code}-{type_code}-{sequence_num:03d}"


def format_dev_task_key(product_code: str, type_code: str, sequence_num: int) -> str:
    return f"{product_code}-{type_code}{sequence_num:03d}"


def parse_issue_key(key: str) -> Optional[ParsedIssueKey]:
    """Parse a ticket key; None when the key is malformed or the type code unknown."""
    match = _TICKET_KEY_RE.match(key or "")
    if not match:
        return None

    product_code, type_code, seq = match.groups()
    if type_code not in _VALID_TICKET_CODES:
        return None

    return ParsedIssueKey(product_code, type_code, int(seq))


def parse_dev_task_key(key: str) -> Optional[ParsedIssueKey]:
    match = _DEV_TASK_KEY_RE.match(key or "")
    if not match:
        return None
    product_code, type_code, seq = match.groups()
    return ParsedIssueKey(product_code, type_code, int(seq))


def is_valid_issue_key(key: str) -> bool:
    return parse_issue_key(key) is not None
