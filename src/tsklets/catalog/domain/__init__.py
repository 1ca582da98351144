"""
Catalog Domain Layer
====================

Products, product structure (module → component, addon, epic → feature)
and issue-key formatting. Pure Python, no infrastructure dependencies.
"""

from tsklets.catalog.domain.entities import (
    Product,
    ProductModule,
    ProductComponent,
    ProductAddon,
    Epic,
    Feature,
    DefaultTeam,
)
from tsklets.catalog.domain.issue_keys import (
    TICKET_SCOPE,
    DEV_TASK_SCOPE,
    ParsedIssueKey,
    ticket_type_code,
    dev_task_type_code,
    format_ticket_key,
    format_dev_task_key,
    parse_issue_key,
    parse_dev_task_key,
    is_valid_issue_key,
)

__all__ = [
    "Product",
    "ProductModule",
    "ProductComponent",
    "ProductAddon",
    "Epic",
    "Feature",
    "DefaultTeam",
    "TICKET_SCOPE",
    "DEV_TASK_SCOPE",
    "ParsedIssueKey",
    "ticket_type_code",
    "dev_task_type_code",
    "format_ticket_key",
    "format_dev_task_key",
    "parse_issue_key",
    "parse_dev_task_key",
    "is_valid_issue_key",
]
