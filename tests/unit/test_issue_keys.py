# tests/unit/test_issue_keys.py
"""
Tests for issue key formatting and parsing.
"""

import pytest

from tsklets.catalog.domain import (
    Product,
    dev_task_type_code,
    format_dev_task_key,
    format_ticket_key,
    is_valid_issue_key,
    parse_dev_task_key,
    parse_issue_key,
    ticket_type_code,
)
from tsklets.config import DevTaskType, TicketType
from tsklets.core import ValidationException


class TestTypeCodes:

    @pytest.mark.parametrize(
        "ticket_type,code",
        [
            (TicketType.SUPPORT, "S"),
            (TicketType.BUG, "B"),
            (TicketType.TASK, "T"),
            (TicketType.FEATURE, "F"),
            (TicketType.FEATURE_REQUEST, "R"),
            (TicketType.EPIC, "E"),
            (TicketType.SPIKE, "K"),
            (TicketType.NOTE, "N"),
        ],
    )
    def test_ticket_codes(self, ticket_type, code):
        assert ticket_type_code(ticket_type) == code

    def test_unknown_ticket_type(self):
        with pytest.raises(ValidationException):
            ticket_type_code("incident")

    def test_dev_task_codes(self):
        assert dev_task_type_code(DevTaskType.TASK) == "T"
        assert dev_task_type_code("bug") == "B"

    def test_unknown_dev_task_type(self):
        with pytest.raises(ValidationException):
            dev_task_type_code("story")


class TestFormatting:

    def test_ticket_key_is_zero_padded(self):
        assert format_ticket_key("CRM", "S", 1) == "CRM-S-001"
        assert format_ticket_key("CRM", "B", 1234) == "CRM-B-1234"

    def test_dev_task_key_has_no_separator_before_number(self):
        assert format_dev_task_key("CRM", "T", 7) == "CRM-T007"

    def test_product_code_is_upper_cased(self):
        assert Product(id=None, code=" crm ", name="CRM").code == "CRM"

    def test_product_code_is_required(self):
        with pytest.raises(ValueError):
            Product(id=None, code="  ", name="CRM")


class TestParsing:

    def test_parse_ticket_key(self):
        parsed = parse_issue_key("CRM-S-042")
        assert parsed.product_code == "CRM"
        assert parsed.type_code == "S"
        assert parsed.sequence_num == 42

    def test_product_code_may_contain_dashes(self):
        parsed = parse_issue_key("MY-APP-B-012")
        assert parsed.product_code == "MY-APP"
        assert parsed.sequence_num == 12

    @pytest.mark.parametrize("key", ["", "CRM-001", "CRM-X-001", "crm-s-001", "CRM-S-"])
    def test_invalid_ticket_keys(self, key):
        assert parse_issue_key(key) is None
        assert not is_valid_issue_key(key)

    def test_parse_dev_task_key(self):
        parsed = parse_dev_task_key("CRM-B015")
        assert parsed.product_code == "CRM"
        assert parsed.type_code == "B"
        assert parsed.sequence_num == 15

    def test_ticket_key_is_not_a_dev_task_key(self):
        assert parse_dev_task_key("CRM-S-001") is None
