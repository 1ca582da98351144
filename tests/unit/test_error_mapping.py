# tests/unit/test_error_mapping.py
"""
Typed engine exceptions → HTTP status codes.
"""

import pytest

from tsklets.core import (
    ApplicationException,
    ConfigurationException,
    ConflictException,
    PermissionDeniedException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from tsklets.shared.api.middleware import status_code_for


@pytest.mark.parametrize(
    "exc, expected",
    [
        (ValidationException("Please provide a reason for cancellation"), 400),
        (PermissionDeniedException("close"), 403),
        (ResourceNotFoundException("Ticket", "t-1"), 404),
        (ConflictException("Another sprint is already active. Complete it first."), 409),
        (RepositoryException("database unavailable"), 500),
        (ConfigurationException("bad workflow file"), 422),
        (ApplicationException("something else"), 422),
    ],
)
def test_status_code_for(exc, expected):
    assert status_code_for(exc) == expected
