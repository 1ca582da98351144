"""
Core Exceptions
================

Typed exceptions for the lifecycle engine.

Every engine operation either returns its entity or raises exactly one of
these. Business-rule rejections (validation, permission, conflict, missing
resource) are expected outcomes that the HTTP edge turns into 4xx responses;
RepositoryException is the fatal path for storage failures.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(DomainException):
    """A required field is missing or a value is outside its allowed set."""


class ConflictException(DomainException):
    """An invariant would be violated, e.g. a second active sprint."""


class PermissionDeniedException(DomainException):
    """The actor's role does not allow the requested action."""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.action = action
        super().__init__(message, details or ({"action": action} if action else None))


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""
