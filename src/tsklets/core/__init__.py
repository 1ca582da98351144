"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from tsklets.core.actors import Actor
from tsklets.core.exceptions import (
    ApplicationException,
    DomainException,
    ValidationException,
    ConflictException,
    PermissionDeniedException,
    ResourceNotFoundException,
    RepositoryException,
    ConfigurationException,
)

__all__ = [
    "Actor",
    "ApplicationException",
    "DomainException",
    "ValidationException",
    "ConflictException",
    "PermissionDeniedException",
    "ResourceNotFoundException",
    "RepositoryException",
    "ConfigurationException",
]
