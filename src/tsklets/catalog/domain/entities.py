"""
Catalog Domain Entities
========================

Products and their structure. These are reference data: dev tasks point at
them and are only valid when the references line up.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Product:
    """A product owned by the tenant; its code prefixes every issue key."""

    id: Optional[str]
    code: str
    name: str
    description: Optional[str] = None

    # Default dev-task team, used by callers to pre-fill conversion
    default_implementor_id: Optional[int] = None
    default_developer_id: Optional[int] = None
    default_tester_id: Optional[int] = None

    def __post_init__(self):
        if not self.code or not self.code.strip():
            raise ValueError("Product code is required")
        self.code = self.code.strip().upper()

    @property
    def has_default_team(self) -> bool:
        return None not in (
            self.default_implementor_id,
            self.default_developer_id,
            self.default_tester_id,
        )


@dataclass
class ProductModule:
    id: Optional[str]
    product_id: str
    name: str


@dataclass
class ProductComponent:
    """A component always lives inside one module."""
    id: Optional[str]
    module_id: str
    name: str


@dataclass
class ProductAddon:
    id: Optional[str]
    product_id: str
    name: str


@dataclass
class Epic:
    id: Optional[str]
    product_id: str
    title: str


@dataclass
class Feature:
    id: Optional[str]
    epic_id: str
    title: str


@dataclass(frozen=True)
class DefaultTeam:
    implementor_id: Optional[int]
    developer_id: Optional[int]
    tester_id: Optional[int]
