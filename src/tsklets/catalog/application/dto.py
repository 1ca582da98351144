"""
Catalog Application DTOs
=========================

Pydantic models for the catalog API.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DefaultTeamDTO(BaseModel):
    implementor_id: Optional[int] = None
    developer_id: Optional[int] = None
    tester_id: Optional[int] = None


class ProductCreateDTO(BaseModel):
    code: str = Field(..., min_length=1, max_length=20, description="Issue-key prefix, e.g. CRM")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    default_team: Optional[DefaultTeamDTO] = None


class ProductResponse(BaseModel):
    id: str
    code: str
    name: str
    description: Optional[str] = None
    default_team: DefaultTeamDTO


class NamedItemCreateDTO(BaseModel):
    """Body for modules, components and addons."""
    name: str = Field(..., min_length=1)


class TitledItemCreateDTO(BaseModel):
    """Body for epics and features."""
    title: str = Field(..., min_length=1)


class StructureItemResponse(BaseModel):
    id: str
    parent_id: str = Field(..., description="Owning product, module or epic")
    name: str
