"""
Catalog Controllers (API Routes)
=================================

FastAPI routes for products and product structure.

Controllers are thin - they delegate to application services.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.catalog.application import (
    CatalogService,
    DefaultTeamDTO,
    NamedItemCreateDTO,
    ProductCreateDTO,
    ProductResponse,
    StructureItemResponse,
    TitledItemCreateDTO,
)
from tsklets.catalog.domain import DefaultTeam, Product
from tsklets.catalog.infrastructure import SQLAlchemyCatalogRepository
from tsklets.core import Actor
from tsklets.infrastructure.database import get_session
from tsklets.shared.api.dependencies import get_actor, require_internal_actor

router = APIRouter(prefix="/catalog", tags=["Catalog"])


# ========== Dependencies ==========

async def get_catalog_service(
    session: AsyncSession = Depends(get_session)
) -> CatalogService:
    """Get catalog service instance."""
    return CatalogService(SQLAlchemyCatalogRepository(session))


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        code=product.code,
        name=product.name,
        description=product.description,
        default_team=DefaultTeamDTO(
            implementor_id=product.default_implementor_id,
            developer_id=product.default_developer_id,
            tester_id=product.default_tester_id,
        ),
    )


# ========== Products ==========

@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(
    body: ProductCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    team = None
    if body.default_team:
        team = DefaultTeam(
            implementor_id=body.default_team.implementor_id,
            developer_id=body.default_team.developer_id,
            tester_id=body.default_team.tester_id,
        )
    product = await service.create_product(body.code, body.name, body.description, team)
    return _product_response(product)


@router.get("/products", response_model=List[ProductResponse], summary="List products")
async def list_products(
    actor: Actor = Depends(get_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    return [_product_response(p) for p in await service.list_products()]


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get a product")
async def get_product(
    product_id: str,
    actor: Actor = Depends(get_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    return _product_response(await service.get_product(product_id))


@router.put(
    "/products/{product_id}/default-team",
    response_model=ProductResponse,
    summary="Set the default implementor, developer and tester",
    description="Used by callers to pre-fill dev task conversion for tickets of this product.",
)
async def set_default_team(
    product_id: str,
    body: DefaultTeamDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    team = DefaultTeam(
        implementor_id=body.implementor_id,
        developer_id=body.developer_id,
        tester_id=body.tester_id,
    )
    return _product_response(await service.set_default_team(product_id, team))


# ========== Structure ==========

@router.post(
    "/products/{product_id}/modules",
    response_model=StructureItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_module(
    product_id: str,
    body: NamedItemCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    module = await service.create_module(product_id, body.name)
    return StructureItemResponse(id=module.id, parent_id=module.product_id, name=module.name)


@router.post(
    "/modules/{module_id}/components",
    response_model=StructureItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_component(
    module_id: str,
    body: NamedItemCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    component = await service.create_component(module_id, body.name)
    return StructureItemResponse(id=component.id, parent_id=component.module_id, name=component.name)


@router.post(
    "/products/{product_id}/addons",
    response_model=StructureItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_addon(
    product_id: str,
    body: NamedItemCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    addon = await service.create_addon(product_id, body.name)
    return StructureItemResponse(id=addon.id, parent_id=addon.product_id, name=addon.name)


@router.post(
    "/products/{product_id}/epics",
    response_model=StructureItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_epic(
    product_id: str,
    body: TitledItemCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    epic = await service.create_epic(product_id, body.title)
    return StructureItemResponse(id=epic.id, parent_id=epic.product_id, name=epic.title)


@router.post(
    "/epics/{epic_id}/features",
    response_model=StructureItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_feature(
    epic_id: str,
    body: TitledItemCreateDTO,
    actor: Actor = Depends(require_internal_actor),
    service: CatalogService = Depends(get_catalog_service),
):
    feature = await service.create_feature(epic_id, body.title)
    return StructureItemResponse(id=feature.id, parent_id=feature.epic_id, name=feature.title)
