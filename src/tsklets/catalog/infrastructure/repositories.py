"""
Catalog Infrastructure Repositories
=====================================

Concrete implementations of the catalog repository interfaces using
SQLAlchemy.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tsklets.catalog.application import ICatalogRepository, IIssueKeySequence
from tsklets.catalog.domain import (
    Epic,
    Feature,
    Product,
    ProductAddon,
    ProductComponent,
    ProductModule,
)
from tsklets.catalog.infrastructure.models import (
    EpicModel,
    FeatureModel,
    ProductAddonModel,
    ProductComponentModel,
    ProductModel,
    ProductModuleModel,
    ProductSequenceModel,
)
from tsklets.core import RepositoryException
from tsklets.infrastructure.database import from_uuid, to_uuid


def _product_to_entity(model: ProductModel) -> Product:
    return Product(
        id=from_uuid(model.id),
        code=model.code,
        name=model.name,
        description=model.description,
        default_implementor_id=model.default_implementor_id,
        default_developer_id=model.default_developer_id,
        default_tester_id=model.default_tester_id,
    )


class SQLAlchemyCatalogRepository(ICatalogRepository):
    """
    SQLAlchemy implementation of the catalog repository.

    Malformed ids are treated as unknown ids.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get(self, model_cls, entity_id: Optional[str]):
        key = to_uuid(entity_id)
        if key is None:
            return None
        return await self._session.get(model_cls, key)

    # ========== Products ==========

    async def add_product(self, product: Product) -> Product:
        model = ProductModel(
            code=product.code,
            name=product.name,
            description=product.description,
            default_implementor_id=product.default_implementor_id,
            default_developer_id=product.default_developer_id,
            default_tester_id=product.default_tester_id,
        )
        self._session.add(model)
        await self._session.flush()
        return _product_to_entity(model)

    async def get_product(self, product_id: str) -> Optional[Product]:
        model = await self._get(ProductModel, product_id)
        return _product_to_entity(model) if model else None

    async def get_product_by_code(self, code: str) -> Optional[Product]:
        stmt = select(ProductModel).where(ProductModel.code == code.strip().upper())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _product_to_entity(model) if model else None

    async def list_products(self) -> List[Product]:
        result = await self._session.execute(select(ProductModel).order_by(ProductModel.name))
        return [_product_to_entity(m) for m in result.scalars().all()]

    async def update_product(self, product: Product) -> Product:
        model = await self._get(ProductModel, product.id)
        if not model:
            raise RepositoryException(f"Product {product.id} not found")

        model.name = product.name
        model.description = product.description
        model.default_implementor_id = product.default_implementor_id
        model.default_developer_id = product.default_developer_id
        model.default_tester_id = product.default_tester_id

        await self._session.flush()
        return _product_to_entity(model)

    # ========== Structure ==========

    async def add_module(self, module: ProductModule) -> ProductModule:
        model = ProductModuleModel(product_id=to_uuid(module.product_id), name=module.name)
        self._session.add(model)
        await self._session.flush()
        return ProductModule(id=from_uuid(model.id), product_id=module.product_id, name=model.name)

    async def get_module(self, module_id: str) -> Optional[ProductModule]:
        model = await self._get(ProductModuleModel, module_id)
        if not model:
            return None
        return ProductModule(id=from_uuid(model.id), product_id=from_uuid(model.product_id), name=model.name)

    async def add_component(self, component: ProductComponent) -> ProductComponent:
        model = ProductComponentModel(module_id=to_uuid(component.module_id), name=component.name)
        self._session.add(model)
        await self._session.flush()
        return ProductComponent(id=from_uuid(model.id), module_id=component.module_id, name=model.name)

    async def get_component(self, component_id: str) -> Optional[ProductComponent]:
        model = await self._get(ProductComponentModel, component_id)
        if not model:
            return None
        return ProductComponent(id=from_uuid(model.id), module_id=from_uuid(model.module_id), name=model.name)

    async def add_addon(self, addon: ProductAddon) -> ProductAddon:
        model = ProductAddonModel(product_id=to_uuid(addon.product_id), name=addon.name)
        self._session.add(model)
        await self._session.flush()
        return ProductAddon(id=from_uuid(model.id), product_id=addon.product_id, name=model.name)

    async def get_addon(self, addon_id: str) -> Optional[ProductAddon]:
        model = await self._get(ProductAddonModel, addon_id)
        if not model:
            return None
        return ProductAddon(id=from_uuid(model.id), product_id=from_uuid(model.product_id), name=model.name)

    async def add_epic(self, epic: Epic) -> Epic:
        model = EpicModel(product_id=to_uuid(epic.product_id), title=epic.title)
        self._session.add(model)
        await self._session.flush()
        return Epic(id=from_uuid(model.id), product_id=epic.product_id, title=model.title)

    async def get_epic(self, epic_id: str) -> Optional[Epic]:
        model = await self._get(EpicModel, epic_id)
        if not model:
            return None
        return Epic(id=from_uuid(model.id), product_id=from_uuid(model.product_id), title=model.title)

    async def add_feature(self, feature: Feature) -> Feature:
        model = FeatureModel(epic_id=to_uuid(feature.epic_id), title=feature.title)
        self._session.add(model)
        await self._session.flush()
        return Feature(id=from_uuid(model.id), epic_id=feature.epic_id, title=model.title)

    async def get_feature(self, feature_id: str) -> Optional[Feature]:
        model = await self._get(FeatureModel, feature_id)
        if not model:
            return None
        return Feature(id=from_uuid(model.id), epic_id=from_uuid(model.epic_id), title=model.title)


class SQLAlchemyIssueKeySequence(IIssueKeySequence):
    """
    Row-locked counter per (product, scope, type code).

    The row is read FOR UPDATE so concurrent allocations on PostgreSQL
    serialize on it. SQLite ignores the lock clause; its single writer
    gives the same result.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def next_number(self, product_id: str, scope: str, type_code: str) -> int:
        product_uuid = to_uuid(product_id)
        if product_uuid is None:
            raise RepositoryException(f"Invalid product id: {product_id}")

        stmt = (
            select(ProductSequenceModel)
            .where(
                ProductSequenceModel.product_id == product_uuid,
                ProductSequenceModel.scope == scope,
                ProductSequenceModel.type_code == type_code,
            )
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is None:
            row = ProductSequenceModel(
                product_id=product_uuid,
                scope=scope,
                type_code=type_code,
                last_number=1,
            )
            self._session.add(row)
        else:
            row.last_number += 1

        await self._session.flush()
        return row.last_number
