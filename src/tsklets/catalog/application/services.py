"""
Catalog Application Services
=============================

Product structure management and issue-key allocation.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

from tsklets.catalog.domain import (
    DEV_TASK_SCOPE,
    TICKET_SCOPE,
    DefaultTeam,
    Epic,
    Feature,
    Product,
    ProductAddon,
    ProductComponent,
    ProductModule,
    dev_task_type_code,
    format_dev_task_key,
    format_ticket_key,
    ticket_type_code,
)
from tsklets.config import DevTaskType, TicketType
from tsklets.core import ConflictException, ResourceNotFoundException, ValidationException
from tsklets.infrastructure.database import to_uuid
from tsklets.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ICatalogRepository(ABC):
    """Interface for product and product-structure data access."""

    @abstractmethod
    async def add_product(self, product: Product) -> Product:
        """Persist a new product and return it with its id."""

    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get product by id."""

    @abstractmethod
    async def get_product_by_code(self, code: str) -> Optional[Product]:
        """Get product by its issue-key code."""

    @abstractmethod
    async def list_products(self) -> List[Product]:
        """List all products ordered by name."""

    @abstractmethod
    async def update_product(self, product: Product) -> Product:
        """Update an existing product."""

    @abstractmethod
    async def add_module(self, module: ProductModule) -> ProductModule:
        """Persist a new module."""

    @abstractmethod
    async def get_module(self, module_id: str) -> Optional[ProductModule]:
        """Get module by id."""

    @abstractmethod
    async def add_component(self, component: ProductComponent) -> ProductComponent:
        """Persist a new component."""

    @abstractmethod
    async def get_component(self, component_id: str) -> Optional[ProductComponent]:
        """Get component by id."""

    @abstractmethod
    async def add_addon(self, addon: ProductAddon) -> ProductAddon:
        """Persist a new addon."""

    @abstractmethod
    async def get_addon(self, addon_id: str) -> Optional[ProductAddon]:
        """Get addon by id."""

    @abstractmethod
    async def add_epic(self, epic: Epic) -> Epic:
        """Persist a new epic."""

    @abstractmethod
    async def get_epic(self, epic_id: str) -> Optional[Epic]:
        """Get epic by id."""

    @abstractmethod
    async def add_feature(self, feature: Feature) -> Feature:
        """Persist a new feature."""

    @abstractmethod
    async def get_feature(self, feature_id: str) -> Optional[Feature]:
        """Get feature by id."""


class IIssueKeySequence(ABC):
    """Interface for per-product issue number counters."""

    @abstractmethod
    async def next_number(self, product_id: str, scope: str, type_code: str) -> int:
        """
        Allocate the next number for (product, scope, type code).

        The first allocation returns 1. Allocation happens inside the
        caller's transaction, so a rolled-back request frees its number.
        """


# ========== Application Services ==========

class CatalogService:
    """
    Service for products and their structure.

    Also answers the referential questions dev tasks depend on: does this
    component belong to that module, does the feature exist.
    """

    def __init__(self, catalog_repository: ICatalogRepository):
        self._repo = catalog_repository

    async def create_product(
        self,
        code: str,
        name: str,
        description: Optional[str] = None,
        default_team: Optional[DefaultTeam] = None,
    ) -> Product:
        try:
            product = Product(id=None, code=code, name=name, description=description)
        except ValueError as e:
            raise ValidationException(str(e))

        if await self._repo.get_product_by_code(product.code):
            raise ConflictException(f"Product code '{product.code}' is already in use")

        if default_team:
            product.default_implementor_id = default_team.implementor_id
            product.default_developer_id = default_team.developer_id
            product.default_tester_id = default_team.tester_id

        product = await self._repo.add_product(product)
        logger.info("Product created", extra={"product_id": product.id, "product_code": product.code})
        return product

    async def get_product(self, product_id: str) -> Product:
        product = await self._repo.get_product(product_id)
        if not product:
            raise ResourceNotFoundException("Product", product_id)
        return product

    async def list_products(self) -> List[Product]:
        return await self._repo.list_products()

    async def set_default_team(self, product_id: str, team: DefaultTeam) -> Product:
        product = await self.get_product(product_id)
        product.default_implementor_id = team.implementor_id
        product.default_developer_id = team.developer_id
        product.default_tester_id = team.tester_id
        return await self._repo.update_product(product)

    async def default_roles(self, product_id: str) -> DefaultTeam:
        """The product's default implementor/developer/tester (any may be unset)."""
        product = await self.get_product(product_id)
        return DefaultTeam(
            implementor_id=product.default_implementor_id,
            developer_id=product.default_developer_id,
            tester_id=product.default_tester_id,
        )

    async def create_module(self, product_id: str, name: str) -> ProductModule:
        await self.get_product(product_id)
        return await self._repo.add_module(ProductModule(id=None, product_id=product_id, name=name))

    async def create_component(self, module_id: str, name: str) -> ProductComponent:
        if not await self._repo.get_module(module_id):
            raise ResourceNotFoundException("Module", module_id)
        return await self._repo.add_component(ProductComponent(id=None, module_id=module_id, name=name))

    async def create_addon(self, product_id: str, name: str) -> ProductAddon:
        await self.get_product(product_id)
        return await self._repo.add_addon(ProductAddon(id=None, product_id=product_id, name=name))

    async def create_epic(self, product_id: str, title: str) -> Epic:
        await self.get_product(product_id)
        return await self._repo.add_epic(Epic(id=None, product_id=product_id, title=title))

    async def create_feature(self, epic_id: str, title: str) -> Feature:
        if not await self._repo.get_epic(epic_id):
            raise ResourceNotFoundException("Epic", epic_id)
        return await self._repo.add_feature(Feature(id=None, epic_id=epic_id, title=title))

    async def validate_structure(
        self,
        product_id: Optional[str] = None,
        module_id: Optional[str] = None,
        component_id: Optional[str] = None,
        addon_id: Optional[str] = None,
        feature_id: Optional[str] = None,
    ) -> None:
        """
        Check optional product-structure references on a dev task.

        When product_id is given, the module, addon and the feature's epic
        must belong to that product.

        Raises:
            ValidationException: component given without a module
            ResourceNotFoundException: unknown id, component outside the
                module, or a reference owned by another product
        """
        if component_id and not module_id:
            raise ValidationException("Select a module before choosing a component")

        def outside_product(owner_id: str) -> bool:
            return product_id is not None and to_uuid(owner_id) != to_uuid(product_id)

        if module_id:
            module = await self._repo.get_module(module_id)
            if not module:
                raise ResourceNotFoundException("Module", module_id)
            if outside_product(module.product_id):
                raise ResourceNotFoundException(
                    "Module",
                    module_id,
                    {"reason": f"module does not belong to product '{product_id}'"}
                )

        if component_id:
            component = await self._repo.get_component(component_id)
            if not component:
                raise ResourceNotFoundException("Component", component_id)
            if to_uuid(component.module_id) != to_uuid(module_id):
                raise ResourceNotFoundException(
                    "Component",
                    component_id,
                    {"reason": f"component does not belong to module '{module_id}'"}
                )

        if addon_id:
            addon = await self._repo.get_addon(addon_id)
            if not addon:
                raise ResourceNotFoundException("Addon", addon_id)
            if outside_product(addon.product_id):
                raise ResourceNotFoundException(
                    "Addon",
                    addon_id,
                    {"reason": f"addon does not belong to product '{product_id}'"}
                )

        if feature_id:
            feature = await self._repo.get_feature(feature_id)
            if not feature:
                raise ResourceNotFoundException("Feature", feature_id)
            epic = await self._repo.get_epic(feature.epic_id)
            if epic is None or outside_product(epic.product_id):
                raise ResourceNotFoundException(
                    "Feature",
                    feature_id,
                    {"reason": f"feature does not belong to product '{product_id}'"}
                )


class IssueKeyService:
    """Allocates issue keys. Tickets and dev tasks are numbered separately."""

    def __init__(self, catalog_repository: ICatalogRepository, sequence: IIssueKeySequence):
        self._catalog = catalog_repository
        self._sequence = sequence

    async def _product_code(self, product_id: str) -> str:
        product = await self._catalog.get_product(product_id)
        if not product:
            raise ResourceNotFoundException("Product", product_id)
        return product.code

    async def next_ticket_key(self, product_id: str, ticket_type: Union[TicketType, str]) -> str:
        code = await self._product_code(product_id)
        type_code = ticket_type_code(ticket_type)
        number = await self._sequence.next_number(product_id, TICKET_SCOPE, type_code)
        return format_ticket_key(code, type_code, number)

    async def next_dev_task_key(self, product_id: str, task_type: Union[DevTaskType, str]) -> str:
        code = await self._product_code(product_id)
        type_code = dev_task_type_code(task_type)
        number = await self._sequence.next_number(product_id, DEV_TASK_SCOPE, type_code)
        return format_dev_task_key(code, type_code, number)
