from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from tcmonitor.core.errors import ConfigurationError
from tcmonitor.endpoints import Generation


@dataclass(frozen=True)
class ProductSpec:
    """How one cloud product's resources are listed, labelled and probed."""

    name: str
    label: str
    namespace: str
    listing_service: str
    listing_action: str
    generation: Generation
    items_key: str
    total_key: str
    offset_param: str
    limit_param: str
    first_page_size: int
    alias_fields: tuple[str, ...]
    description: str | None = None

    @property
    def default_alias(self) -> str:
        return self.alias_fields[0] if self.alias_fields else "InstanceId"

    def page_params(self, offset: int, limit: int) -> dict[str, int]:
        return {self.offset_param: offset, self.limit_param: limit}


class ProductRegistry:
    """Simple in-memory registry of supported products."""

    def __init__(self) -> None:
        self._products: Dict[str, ProductSpec] = {}

    def register(self, spec: ProductSpec) -> None:
        if not spec.name:
            raise ValueError("Product name is required")
        self._products[spec.name] = spec

    def get(self, name: str) -> ProductSpec:
        spec = self._products.get(name)
        if spec is None:
            raise ConfigurationError(f"Product '{name}' is not registered", {"product": name})
        return spec

    def list(self) -> List[ProductSpec]:
        return list(self._products.values())


product_registry = ProductRegistry()


def register_product(spec: ProductSpec) -> None:
    product_registry.register(spec)


def get_product(name: str) -> ProductSpec:
    return product_registry.get(name)


def list_products() -> List[ProductSpec]:
    return product_registry.list()
