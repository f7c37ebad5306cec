from tcmonitor.products import builtin
from tcmonitor.products.registry import (
    ProductSpec,
    get_product,
    list_products,
    product_registry,
    register_product,
)

CDB = builtin.CDB
PCX = builtin.PCX

__all__ = [
    "CDB",
    "PCX",
    "ProductSpec",
    "get_product",
    "list_products",
    "product_registry",
    "register_product",
]
