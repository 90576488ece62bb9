#!/usr/bin/env python3
"""
Billing Core - Product Catalog
Fixed, ordered product list read once at start-up
"""

import json
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from pydantic import ValidationError

from .exceptions import CatalogError, UnknownProduct
from .models import Product

DEFAULT_PRODUCTS: List[Product] = [
    Product(id=1, name="Groundnut Oil - 1L Tin", price=Decimal("250")),
    Product(id=2, name="Groundnut Oil - 5L Tin", price=Decimal("1200")),
    Product(id=3, name="Groundnut Oil - 15L Tin", price=Decimal("3500")),
    Product(id=4, name="Groundnut Oil - 1L Pouch", price=Decimal("240")),
    Product(id=5, name="Groundnut Oil - 500ml Bottle", price=Decimal("130")),
]


class Catalog:
    """Read-only, ordered product lookup"""

    def __init__(self, products: Iterable[Product]):
        self._products: Dict[int, Product] = {}
        for product in products:
            if product.id in self._products:
                raise CatalogError(f"Duplicate product id in catalog: {product.id}")
            self._products[product.id] = product
        if not self._products:
            raise CatalogError("Catalog has no products")

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products.values())

    def __len__(self) -> int:
        return len(self._products)

    @property
    def products(self) -> List[Product]:
        return list(self._products.values())

    def get(self, product_id: int) -> Product:
        try:
            return self._products[int(product_id)]
        except (KeyError, TypeError, ValueError):
            raise UnknownProduct(f"Unknown product id: {product_id}")


def load_catalog(catalog_file: Optional[Path] = None) -> Catalog:
    """
    Load the product catalog.

    Args:
        catalog_file: JSON list of {"id", "name", "price"} objects. When None the
            built-in groundnut oil products are used.
    """
    if catalog_file is None:
        return Catalog(DEFAULT_PRODUCTS)

    try:
        with open(catalog_file, 'r', encoding='utf-8') as f:
            # parse_float keeps prices such as 129.90 exact
            raw = json.load(f, parse_float=Decimal)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Failed to load catalog from {catalog_file}: {e}")

    if not isinstance(raw, list):
        raise CatalogError(f"Catalog file {catalog_file} must contain a JSON list")

    try:
        products = [Product(**entry) for entry in raw]
    except (TypeError, ValidationError) as e:
        raise CatalogError(f"Invalid product in {catalog_file}: {e}")

    return Catalog(products)
