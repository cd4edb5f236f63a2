from __future__ import annotations
"""Fixed product catalog for the farm-products marketplace.

The catalog is closed: an order may only reference the codes below. Unit prices
are the flat marketplace prices used to compute an order total.
"""
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional


class ProductType(str, enum.Enum):
    MILK_COW = 'MILK_COW'
    MILK_BUFFALO = 'MILK_BUFFALO'
    MILK_GOAT = 'MILK_GOAT'
    BUTTER = 'BUTTER'
    HEN_EGGS = 'HEN_EGGS'
    DUCK_EGGS = 'DUCK_EGGS'


@dataclass(frozen=True)
class ProductInfo:
    display_name: str
    unit: str
    unit_price: Decimal


PRODUCT_INFO = {
    ProductType.MILK_COW: ProductInfo('Cow Milk', 'liter', Decimal('50.00')),
    ProductType.MILK_BUFFALO: ProductInfo('Buffalo Milk', 'liter', Decimal('60.00')),
    ProductType.MILK_GOAT: ProductInfo('Goat Milk', 'liter', Decimal('80.00')),
    ProductType.BUTTER: ProductInfo('Butter', 'kg', Decimal('300.00')),
    ProductType.HEN_EGGS: ProductInfo('Hen Eggs', 'dozen', Decimal('120.00')),
    ProductType.DUCK_EGGS: ProductInfo('Duck Eggs', 'dozen', Decimal('150.00')),
}


def parse_product_type(code) -> Optional[ProductType]:
    if isinstance(code, ProductType):
        return code
    try:
        return ProductType(code)
    except ValueError:
        return None


def is_valid_product_type(code) -> bool:
    return parse_product_type(code) is not None


def display_name(code) -> str:
    pt = parse_product_type(code)
    return PRODUCT_INFO[pt].display_name if pt else str(code)


def calculate_order_total(products: Mapping[str, int]) -> Decimal:
    """Sum of unit price * quantity; unknown codes contribute nothing."""
    total = Decimal('0.00')
    for code, qty in (products or {}).items():
        pt = parse_product_type(code)
        if pt is None or not qty:
            continue
        total += PRODUCT_INFO[pt].unit_price * qty
    return total


def catalog_json():
    return [
        {'code': pt.value, 'name': info.display_name, 'unit': info.unit, 'unit_price': str(info.unit_price)}
        for pt, info in PRODUCT_INFO.items()
    ]

__all__ = [
    'ProductType', 'ProductInfo', 'PRODUCT_INFO', 'parse_product_type', 'is_valid_product_type',
    'display_name', 'calculate_order_total', 'catalog_json',
]
