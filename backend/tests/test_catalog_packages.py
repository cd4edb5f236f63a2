from decimal import Decimal
import pytest

from livestock.models.catalog import (
    ProductType, PRODUCT_INFO, calculate_order_total, catalog_json, display_name, is_valid_product_type,
)
from livestock.models.subscription import (
    is_valid_package, package_details, packages_json,
)


def test_catalog_is_closed_set_of_six():
    assert {p.value for p in ProductType} == {
        'MILK_COW', 'MILK_BUFFALO', 'MILK_GOAT', 'BUTTER', 'HEN_EGGS', 'DUCK_EGGS',
    }
    assert set(PRODUCT_INFO) == set(ProductType)
    assert is_valid_product_type('DUCK_EGGS')
    assert not is_valid_product_type('duck_eggs')
    assert not is_valid_product_type(None)


def test_display_names():
    assert display_name('MILK_COW') == 'Cow Milk'
    assert display_name(ProductType.HEN_EGGS) == 'Hen Eggs'
    assert display_name('UNKNOWN') == 'UNKNOWN'


def test_order_total_uses_unit_prices():
    assert calculate_order_total({'MILK_COW': 3, 'BUTTER': 2}) == Decimal('750.00')
    assert calculate_order_total({'HEN_EGGS': 1, 'NOPE': 10}) == Decimal('120.00')
    assert calculate_order_total({}) == Decimal('0.00')


def test_catalog_json_shape():
    items = catalog_json()
    assert len(items) == 6
    first = items[0]
    assert set(first) == {'code', 'name', 'unit', 'unit_price'}


@pytest.mark.parametrize('tier, amount, tokens, expected', [
    ('basic', 50.0, 10, True),
    ('basic', 50, 10, True),
    ('basic', Decimal('50.00'), 10, True),
    ('standard', 100.0, 25, True),
    ('premium', 500.0, 150, True),
    ('basic', 50.0, 25, False),
    ('basic', 49.99, 10, False),
    ('gold', 1000.0, 500, False),
    ('BASIC', 50.0, 10, False),
    (None, 50.0, 10, False),
    ('basic', None, 10, False),
    ('basic', 50.0, None, False),
    ('basic', 50.0, 10.5, False),
    ('basic', 'abc', 10, False),
    ('basic', '50', 10, False),
    ('basic', True, 10, False),
    ('basic', 50.0, 10.0, False),
    ('basic', 50.0, '10', False),
    ('basic', 50.0, True, False),
])
def test_is_valid_package(tier, amount, tokens, expected):
    assert is_valid_package(tier, amount, tokens) is expected


def test_package_details():
    assert package_details('basic') == '50 TK - 10 Tokens'
    assert package_details('premium') == '500 TK - 150 Tokens'
    assert package_details('gold') == 'Unknown Package'
    assert [p['tier'] for p in packages_json()] == ['basic', 'standard', 'premium']
