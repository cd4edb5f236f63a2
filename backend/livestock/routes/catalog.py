from __future__ import annotations
from flask import Blueprint

from livestock.models.catalog import catalog_json

catalog_bp = Blueprint('catalog', __name__)


@catalog_bp.get('/products')
def list_product_types():
    items = catalog_json()
    return {'data': items, 'total': len(items)}
