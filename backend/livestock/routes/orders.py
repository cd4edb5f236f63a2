from __future__ import annotations
from flask import Blueprint, request, abort

from livestock import get_db
from livestock.decorators.auth import require_permissions
from livestock.decorators.audit import audit_log
from livestock.models.accounts import ROLE_CUSTOMER, ROLE_FARMER, ROLE_ADMIN
from livestock.models.order import Order, OrderStatus
from livestock.services import orders as order_service
from livestock.services.policy import assert_order_party, current_actor
from livestock.utils.listing import apply_filters, list_response
from livestock.utils.outcome import NOT_FOUND
from livestock.utils.validation import abort_with, coerce_int

orders_bp = Blueprint('orders', __name__)


@orders_bp.get('')
@require_permissions('ORDER.READ')
def list_orders():
    role, actor_id = current_actor()
    q = get_db().query(Order)
    if role == ROLE_FARMER:
        q = q.filter(Order.farmer_id == actor_id)
    elif role == ROLE_CUSTOMER:
        q = q.filter(Order.customer_id == actor_id)
    filter_specs = {
        'status': {'coerce': OrderStatus, 'op': lambda qu, v: qu.filter(Order.status == v)},
        'farmer_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Order.farmer_id == v)},
        'customer_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Order.customer_id == v)},
    }
    q = apply_filters(q, filter_specs, request.args)
    q = q.order_by(Order.order_date.desc(), Order.id.desc())
    return list_response(q, _order_json)


@orders_bp.post('')
@require_permissions('ORDER.CREATE', roles=(ROLE_CUSTOMER,))
@audit_log('ORDER.CREATE', entity='Order', entity_id_key='id', meta_keys=['farmer_id', 'total_amount'])
def create_order():
    data = request.json or {}
    if data.get('farmer_id') is None:
        abort(400, description='farmer_id required')
    farmer_id = coerce_int(data['farmer_id'], 'farmer_id')
    products = data.get('products')
    if not isinstance(products, dict):
        abort(400, description='products must be an object of product type -> quantity')
    _, customer_id = current_actor()
    order, outcome = order_service.create_order(
        customer_id, farmer_id, products,
        delivery_address=data.get('delivery_address'),
        customer_notes=data.get('customer_notes'),
    )
    if not outcome:
        code = 404 if outcome.reason == NOT_FOUND else 400
        abort_with(code, outcome.detail or outcome.reason, reason=outcome.reason)
    return _order_json(order), 201


@orders_bp.get('/stats')
@require_permissions('ORDER.READ')
def order_stats():
    role, actor_id = current_actor()
    if role == ROLE_FARMER:
        return order_service.order_statistics(farmer_id=actor_id)
    if role == ROLE_CUSTOMER:
        return order_service.order_statistics(customer_id=actor_id)
    return order_service.order_statistics()


@orders_bp.get('/<int:order_id>')
@require_permissions('ORDER.READ')
def get_order(order_id: int):
    order = _load_order(order_id)
    assert_order_party(order)
    return _order_json(order)


def _transition_view(order_id: int, action: str, roles: tuple, **kwargs):
    order = _load_order(order_id)
    assert_order_party(order, *roles)
    outcome = order_service.apply_transition(order, action, **kwargs)
    if not outcome:
        abort_with(409, outcome.detail or outcome.reason, reason=outcome.reason, current_status=order.status.value)
    return _order_json(order)


def _prefetch(a, kw):
    return _prefetch_order(kw.get('order_id'))


@orders_bp.post('/<int:order_id>/confirm')
@require_permissions('ORDER.CONFIRM')
@audit_log('ORDER.CONFIRM', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=_prefetch, meta_keys=['status'])
def confirm_order(order_id: int):
    data = request.get_json(silent=True) or {}
    return _transition_view(order_id, 'confirm', (ROLE_FARMER, ROLE_ADMIN), farmer_notes=data.get('farmer_notes'))


@orders_bp.post('/<int:order_id>/deliver')
@require_permissions('ORDER.DELIVER')
@audit_log('ORDER.DELIVER', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=_prefetch, meta_keys=['status'])
def deliver_order(order_id: int):
    return _transition_view(order_id, 'deliver', (ROLE_FARMER, ROLE_ADMIN))


@orders_bp.post('/<int:order_id>/receive')
@require_permissions('ORDER.RECEIVE')
@audit_log('ORDER.RECEIVE', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=_prefetch, meta_keys=['status'])
def receive_order(order_id: int):
    return _transition_view(order_id, 'receive', (ROLE_CUSTOMER, ROLE_ADMIN))


@orders_bp.post('/<int:order_id>/cancel')
@require_permissions('ORDER.CANCEL')
@audit_log('ORDER.CANCEL', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=_prefetch, meta_keys=['status'])
def cancel_order(order_id: int):
    data = request.get_json(silent=True) or {}
    return _transition_view(order_id, 'cancel', (), reason=data.get('reason'))


@orders_bp.post('/<int:order_id>/pay')
@require_permissions('ORDER.PAY')
@audit_log('ORDER.PAY', entity='Order', entity_id_key='id', diff_keys=['is_paid'], pre_fetch=_prefetch, meta_keys=['is_paid'])
def pay_order(order_id: int):
    order = _load_order(order_id)
    assert_order_party(order, ROLE_FARMER, ROLE_ADMIN)
    data = request.get_json(silent=True) or {}
    outcome = order_service.mark_paid(order, data.get('payment_method'))
    if not outcome:
        abort_with(409, outcome.detail or outcome.reason, reason=outcome.reason)
    return _order_json(order)


def _load_order(order_id: int) -> Order:
    order = order_service.get_order(order_id)
    if not order:
        abort(404)
    return order


def _iso(dt):
    return dt.isoformat() if dt else None


def _order_json(o: Order):
    return {
        'id': o.id,
        'customer_id': o.customer_id,
        'farmer_id': o.farmer_id,
        'products': dict(o.products or {}),
        'total_items': o.get_total_items(),
        'status': o.status.value,
        'total_amount': float(o.total_amount or 0),
        'is_paid': o.is_paid,
        'payment_method': o.payment_method,
        'order_date': _iso(o.order_date),
        'confirmed_date': _iso(o.confirmed_date),
        'delivered_date': _iso(o.delivered_date),
        'received_date': _iso(o.received_date),
        'cancelled_date': _iso(o.cancelled_date),
        'delivery_address': o.delivery_address,
        'customer_notes': o.customer_notes,
        'farmer_notes': o.farmer_notes,
        'cancel_reason': o.cancel_reason,
        'customer_name': o.customer_name,
        'farmer_name': o.farmer_name,
        'farmer_phone': o.farmer_phone,
        'farmer_location': o.farmer_location,
    }


def _prefetch_order(order_id: int):
    o = order_service.get_order(order_id)
    if not o:
        return {}
    return {'status': o.status.value, 'is_paid': o.is_paid}
