from __future__ import annotations
from typing import Dict, Mapping, Optional, Tuple
from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.orm.exc import StaleDataError

from livestock import get_db
from livestock.models.accounts import Customer, Farmer
from livestock.models.catalog import calculate_order_total
from livestock.models.order import Order, OrderStatus, check_products
from livestock.utils.clock import app_clock
from livestock.utils.outcome import Outcome, NOT_FOUND, CONCURRENT_UPDATE

TRANSITIONS = {
    'confirm': OrderStatus.CONFIRMED,
    'deliver': OrderStatus.DELIVERED,
    'receive': OrderStatus.RECEIVED,
    'cancel': OrderStatus.CANCELLED,
}


def create_order(customer_id: int, farmer_id: int, products: Mapping[str, int],
                 delivery_address: Optional[str] = None, customer_notes: Optional[str] = None) -> Tuple[Optional[Order], Outcome]:
    outcome = check_products(products)
    if not outcome:
        return None, outcome
    session = get_db()
    customer = session.get(Customer, customer_id)
    farmer = session.get(Farmer, farmer_id)
    if customer is None or farmer is None:
        return None, Outcome.rejected(NOT_FOUND, 'customer or farmer not found')
    order = Order.place(
        customer_id, farmer_id, products, clock=app_clock(),
        delivery_address=delivery_address,
        customer_notes=customer_notes,
        customer_name=customer.name,
        customer_phone=customer.phone,
        farmer_name=farmer.name,
        farmer_phone=farmer.phone,
        farmer_location=farmer.location,
    )
    order.total_amount = calculate_order_total(order.products)
    session.add(order)
    session.commit()
    current_app.logger.info('Created order %s (customer %s -> farmer %s)', order.id, customer_id, farmer_id)
    return order, Outcome.ok()


def get_order(order_id: int) -> Optional[Order]:
    return get_db().execute(select(Order).where(Order.id == order_id)).scalar_one_or_none()


def apply_transition(order: Order, action: str, **kwargs) -> Outcome:
    """Run the named lifecycle transition and persist it.

    The write is guarded by the order's version column, so if another request
    moved the order after it was read the commit is refused and reported.
    """
    session = get_db()
    method = getattr(order, action)
    outcome = method(app_clock(), **kwargs)
    if not outcome:
        return outcome
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        return Outcome.rejected(CONCURRENT_UPDATE, f'order {order.id} was modified concurrently')
    current_app.logger.info('Order %s -> %s', order.id, order.status.value)
    return outcome


def mark_paid(order: Order, payment_method: Optional[str] = None) -> Outcome:
    outcome = order.mark_paid(payment_method)
    if outcome:
        try:
            get_db().commit()
        except StaleDataError:
            get_db().rollback()
            return Outcome.rejected(CONCURRENT_UPDATE, f'order {order.id} was modified concurrently')
    return outcome


def order_statistics(farmer_id: Optional[int] = None, customer_id: Optional[int] = None) -> Dict[str, int]:
    q = select(Order.status, func.count(Order.id)).group_by(Order.status)
    if farmer_id is not None:
        q = q.where(Order.farmer_id == farmer_id)
    if customer_id is not None:
        q = q.where(Order.customer_id == customer_id)
    counts = {status: 0 for status in OrderStatus}
    for status, n in get_db().execute(q).all():
        counts[OrderStatus(status)] = n
    stats = {f'{status.value.lower()}_orders': n for status, n in counts.items()}
    stats['total_orders'] = sum(counts.values())
    return stats
