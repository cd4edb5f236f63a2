from __future__ import annotations
"""Order placed by a customer with a farmer for catalog products.

Lifecycle graph:
    PENDING -> CONFIRMED -> DELIVERED -> RECEIVED
    PENDING -> CANCELLED
    CONFIRMED -> CANCELLED

Each transition stamps its own date field exactly once. Calling a transition
that is not legal from the current status changes nothing and returns a
rejected ``Outcome``.
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from livestock.models.base import Base, UTCDateTime
from livestock.models.catalog import ProductType, parse_product_type
from livestock.utils.clock import Clock, utc_now
from livestock.utils.fsm import TransitionValidator
from livestock.utils.outcome import (
    Outcome, ILLEGAL_TRANSITION, UNKNOWN_PRODUCT, INVALID_QUANTITY, NOT_PRESENT, ALREADY_PROCESSED,
)
from livestock.utils.validation import is_positive_int


class OrderStatus(str, enum.Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    DELIVERED = 'DELIVERED'
    RECEIVED = 'RECEIVED'
    CANCELLED = 'CANCELLED'


ORDER_FSM = TransitionValidator({
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.RECEIVED},
    OrderStatus.RECEIVED: set(),
    OrderStatus.CANCELLED: set(),
})

# status reached -> date column stamped when it is reached
STATUS_DATE_FIELDS = {
    OrderStatus.CONFIRMED: 'confirmed_date',
    OrderStatus.DELIVERED: 'delivered_date',
    OrderStatus.RECEIVED: 'received_date',
    OrderStatus.CANCELLED: 'cancelled_date',
}


def check_products(products: Optional[Mapping[Any, Any]]) -> Outcome:
    """Validate a whole product map the same way ``Order.add_product`` validates one entry."""
    if not products:
        return Outcome.rejected(INVALID_QUANTITY, 'at least one product required')
    for code, qty in products.items():
        if parse_product_type(code) is None:
            return Outcome.rejected(UNKNOWN_PRODUCT, f'unknown product type {code}')
        if not is_positive_int(qty):
            return Outcome.rejected(INVALID_QUANTITY, f'quantity for {code} must be a positive integer')
    return Outcome.ok()


class Order(Base):
    __tablename__ = 'orders'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey('customers.id'), nullable=False, index=True)
    farmer_id: Mapped[int] = mapped_column(ForeignKey('farmers.id'), nullable=False, index=True)
    products: Mapped[Dict[str, int]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, native_enum=False, length=16, validate_strings=True),
        nullable=False, default=OrderStatus.PENDING, index=True,
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(32))

    order_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now, index=True)
    confirmed_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    delivered_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    received_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    cancelled_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    delivery_address: Mapped[Optional[str]] = mapped_column(String(255))
    customer_notes: Mapped[Optional[str]] = mapped_column(Text)
    farmer_notes: Mapped[Optional[str]] = mapped_column(Text)
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text)

    # Denormalized party details for quick listing
    customer_name: Mapped[Optional[str]] = mapped_column(String(128))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(32))
    farmer_name: Mapped[Optional[str]] = mapped_column(String(128))
    farmer_phone: Mapped[Optional[str]] = mapped_column(String(32))
    farmer_location: Mapped[Optional[str]] = mapped_column(String(128))

    # Optimistic lock: a stale read-compare-write fails on flush instead of overwriting
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    __mapper_args__ = {'version_id_col': version}

    def __init__(self, **kw):
        kw.setdefault('status', OrderStatus.PENDING)
        kw.setdefault('products', {})
        kw.setdefault('is_paid', False)
        kw.setdefault('total_amount', Decimal('0.00'))
        kw.setdefault('order_date', utc_now())
        super().__init__(**kw)

    @classmethod
    def place(cls, customer_id: int, farmer_id: int, products: Optional[Mapping[Any, int]] = None,
              clock: Clock = utc_now, **details) -> 'Order':
        """New PENDING order stamped with ``clock()``. Invalid product entries are dropped."""
        order = cls(customer_id=customer_id, farmer_id=farmer_id, order_date=clock(), **details)
        for code, qty in (products or {}).items():
            order.add_product(code, qty)
        return order

    @validates('customer_id', 'farmer_id')
    def _validate_party(self, key, value):
        current = self.__dict__.get(key)
        if current is not None and value != current:
            raise ValueError(f'{key} cannot change once set')
        return value

    # --- Guards ---
    def can_be_confirmed(self) -> bool:
        return ORDER_FSM.can_transition(self.status, OrderStatus.CONFIRMED)

    def can_be_delivered(self) -> bool:
        return ORDER_FSM.can_transition(self.status, OrderStatus.DELIVERED)

    def can_be_received(self) -> bool:
        return ORDER_FSM.can_transition(self.status, OrderStatus.RECEIVED)

    def can_be_cancelled(self) -> bool:
        return ORDER_FSM.can_transition(self.status, OrderStatus.CANCELLED)

    def is_terminal(self) -> bool:
        return ORDER_FSM.is_terminal(self.status)

    # --- Transitions ---
    def confirm(self, clock: Clock = utc_now, farmer_notes: Optional[str] = None) -> Outcome:
        outcome = self._advance(OrderStatus.CONFIRMED, clock)
        if outcome and farmer_notes:
            self.farmer_notes = farmer_notes
        return outcome

    def deliver(self, clock: Clock = utc_now) -> Outcome:
        return self._advance(OrderStatus.DELIVERED, clock)

    def receive(self, clock: Clock = utc_now) -> Outcome:
        return self._advance(OrderStatus.RECEIVED, clock)

    def cancel(self, clock: Clock = utc_now, reason: Optional[str] = None) -> Outcome:
        outcome = self._advance(OrderStatus.CANCELLED, clock)
        if outcome and reason:
            self.cancel_reason = reason
        return outcome

    def _advance(self, target: OrderStatus, clock: Clock) -> Outcome:
        if not ORDER_FSM.can_transition(self.status, target):
            return Outcome.rejected(ILLEGAL_TRANSITION, f'{_status_label(self.status)} -> {target.value}')
        self.status = target
        setattr(self, STATUS_DATE_FIELDS[target], clock())
        return Outcome.ok()

    def mark_paid(self, payment_method: Optional[str] = None) -> Outcome:
        if self.is_paid:
            return Outcome.rejected(ALREADY_PROCESSED, 'order already paid')
        self.is_paid = True
        if payment_method:
            self.payment_method = payment_method
        return Outcome.ok()

    # --- Product map ---
    def add_product(self, product_type, quantity) -> Outcome:
        """Set (not add to) the quantity for product_type."""
        pt = parse_product_type(product_type)
        if pt is None:
            return Outcome.rejected(UNKNOWN_PRODUCT, f'unknown product type {product_type}')
        if not is_positive_int(quantity):
            return Outcome.rejected(INVALID_QUANTITY, 'quantity must be a positive integer')
        # Reassign so the JSON column is flagged dirty
        products = dict(self.products or {})
        products[pt.value] = quantity
        self.products = products
        return Outcome.ok()

    def remove_product(self, product_type) -> Outcome:
        code = _product_code(product_type)
        if code not in (self.products or {}):
            return Outcome.rejected(NOT_PRESENT, f'{code} not in order')
        self.products = {k: v for k, v in self.products.items() if k != code}
        return Outcome.ok()

    def get_product_quantity(self, product_type) -> int:
        return (self.products or {}).get(_product_code(product_type), 0)

    def has_product(self, product_type) -> bool:
        return self.get_product_quantity(product_type) > 0

    def get_total_items(self) -> int:
        return sum((self.products or {}).values())

    def __repr__(self):
        return f"<Order id={self.id} status={_status_label(self.status)} items={self.get_total_items()}>"


def _product_code(product_type) -> str:
    return product_type.value if isinstance(product_type, ProductType) else str(product_type)


def _status_label(status) -> str:
    return getattr(status, 'value', str(status))

__all__ = ['Order', 'OrderStatus', 'ORDER_FSM', 'STATUS_DATE_FIELDS', 'check_products']
