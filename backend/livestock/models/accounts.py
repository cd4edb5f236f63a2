from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from livestock.models.base import Base, UTCDateTime
from livestock.utils.clock import utc_now
from livestock.utils.outcome import Outcome, INVALID_AMOUNT, INSUFFICIENT_TOKENS
from livestock.utils.validation import is_positive_int

ROLE_FARMER = 'farmer'
ROLE_CUSTOMER = 'customer'
ROLE_ADMIN = 'admin'
ALL_ROLES = (ROLE_FARMER, ROLE_CUSTOMER, ROLE_ADMIN)


class PasswordMixin:
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default='')

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        from werkzeug.security import check_password_hash
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, raw)


class Farmer(PasswordMixin, Base):
    """Farmer account; owns the prepaid token balance spent on metered features.

    ``token_count`` only moves through ``add_tokens`` / ``deduct_tokens`` and
    never drops below zero.
    """
    __tablename__ = 'farmers'
    role = ROLE_FARMER
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    location: Mapped[Optional[str]] = mapped_column(String(128))
    address: Mapped[Optional[str]] = mapped_column(String(255))
    token_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text('0'))
    date_joined: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    def __init__(self, **kw):
        kw.setdefault('token_count', 0)
        super().__init__(**kw)

    def has_enough_tokens(self, n: int) -> bool:
        if isinstance(n, bool) or not isinstance(n, int):
            return False
        if self.token_count is None:
            return n <= 0
        return self.token_count >= n

    def add_tokens(self, n) -> Outcome:
        if not is_positive_int(n):
            return Outcome.rejected(INVALID_AMOUNT, 'token amount must be a positive integer')
        self.token_count = (self.token_count or 0) + n
        return Outcome.ok()

    def deduct_tokens(self, n) -> Outcome:
        if not is_positive_int(n):
            return Outcome.rejected(INVALID_AMOUNT, 'token amount must be a positive integer')
        if not self.has_enough_tokens(n):
            return Outcome.rejected(INSUFFICIENT_TOKENS, f'balance {self.token_count or 0} < {n}')
        self.token_count -= n
        return Outcome.ok()


class Customer(PasswordMixin, Base):
    __tablename__ = 'customers'
    role = ROLE_CUSTOMER
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    location: Mapped[Optional[str]] = mapped_column(String(128))
    address: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    date_joined: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


class Admin(PasswordMixin, Base):
    __tablename__ = 'admins'
    role = ROLE_ADMIN
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())


ACCOUNT_MODELS = {
    ROLE_FARMER: Farmer,
    ROLE_CUSTOMER: Customer,
    ROLE_ADMIN: Admin,
}
