from __future__ import annotations
"""Token subscription purchased by a farmer and approved or rejected by an admin.

Packages are fixed: a request is only accepted when its (amount, tokens) pair
matches the tier exactly.
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from livestock.models.base import Base, UTCDateTime
from livestock.utils.clock import utc_now
from livestock.utils.fsm import TransitionValidator


class PackageTier(str, enum.Enum):
    BASIC = 'basic'
    STANDARD = 'standard'
    PREMIUM = 'premium'


class SubscriptionStatus(str, enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


# tier -> (amount, tokens)
PACKAGES = {
    PackageTier.BASIC: (Decimal('50.0'), 10),
    PackageTier.STANDARD: (Decimal('100.0'), 25),
    PackageTier.PREMIUM: (Decimal('500.0'), 150),
}

SUBSCRIPTION_FSM = TransitionValidator({
    SubscriptionStatus.PENDING: {SubscriptionStatus.APPROVED, SubscriptionStatus.REJECTED},
    SubscriptionStatus.APPROVED: set(),
    SubscriptionStatus.REJECTED: set(),
})


def parse_tier(tier) -> Optional[PackageTier]:
    try:
        return PackageTier(tier)
    except ValueError:
        return None


def is_valid_package(tier, amount, tokens) -> bool:
    """Exact match of a numeric amount and an integer token count against the tier."""
    pkg = parse_tier(tier)
    if pkg is None:
        return False
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return False
    if isinstance(tokens, bool) or not isinstance(tokens, int):
        return False
    expected_amount, expected_tokens = PACKAGES[pkg]
    return Decimal(str(amount)) == expected_amount and tokens == expected_tokens


def package_details(tier) -> str:
    pkg = parse_tier(tier)
    if pkg is None:
        return 'Unknown Package'
    amount, tokens = PACKAGES[pkg]
    return f'{amount:.0f} TK - {tokens} Tokens'


def packages_json():
    return [
        {'tier': tier.value, 'amount': float(amount), 'tokens': tokens, 'details': package_details(tier)}
        for tier, (amount, tokens) in PACKAGES.items()
    ]


class Subscription(Base):
    __tablename__ = 'subscriptions'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_type: Mapped[str] = mapped_column(String(16), nullable=False, default='farmer')
    user_email: Mapped[Optional[str]] = mapped_column(String(128))
    user_name: Mapped[Optional[str]] = mapped_column(String(128))
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tokens: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    package: Mapped[PackageTier] = mapped_column(Enum(PackageTier, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]), nullable=False)
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=SubscriptionStatus.PENDING, index=True,
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    def __init__(self, **kw):
        kw.setdefault('status', SubscriptionStatus.PENDING)
        now = kw.pop('now', None) or utc_now()
        kw.setdefault('created_at', now)
        kw.setdefault('updated_at', now)
        super().__init__(**kw)

__all__ = [
    'Subscription', 'SubscriptionStatus', 'PackageTier', 'PACKAGES', 'SUBSCRIPTION_FSM',
    'is_valid_package', 'package_details', 'packages_json', 'parse_tier',
]
