from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock.models.base import Base, UTCDateTime
from livestock.utils.clock import utc_now


class TokenTransaction(Base):
    """Append-only history of applied token balance changes.

    ``subscription_id`` is unique, so a subscription can credit a farmer at most once.
    """
    __tablename__ = 'token_transactions'
    REASON_SUBSCRIPTION = 'SUBSCRIPTION'
    REASON_FEATURE = 'FEATURE'
    REASON_ADJUSTMENT = 'ADJUSTMENT'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    farmer_id: Mapped[int] = mapped_column(ForeignKey('farmers.id'), nullable=False, index=True)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    feature_used: Mapped[Optional[str]] = mapped_column(String(64))
    subscription_id: Mapped[Optional[int]] = mapped_column(ForeignKey('subscriptions.id'), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
