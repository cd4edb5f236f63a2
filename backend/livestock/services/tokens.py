from __future__ import annotations
"""Persistent token ledger operations.

Balance changes are issued as a single conditional UPDATE against the farmer
row (``token_count >= n`` for debits), so two concurrent deductions can never
both succeed past the available balance. Every applied change is appended to
``token_transactions`` in the same transaction.
"""
from typing import List, Optional, Tuple
from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from livestock import get_db
from livestock.models.accounts import Farmer
from livestock.models.token_transaction import TokenTransaction
from livestock.utils.clock import app_clock
from livestock.utils.outcome import (
    Outcome, INVALID_AMOUNT, INSUFFICIENT_TOKENS, NOT_FOUND, ALREADY_PROCESSED,
)
from livestock.utils.validation import is_positive_int


def get_balance(farmer_id: int) -> Optional[int]:
    return get_db().execute(select(Farmer.token_count).where(Farmer.id == farmer_id)).scalar_one_or_none()


def credit_tokens(farmer_id: int, n, reason: str = TokenTransaction.REASON_ADJUSTMENT,
                  subscription_id: Optional[int] = None, commit: bool = True) -> Tuple[Outcome, Optional[int]]:
    """Add n tokens; returns (outcome, balance after).

    With ``subscription_id`` the credit is keyed on that subscription and a
    second credit for it is rejected as already processed.
    """
    if not is_positive_int(n):
        return Outcome.rejected(INVALID_AMOUNT, 'token amount must be a positive integer'), None
    session = get_db()
    res = session.execute(
        update(Farmer)
        .where(Farmer.id == farmer_id)
        .values(token_count=Farmer.token_count + n)
    )
    if res.rowcount != 1:
        session.rollback()
        return Outcome.rejected(NOT_FOUND, f'farmer {farmer_id} not found'), None
    balance = get_balance(farmer_id)
    session.add(TokenTransaction(
        farmer_id=farmer_id, delta=n, balance_after=balance, reason=reason,
        subscription_id=subscription_id, created_at=app_clock()(),
    ))
    try:
        if commit:
            session.commit()
        else:
            session.flush()
    except IntegrityError:
        session.rollback()
        return Outcome.rejected(ALREADY_PROCESSED, f'subscription {subscription_id} already credited'), get_balance(farmer_id)
    current_app.logger.info('Credited %s tokens to farmer %s (%s). New balance: %s', n, farmer_id, reason, balance)
    return Outcome.ok(), balance


def deduct_tokens(farmer_id: int, n, feature_used: Optional[str] = None) -> Tuple[Outcome, Optional[int]]:
    """Spend n tokens if the balance covers it; returns (outcome, balance after or current balance)."""
    if not is_positive_int(n):
        return Outcome.rejected(INVALID_AMOUNT, 'token amount must be a positive integer'), get_balance(farmer_id)
    session = get_db()
    res = session.execute(
        update(Farmer)
        .where(Farmer.id == farmer_id, Farmer.token_count >= n)
        .values(token_count=Farmer.token_count - n)
    )
    if res.rowcount != 1:
        session.rollback()
        balance = get_balance(farmer_id)
        if balance is None:
            return Outcome.rejected(NOT_FOUND, f'farmer {farmer_id} not found'), None
        return Outcome.rejected(INSUFFICIENT_TOKENS, f'balance {balance} < {n}'), balance
    balance = get_balance(farmer_id)
    session.add(TokenTransaction(
        farmer_id=farmer_id, delta=-n, balance_after=balance, reason=TokenTransaction.REASON_FEATURE,
        feature_used=feature_used, created_at=app_clock()(),
    ))
    session.commit()
    current_app.logger.info('Farmer %s used %s tokens for %s. New balance: %s', farmer_id, n, feature_used, balance)
    return Outcome.ok(), balance


def history(farmer_id: int, limit: int = 50) -> List[TokenTransaction]:
    return list(get_db().execute(
        select(TokenTransaction)
        .where(TokenTransaction.farmer_id == farmer_id)
        .order_by(TokenTransaction.id.desc())
        .limit(limit)
    ).scalars())
