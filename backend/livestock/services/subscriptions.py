from __future__ import annotations
from decimal import Decimal
from typing import Dict, Optional, Tuple
from flask import current_app
from sqlalchemy import func, select, update

from livestock import get_db
from livestock.models.accounts import Farmer, ROLE_FARMER
from livestock.models.subscription import (
    Subscription, SubscriptionStatus, SUBSCRIPTION_FSM, is_valid_package, parse_tier,
)
from livestock.models.token_transaction import TokenTransaction
from livestock.services.tokens import credit_tokens
from livestock.utils.clock import app_clock
from livestock.utils.outcome import (
    Outcome, INVALID_PACKAGE, DUPLICATE_TRANSACTION, NOT_FOUND, ALREADY_PROCESSED,
)


def transaction_id_exists(transaction_id: str) -> bool:
    q = select(func.count(Subscription.id)).where(Subscription.transaction_id == transaction_id)
    return get_db().execute(q).scalar_one() > 0


def submit_subscription(farmer: Farmer, tier: str, amount, tokens, transaction_id: str) -> Tuple[Optional[Subscription], Outcome]:
    if not is_valid_package(tier, amount, tokens):
        return None, Outcome.rejected(INVALID_PACKAGE, f'invalid package {tier} ({amount}, {tokens})')
    if transaction_id_exists(transaction_id):
        return None, Outcome.rejected(DUPLICATE_TRANSACTION, 'transaction id already used')
    session = get_db()
    sub = Subscription(
        user_id=farmer.id,
        user_type=ROLE_FARMER,
        user_email=farmer.email,
        user_name=farmer.name,
        amount=Decimal(str(amount)),
        tokens=int(tokens),
        transaction_id=transaction_id,
        package=parse_tier(tier),
        now=app_clock()(),
    )
    session.add(sub)
    session.commit()
    current_app.logger.info('Subscription %s submitted by farmer %s (%s)', sub.id, farmer.id, tier)
    return sub, Outcome.ok()


def get_subscription(subscription_id: int) -> Optional[Subscription]:
    return get_db().get(Subscription, subscription_id)


def _claim_pending(subscription_id: int, target: SubscriptionStatus, admin_notes: Optional[str]) -> bool:
    """Atomically move the row to target from any state the lifecycle allows it from.

    False when the row is missing or has already left those states.
    """
    sources = SUBSCRIPTION_FSM.sources_of(target)
    if not sources:
        return False
    values = {'status': target, 'updated_at': app_clock()()}
    if admin_notes and admin_notes.strip():
        values['admin_notes'] = admin_notes
    res = get_db().execute(
        update(Subscription)
        .where(Subscription.id == subscription_id, Subscription.status.in_(list(sources)))
        .values(**values)
    )
    return res.rowcount == 1


def approve_subscription(subscription_id: int, admin_notes: Optional[str] = None) -> Outcome:
    """Approve and credit the farmer's tokens exactly once.

    The status flip and the ledger credit commit together; a repeat approval
    finds the row no longer pending and changes nothing.
    """
    session = get_db()
    sub = get_subscription(subscription_id)
    if sub is None:
        return Outcome.rejected(NOT_FOUND, f'subscription {subscription_id} not found')
    if not _claim_pending(subscription_id, SubscriptionStatus.APPROVED, admin_notes):
        session.rollback()
        return Outcome.rejected(ALREADY_PROCESSED, f'subscription {subscription_id} is {sub.status.value}')
    if sub.user_type == ROLE_FARMER:
        outcome, _ = credit_tokens(
            int(sub.user_id), sub.tokens,
            reason=TokenTransaction.REASON_SUBSCRIPTION,
            subscription_id=sub.id,
            commit=False,
        )
        if not outcome:
            # credit_tokens already rolled the status change back
            session.refresh(sub)
            return outcome
    session.commit()
    session.refresh(sub)
    current_app.logger.info('Subscription %s approved', subscription_id)
    return Outcome.ok()


def reject_subscription(subscription_id: int, admin_notes: Optional[str] = None) -> Outcome:
    session = get_db()
    sub = get_subscription(subscription_id)
    if sub is None:
        return Outcome.rejected(NOT_FOUND, f'subscription {subscription_id} not found')
    if not _claim_pending(subscription_id, SubscriptionStatus.REJECTED, admin_notes):
        session.rollback()
        return Outcome.rejected(ALREADY_PROCESSED, f'subscription {subscription_id} is {sub.status.value}')
    session.commit()
    session.refresh(sub)
    current_app.logger.info('Subscription %s rejected', subscription_id)
    return Outcome.ok()


def list_subscriptions(user_id: Optional[int] = None, status: Optional[SubscriptionStatus] = None):
    q = get_db().query(Subscription)
    if user_id is not None:
        q = q.filter(Subscription.user_id == user_id)
    if status is not None:
        q = q.filter(Subscription.status == status)
    return q.order_by(Subscription.created_at.desc(), Subscription.id.desc())


def subscription_statistics() -> Dict[str, object]:
    session = get_db()
    counts = {s: 0 for s in SubscriptionStatus}
    for status, n in session.execute(select(Subscription.status, func.count(Subscription.id)).group_by(Subscription.status)).all():
        counts[SubscriptionStatus(status)] = n
    revenue = session.execute(
        select(func.coalesce(func.sum(Subscription.amount), 0)).where(Subscription.status == SubscriptionStatus.APPROVED)
    ).scalar_one()
    return {
        'total_subscriptions': sum(counts.values()),
        'pending_subscriptions': counts[SubscriptionStatus.PENDING],
        'approved_subscriptions': counts[SubscriptionStatus.APPROVED],
        'rejected_subscriptions': counts[SubscriptionStatus.REJECTED],
        'total_revenue': float(revenue or 0),
    }

__all__ = [
    'submit_subscription', 'approve_subscription', 'reject_subscription', 'list_subscriptions',
    'subscription_statistics', 'get_subscription', 'transaction_id_exists',
]
