import pytest
from flask import Flask
from sqlalchemy.orm import Session

import livestock
from livestock import get_db
from livestock.models.accounts import Farmer
from livestock.models.subscription import Subscription, PackageTier
from livestock.models.token_transaction import TokenTransaction
from livestock.services import tokens as token_service
from livestock.utils.outcome import INSUFFICIENT_TOKENS, INVALID_AMOUNT, NOT_FOUND, ALREADY_PROCESSED
from tests.test_utils_seed import ensure_farmer


# ---------- In-memory ledger on the Farmer record ---------- #

@pytest.mark.parametrize('n', [1, 5, 150])
def test_add_then_deduct_returns_to_zero(n):
    farmer = Farmer(name='F', email='f@example.com')
    assert farmer.token_count == 0
    assert farmer.add_tokens(n)
    assert farmer.token_count == n
    assert farmer.deduct_tokens(n)
    assert farmer.token_count == 0


@pytest.mark.parametrize('n', [1, 10])
def test_overdraw_leaves_balance(n):
    farmer = Farmer(name='F', email='f@example.com', token_count=n)
    outcome = farmer.deduct_tokens(n + 1)
    assert not outcome
    assert outcome.reason == INSUFFICIENT_TOKENS
    assert farmer.token_count == n


@pytest.mark.parametrize('bad', [0, -3, True, 2.5, None])
def test_non_positive_amounts_rejected(bad):
    farmer = Farmer(name='F', email='f@example.com', token_count=4)
    assert farmer.add_tokens(bad).reason == INVALID_AMOUNT
    assert farmer.deduct_tokens(bad).reason == INVALID_AMOUNT
    assert farmer.token_count == 4


def test_has_enough_tokens():
    farmer = Farmer(name='F', email='f@example.com', token_count=3)
    assert farmer.has_enough_tokens(3)
    assert not farmer.has_enough_tokens(4)
    for bad in (None, True, '2', 1.0):
        assert farmer.has_enough_tokens(bad) is False
    farmer.token_count = None
    assert farmer.has_enough_tokens(0)
    assert not farmer.has_enough_tokens(1)
    assert farmer.has_enough_tokens(None) is False


# ---------- Persistent ledger service ---------- #

def test_credit_and_deduct_write_history(app_context: Flask):
    farmer = ensure_farmer('ledger_hist@example.com')
    outcome, balance = token_service.credit_tokens(farmer.id, 10)
    assert outcome and balance == 10
    outcome, balance = token_service.deduct_tokens(farmer.id, 4, 'ai_advice')
    assert outcome and balance == 6
    assert token_service.get_balance(farmer.id) == 6

    rows = token_service.history(farmer.id)
    assert [(t.delta, t.balance_after) for t in rows] == [(-4, 6), (10, 10)]
    assert rows[0].reason == TokenTransaction.REASON_FEATURE
    assert rows[0].feature_used == 'ai_advice'
    assert rows[1].reason == TokenTransaction.REASON_ADJUSTMENT


def test_deduct_more_than_balance_changes_nothing(app_context: Flask):
    farmer = ensure_farmer('ledger_short@example.com', tokens=3)
    outcome, balance = token_service.deduct_tokens(farmer.id, 4, 'ai_advice')
    assert outcome.reason == INSUFFICIENT_TOKENS
    assert balance == 3
    assert token_service.get_balance(farmer.id) == 3
    assert token_service.history(farmer.id) == []


def test_deduct_exact_balance_reaches_zero(app_context: Flask):
    farmer = ensure_farmer('ledger_exact@example.com', tokens=7)
    outcome, balance = token_service.deduct_tokens(farmer.id, 7)
    assert outcome and balance == 0
    outcome, balance = token_service.deduct_tokens(farmer.id, 1)
    assert outcome.reason == INSUFFICIENT_TOKENS and balance == 0


def test_ledger_rejects_bad_amounts_and_unknown_farmer(app_context: Flask):
    farmer = ensure_farmer('ledger_bad@example.com', tokens=2)
    outcome, _ = token_service.credit_tokens(farmer.id, 0)
    assert outcome.reason == INVALID_AMOUNT
    outcome, balance = token_service.deduct_tokens(farmer.id, -1)
    assert outcome.reason == INVALID_AMOUNT and balance == 2
    outcome, balance = token_service.deduct_tokens(987654, 1)
    assert outcome.reason == NOT_FOUND and balance is None
    outcome, balance = token_service.credit_tokens(987654, 1)
    assert outcome.reason == NOT_FOUND and balance is None


def test_subscription_credit_applies_once(app_context: Flask):
    farmer = ensure_farmer('ledger_sub@example.com')
    session = get_db()
    sub = Subscription(
        user_id=farmer.id, user_email=farmer.email, user_name=farmer.name,
        amount=50, tokens=10, transaction_id='TX-LEDGER-ONCE', package=PackageTier.BASIC,
    )
    session.add(sub); session.commit()

    reason = TokenTransaction.REASON_SUBSCRIPTION
    first, balance = token_service.credit_tokens(farmer.id, 10, reason=reason, subscription_id=sub.id)
    assert first and balance == 10
    second, balance = token_service.credit_tokens(farmer.id, 10, reason=reason, subscription_id=sub.id)
    assert second.reason == ALREADY_PROCESSED
    assert balance == 10
    assert token_service.get_balance(farmer.id) == 10
    assert len(token_service.history(farmer.id)) == 1


def test_deduct_loses_race_to_committed_spend(app_context: Flask):
    farmer = ensure_farmer('ledger_race@example.com', tokens=5)
    session = get_db()
    session.commit()
    # this session still believes the balance is 5
    assert farmer.token_count == 5 and farmer.has_enough_tokens(3)

    other = Session(bind=livestock.db_engine)
    try:
        rival = other.get(Farmer, farmer.id)
        assert rival.deduct_tokens(4)
        other.commit()
    finally:
        other.close()

    outcome, balance = token_service.deduct_tokens(farmer.id, 3, 'ai_advice')
    assert outcome.reason == INSUFFICIENT_TOKENS
    assert balance == 1
    assert token_service.get_balance(farmer.id) == 1
