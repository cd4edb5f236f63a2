from __future__ import annotations
from flask import Blueprint, request, abort

from livestock.decorators.auth import require_permissions
from livestock.decorators.audit import audit_log
from livestock.models.accounts import ROLE_FARMER, ROLE_ADMIN
from livestock.services import tokens as token_service
from livestock.services.policy import assert_owns_record, current_actor
from livestock.utils.outcome import INSUFFICIENT_TOKENS, NOT_FOUND
from livestock.utils.validation import abort_with, coerce_int, require_fields

tokens_bp = Blueprint('tokens', __name__)


def _resolve_farmer_id(farmer_ref: str) -> int:
    """'me' for the calling farmer, or an explicit id (admins / the owner only)."""
    if farmer_ref == 'me':
        role, actor_id = current_actor()
        if role != ROLE_FARMER:
            abort(403, description='Only farmers hold a token balance')
        return actor_id
    try:
        farmer_id = int(farmer_ref)
    except ValueError:
        abort(404)
    assert_owns_record(farmer_id, ROLE_FARMER)
    return farmer_id


@tokens_bp.get('/<farmer_ref>/tokens')
@require_permissions('TOKEN.READ')
def token_balance(farmer_ref: str):
    farmer_id = _resolve_farmer_id(farmer_ref)
    balance = token_service.get_balance(farmer_id)
    if balance is None:
        abort(404)
    return {'farmer_id': farmer_id, 'token_balance': balance}


@tokens_bp.post('/<farmer_ref>/tokens/deduct')
@require_permissions('TOKEN.SPEND', roles=(ROLE_FARMER, ROLE_ADMIN))
@audit_log('TOKEN.SPEND', entity='Farmer', entity_id_key='farmer_id', meta_keys=['deducted_amount', 'feature_used', 'new_balance'])
def deduct_tokens(farmer_ref: str):
    farmer_id = _resolve_farmer_id(farmer_ref)
    data = request.json or {}
    require_fields(data, 'amount', 'feature_used')
    amount = coerce_int(data['amount'], 'amount')
    outcome, balance = token_service.deduct_tokens(farmer_id, amount, data['feature_used'])
    if not outcome:
        if outcome.reason == NOT_FOUND:
            abort(404)
        if outcome.reason == INSUFFICIENT_TOKENS:
            abort_with(400, 'Insufficient tokens', reason=outcome.reason, current_balance=balance, required_amount=amount)
        abort_with(400, outcome.detail or outcome.reason, reason=outcome.reason)
    return {
        'farmer_id': farmer_id,
        'new_balance': balance,
        'deducted_amount': amount,
        'feature_used': data['feature_used'],
    }


@tokens_bp.get('/<farmer_ref>/tokens/history')
@require_permissions('TOKEN.READ')
def token_history(farmer_ref: str):
    farmer_id = _resolve_farmer_id(farmer_ref)
    rows = token_service.history(farmer_id)
    return {
        'data': [
            {
                'id': t.id,
                'delta': t.delta,
                'balance_after': t.balance_after,
                'reason': t.reason,
                'feature_used': t.feature_used,
                'subscription_id': t.subscription_id,
                'created_at': t.created_at.isoformat() if t.created_at else None,
            }
            for t in rows
        ]
    }
