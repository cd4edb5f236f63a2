from __future__ import annotations
from flask import Blueprint, request, abort

from livestock.decorators.auth import require_permissions
from livestock.decorators.audit import audit_log
from livestock.models.accounts import ROLE_FARMER, ROLE_ADMIN
from livestock.models.subscription import Subscription, SubscriptionStatus, packages_json
from livestock.services import subscriptions as sub_service
from livestock.services.accounts import find_account
from livestock.services.policy import current_actor
from livestock.services.tokens import get_balance
from livestock.utils.listing import list_response
from livestock.utils.outcome import NOT_FOUND, DUPLICATE_TRANSACTION
from livestock.utils.validation import abort_with, require_fields

subs_bp = Blueprint('subscriptions', __name__)


@subs_bp.get('/packages')
def list_packages():
    return {'data': packages_json()}


@subs_bp.post('')
@require_permissions('SUB.CREATE', roles=(ROLE_FARMER,))
@audit_log('SUB.CREATE', entity='Subscription', entity_id_key='id', meta_keys=['package', 'amount', 'tokens'])
def submit_subscription():
    data = request.json or {}
    require_fields(data, 'package', 'amount', 'tokens', 'transaction_id')
    _, farmer_id = current_actor()
    farmer = find_account(ROLE_FARMER, farmer_id)
    if farmer is None:
        abort(404)
    sub, outcome = sub_service.submit_subscription(
        farmer, data['package'], data['amount'], data['tokens'], str(data['transaction_id']).strip(),
    )
    if not outcome:
        code = 409 if outcome.reason == DUPLICATE_TRANSACTION else 400
        abort_with(code, outcome.detail or outcome.reason, reason=outcome.reason)
    return _sub_json(sub), 201


@subs_bp.get('')
@require_permissions('SUB.READ')
def list_subscriptions():
    role, actor_id = current_actor()
    status = request.args.get('status')
    if status is not None:
        try:
            status = SubscriptionStatus(status)
        except ValueError:
            abort(400, description='status invalid')
    user_id = None if role == ROLE_ADMIN else actor_id
    if role == ROLE_ADMIN and request.args.get('user_id'):
        try:
            user_id = int(request.args['user_id'])
        except ValueError:
            abort(400, description='user_id invalid')
    return list_response(sub_service.list_subscriptions(user_id=user_id, status=status), _sub_json)


@subs_bp.get('/stats')
@require_permissions('SUB.STATS')
def subscription_stats():
    return sub_service.subscription_statistics()


@subs_bp.get('/<int:subscription_id>')
@require_permissions('SUB.READ')
def get_subscription(subscription_id: int):
    sub = _load(subscription_id)
    role, actor_id = current_actor()
    if role != ROLE_ADMIN and sub.user_id != actor_id:
        abort(403, description='Record ownership required')
    return _sub_json(sub)


def _decide(subscription_id: int, approve: bool):
    data = request.get_json(silent=True) or {}
    action = sub_service.approve_subscription if approve else sub_service.reject_subscription
    outcome = action(subscription_id, data.get('admin_notes'))
    if not outcome:
        if outcome.reason == NOT_FOUND:
            abort(404)
        abort_with(409, outcome.detail or outcome.reason, reason=outcome.reason)
    sub = _load(subscription_id)
    body = _sub_json(sub)
    if sub.user_type == ROLE_FARMER:
        body['farmer_token_balance'] = get_balance(sub.user_id)
    return body


def _prefetch(a, kw):
    sub = sub_service.get_subscription(kw.get('subscription_id'))
    return {'status': sub.status.value} if sub else {}


@subs_bp.post('/<int:subscription_id>/approve')
@require_permissions('SUB.APPROVE', roles=(ROLE_ADMIN,))
@audit_log('SUB.APPROVE', entity='Subscription', entity_id_key='id', diff_keys=['status'], pre_fetch=_prefetch, meta_keys=['tokens', 'user_id'])
def approve_subscription(subscription_id: int):
    return _decide(subscription_id, approve=True)


@subs_bp.post('/<int:subscription_id>/reject')
@require_permissions('SUB.REJECT', roles=(ROLE_ADMIN,))
@audit_log('SUB.REJECT', entity='Subscription', entity_id_key='id', diff_keys=['status'], pre_fetch=_prefetch)
def reject_subscription(subscription_id: int):
    return _decide(subscription_id, approve=False)


def _load(subscription_id: int) -> Subscription:
    sub = sub_service.get_subscription(subscription_id)
    if not sub:
        abort(404)
    return sub


def _sub_json(s: Subscription):
    return {
        'id': s.id,
        'user_id': s.user_id,
        'user_type': s.user_type,
        'user_email': s.user_email,
        'user_name': s.user_name,
        'package': s.package.value,
        'amount': float(s.amount),
        'tokens': s.tokens,
        'transaction_id': s.transaction_id,
        'status': s.status.value,
        'admin_notes': s.admin_notes,
        'created_at': s.created_at.isoformat() if s.created_at else None,
        'updated_at': s.updated_at.isoformat() if s.updated_at else None,
    }
