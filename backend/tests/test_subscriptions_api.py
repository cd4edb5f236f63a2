from flask import Flask

from livestock import get_db
from livestock.models.subscription import SubscriptionStatus
from livestock.models.token_transaction import TokenTransaction
from livestock.services import subscriptions as sub_service
from livestock.services.tokens import get_balance
from livestock.utils.outcome import ALREADY_PROCESSED, NOT_FOUND
from tests.test_utils_seed import ensure_admin, ensure_customer, ensure_farmer, auth_headers


def _submit(client, headers, tx: str, package='basic', amount=50.0, tokens=10):
    return client.post('/subscriptions', json={
        'package': package, 'amount': amount, 'tokens': tokens, 'transaction_id': tx,
    }, headers=headers)


def test_packages_are_public(client):
    resp = client.get('/subscriptions/packages')
    assert resp.status_code == 200
    tiers = {p['tier']: p for p in resp.get_json()['data']}
    assert tiers['standard']['tokens'] == 25
    assert tiers['premium']['details'] == '500 TK - 150 Tokens'


def test_submit_and_approve_credits_tokens(app_context: Flask):
    client = app_context.test_client()
    farmer = ensure_farmer('sub_ok@example.com', tokens=1)
    fh = auth_headers(farmer)
    resp = _submit(client, fh, 'TX-OK-1', package='standard', amount=100, tokens=25)
    assert resp.status_code == 201, resp.get_json()
    sub = resp.get_json()
    assert sub['status'] == 'pending'
    assert sub['user_id'] == farmer.id
    assert sub['user_email'] == 'sub_ok@example.com'

    ah = auth_headers(ensure_admin())
    resp = client.post(f'/subscriptions/{sub["id"]}/approve', json={'admin_notes': 'verified'}, headers=ah)
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['status'] == 'approved'
    assert body['admin_notes'] == 'verified'
    assert body['farmer_token_balance'] == 26
    assert get_balance(farmer.id) == 26


def test_double_approval_credits_once(app_context: Flask):
    client = app_context.test_client()
    farmer = ensure_farmer('sub_twice@example.com')
    sid = _submit(client, auth_headers(farmer), 'TX-TWICE').get_json()['id']
    ah = auth_headers(ensure_admin())
    assert client.post(f'/subscriptions/{sid}/approve', headers=ah).status_code == 200
    resp = client.post(f'/subscriptions/{sid}/approve', headers=ah)
    assert resp.status_code == 409
    assert resp.get_json()['error']['reason'] == 'already_processed'
    assert get_balance(farmer.id) == 10
    credits = get_db().query(TokenTransaction).filter_by(subscription_id=sid).count()
    assert credits == 1

    # service level repeat is equally inert
    outcome = sub_service.approve_subscription(sid)
    assert outcome.reason == ALREADY_PROCESSED
    assert sub_service.reject_subscription(sid).reason == ALREADY_PROCESSED
    assert get_balance(farmer.id) == 10
    assert sub_service.approve_subscription(999999).reason == NOT_FOUND
    # no lifecycle edge leads back to pending
    assert sub_service._claim_pending(sid, SubscriptionStatus.PENDING, None) is False
    assert sub_service.get_subscription(sid).status == SubscriptionStatus.APPROVED


def test_reject_leaves_balance(app_context: Flask):
    client = app_context.test_client()
    farmer = ensure_farmer('sub_reject@example.com', tokens=4)
    sid = _submit(client, auth_headers(farmer), 'TX-REJECT').get_json()['id']
    ah = auth_headers(ensure_admin())
    resp = client.post(f'/subscriptions/{sid}/reject', json={'admin_notes': 'no payment found'}, headers=ah)
    assert resp.status_code == 200
    assert resp.get_json()['status'] == 'rejected'
    assert get_balance(farmer.id) == 4
    assert client.post(f'/subscriptions/{sid}/approve', headers=ah).status_code == 409
    assert get_balance(farmer.id) == 4


def test_submit_validation(app_context: Flask):
    client = app_context.test_client()
    fh = auth_headers(ensure_farmer('sub_invalid@example.com'))
    resp = _submit(client, fh, 'TX-BAD-PKG', amount=50.0, tokens=25)
    assert resp.status_code == 400
    assert resp.get_json()['error']['reason'] == 'invalid_package'
    assert _submit(client, fh, 'TX-GOLD', package='gold', amount=1000.0, tokens=500).status_code == 400

    assert _submit(client, fh, 'TX-DUP').status_code == 201
    resp = _submit(client, fh, 'TX-DUP')
    assert resp.status_code == 409
    assert resp.get_json()['error']['reason'] == 'duplicate_transaction'

    resp = client.post('/subscriptions', json={'package': 'basic', 'amount': 50.0, 'tokens': 10}, headers=fh)
    assert resp.status_code == 400


def test_only_farmers_submit_and_only_admins_decide(app_context: Flask):
    client = app_context.test_client()
    farmer = ensure_farmer('sub_perm@example.com')
    fh = auth_headers(farmer)
    ch = auth_headers(ensure_customer('sub_perm_customer@example.com'))
    assert _submit(client, ch, 'TX-CUST').status_code == 403
    sid = _submit(client, fh, 'TX-PERM').get_json()['id']
    assert client.post(f'/subscriptions/{sid}/approve', headers=fh).status_code == 403
    assert client.get('/subscriptions/stats', headers=fh).status_code == 403
    assert client.post('/subscriptions/999999/approve', headers=auth_headers(ensure_admin())).status_code == 404


def test_listing_and_ownership(app_context: Flask):
    client = app_context.test_client()
    farmer = ensure_farmer('sub_list@example.com')
    other = ensure_farmer('sub_list_other@example.com')
    fh = auth_headers(farmer)
    mine = [_submit(client, fh, f'TX-LIST-{i}').get_json()['id'] for i in range(2)]
    theirs = _submit(client, auth_headers(other), 'TX-LIST-OTHER').get_json()['id']

    body = client.get('/subscriptions', headers=fh).get_json()
    assert {s['id'] for s in body['data']} == set(mine)
    assert client.get(f'/subscriptions/{theirs}', headers=fh).status_code == 403
    assert client.get(f'/subscriptions/{mine[0]}', headers=fh).status_code == 200

    ah = auth_headers(ensure_admin())
    client.post(f'/subscriptions/{mine[0]}/approve', headers=ah)
    approved = client.get(f'/subscriptions?status=approved&user_id={farmer.id}', headers=ah).get_json()
    assert [s['id'] for s in approved['data']] == [mine[0]]
    assert client.get('/subscriptions?status=done', headers=ah).status_code == 400


def test_subscription_stats(app_context: Flask):
    client = app_context.test_client()
    ah = auth_headers(ensure_admin())
    before = client.get('/subscriptions/stats', headers=ah).get_json()
    fh = auth_headers(ensure_farmer('sub_stats@example.com'))
    approve_id = _submit(client, fh, 'TX-STATS-1', package='premium', amount=500, tokens=150).get_json()['id']
    reject_id = _submit(client, fh, 'TX-STATS-2').get_json()['id']
    _submit(client, fh, 'TX-STATS-3')
    client.post(f'/subscriptions/{approve_id}/approve', headers=ah)
    client.post(f'/subscriptions/{reject_id}/reject', headers=ah)
    after = client.get('/subscriptions/stats', headers=ah).get_json()
    assert after['total_subscriptions'] - before['total_subscriptions'] == 3
    assert after['approved_subscriptions'] - before['approved_subscriptions'] == 1
    assert after['rejected_subscriptions'] - before['rejected_subscriptions'] == 1
    assert after['pending_subscriptions'] - before['pending_subscriptions'] == 1
    assert after['total_revenue'] - before['total_revenue'] == 500.0
