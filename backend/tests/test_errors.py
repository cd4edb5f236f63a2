def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_healthz(client):
    resp = client.get('/healthz')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


def test_catalog_products(client):
    body = client.get('/catalog/products').get_json()
    assert body['total'] == 6
    butter = next(p for p in body['data'] if p['code'] == 'BUTTER')
    assert butter['unit'] == 'kg'
    assert butter['unit_price'] == '300.00'


def test_internal_error_shape(app_context, monkeypatch):
    from tests.test_utils_seed import ensure_farmer, auth_headers
    import livestock.routes.tokens as tokens_mod
    client = app_context.test_client()
    headers = auth_headers(ensure_farmer('err_farmer@example.com'))

    def boom(farmer_id):
        raise RuntimeError('explode')
    monkeypatch.setattr(tokens_mod.token_service, 'get_balance', boom)
    resp = client.get('/farmers/me/tokens', headers=headers)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
