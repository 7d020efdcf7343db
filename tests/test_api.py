import json

import pytest
from fastapi.testclient import TestClient

from server import create_app


@pytest.fixture
def client(system):
    return TestClient(create_app(system))


def sign_up(client, mailer, username='aling_nena', role='Seller'):
    email = f'{username}@example.com'
    resp = client.post('/api/auth/register', json={
        'username': username, 'email': email, 'confirm_email': email,
        'password': 'secret123', 'confirm_password': 'secret123', 'role': role,
    })
    assert resp.status_code == 200
    resp = client.post('/api/auth/verify', json={'email': email, 'code': mailer.last_code(email)})
    body = resp.json()
    assert body['success']
    return {'Authorization': f"Bearer {body['session_token']}"}


@pytest.fixture
def seller_headers(client, mailer):
    return sign_up(client, mailer)


def add(client, headers, name, **fields):
    data = {'name': name, 'price': 10, 'cost_price': 8, 'quantity': 10}
    data.update(fields)
    resp = client.post('/api/dash/items', data={k: str(v) for k, v in data.items()}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_root_and_status(client):
    assert client.get('/api/').json() == {'message': 'Sari-Sari Store API'}
    status = client.get('/api/status').json()
    assert status['integrations']['gemini']['configured'] is True


def test_dashboard_requires_login(client):
    assert client.get('/api/dash').status_code == 401
    assert client.get('/api/dash', headers={'Authorization': 'Bearer nope'}).status_code == 401


def test_login_flow(client, mailer):
    sign_up(client, mailer, username='mang_tomas', role='Customer')

    bad = client.post('/api/auth/login', json={'username_or_email': 'mang_tomas', 'password': 'wrong'})
    assert bad.status_code == 401
    assert bad.json()['success'] is False

    good = client.post('/api/auth/login', json={'username_or_email': 'mang_tomas@example.com', 'password': 'secret123'})
    body = good.json()
    assert body['redirect_url'] == '/shop'
    headers = {'Authorization': f"Bearer {body['session_token']}"}
    assert client.get('/api/auth/me', headers=headers).json()['username'] == 'mang_tomas'

    client.post('/api/auth/logout', headers=headers)
    assert client.get('/api/auth/me', headers=headers).status_code == 401


def test_register_mismatch_returns_400(client):
    resp = client.post('/api/auth/register', json={
        'username': 'someone', 'email': 'a@example.com', 'confirm_email': 'b@example.com',
        'password': 'secret123', 'confirm_password': 'secret123',
    })
    assert resp.status_code == 400
    assert resp.json() == {'success': False, 'detail': 'Emails do not match.'}


def test_seller_reorders_catalog(client, seller_headers):
    a = add(client, seller_headers, 'A')
    b = add(client, seller_headers, 'B')
    c = add(client, seller_headers, 'C')
    assert [a['position'], b['position'], c['position']] == [1, 2, 3]

    assert client.post('/api/dash/items/swap', json={'ids': [a['id'], c['id']]},
                       headers=seller_headers).json() == {'swapped': True}
    names = [i['name'] for i in client.get('/api/dash', headers=seller_headers).json()['items']]
    assert names == ['C', 'B', 'A']

    assert client.delete(f"/api/dash/items/{b['id']}", headers=seller_headers).json() == {'deleted': 1}
    assert client.post('/api/dash/items/reindex', headers=seller_headers).json() == {'updated': 1}
    items = client.get('/api/dash', headers=seller_headers).json()['items']
    assert [(i['name'], i['position']) for i in items] == [('C', 1), ('A', 2)]

    d = add(client, seller_headers, 'D')
    assert d['position'] == 3


def test_item_logo_upload_and_edit(client, seller_headers):
    resp = client.post('/api/dash/items', data={'name': 'Milo', 'price': '10'},
                       files={'logo': ('milo.png', b'\x89PNGdata', 'image/png')}, headers=seller_headers)
    item = resp.json()
    assert item['has_logo'] is True
    assert 'logo_data' not in item

    logo = client.get(f"/api/items/{item['id']}/logo")
    assert logo.content == b'\x89PNGdata'
    assert logo.headers['content-type'] == 'image/png'

    edited = client.put(f"/api/dash/items/{item['id']}", data={'name': 'Milo Big', 'price': '20'},
                        headers=seller_headers).json()
    assert edited['name'] == 'Milo Big'
    assert edited['has_logo'] is True

    assert client.put('/api/dash/items/000000000000000000000000', data={'name': 'x'},
                      headers=seller_headers).status_code == 404


def test_mass_delete_and_store_settings(client, seller_headers):
    a = add(client, seller_headers, 'A')
    b = add(client, seller_headers, 'B')
    add(client, seller_headers, 'C')
    resp = client.post('/api/dash/items/mass-delete', json={'ids': f"{a['id']},{b['id']}"}, headers=seller_headers)
    assert resp.json() == {'deleted': 2}

    resp = client.put('/api/dash/store', json={'store_name': 'Tindahan ni Nena', 'theme_color': '#ff0000'},
                      headers=seller_headers)
    assert resp.json()['store']['store_name'] == 'Tindahan ni Nena'
    assert client.get('/api/dash', headers=seller_headers).json()['store']['theme_color'] == '#ff0000'


def test_shopper_checkout_flow(client, seller_headers):
    store_id = client.get('/api/dash', headers=seller_headers).json()['store']['id']
    soda = add(client, seller_headers, 'Soda', price=15, quantity=5)
    chips = add(client, seller_headers, 'Chips', price=20, quantity=1)

    shopper = TestClient(client.app)
    assert shopper.post(f'/api/shop/{store_id}/checkout').json()['redirect'] == f'/shop/{store_id}?view=shop'

    shopper.post(f'/api/shop/{store_id}/cart', json={'item_id': soda['id'], 'quantity': 2})
    count = shopper.post(f'/api/shop/{store_id}/cart', json={'item_id': chips['id'], 'quantity': 2}).json()['count']
    assert count == 4

    cart = shopper.get(f'/api/shop/{store_id}/cart').json()
    assert cart['grand_total'] == 70

    short = shopper.post(f'/api/shop/{store_id}/checkout').json()
    assert short['success'] is False
    assert short['short_items'] == ['Chips']
    assert short['redirect'] == f'/shop/{store_id}?view=cart'

    # a second visitor's cart is independent
    other = TestClient(client.app)
    other.post(f'/api/shop/{store_id}/cart', json={'item_id': soda['id'], 'quantity': 1})
    done = other.post(f'/api/shop/{store_id}/checkout').json()
    assert done['success'] is True
    assert done['order_code'].startswith('OR-')

    receipt = other.get(f"/api/shop/{store_id}/orders/{done['order_id']}").json()
    assert receipt['order']['total_amount'] == 15
    assert receipt['order']['customer_name'] == 'Guest'

    catalog = shopper.get(f'/api/shop/{store_id}', params={'sort': 'price_desc'}).json()
    assert [(i['name'], i['quantity']) for i in catalog['items']] == [('Chips', 1), ('Soda', 4)]

    notes = client.get('/api/dash/notifications', headers=seller_headers).json()['notifications']
    assert any(n['type'] == 'order' for n in notes)
    client.post('/api/dash/notifications/clear', headers=seller_headers)
    assert client.get('/api/dash/notifications', headers=seller_headers).json()['notifications'] == []


def test_unknown_store_is_404(client):
    resp = client.get('/api/shop/000000000000000000000000')
    assert resp.status_code == 404
    assert resp.json()['success'] is False


def test_marketplace_and_search(client, mailer, seller_headers):
    add(client, seller_headers, 'Sardinas', category='Canned Goods')
    other_headers = sign_up(client, mailer, username='mang_kanor')
    add(client, other_headers, 'Sabon', category='Toiletries')

    stores = client.get('/api/shop', headers=other_headers).json()['stores']
    assert [s['store_name'] for s in stores] == ["mang_kanor's Store", "aling_nena's Store"]

    results = client.get('/api/shop/search', params={'q': 'canned'}).json()['items']
    assert [i['name'] for i in results] == ['Sardinas']
    assert sorted(client.get('/api/shop/suggestions', params={'term': 'sa'}).json()) == ['Sabon', 'Sardinas']


def test_chat_between_guest_seller_and_sari(client, seller_headers, ai_client):
    store_id = client.get('/api/dash', headers=seller_headers).json()['store']['id']

    client.post(f'/api/shop/{store_id}/messages', json={'guest_id': 'g1', 'content': 'May yelo?'})
    client.post('/api/dash/messages/reply', json={'guest_id': 'g1', 'content': 'Meron!'}, headers=seller_headers)
    convo = client.get(f'/api/shop/{store_id}/messages', params={'guest_id': 'g1'}).json()['messages']
    assert [m['sender'] for m in convo] == ['User', 'Seller']

    ai_client.queue(json.dumps({'handoff': True, 'reply': 'Calling the owner.'}))
    reply = client.post(f'/api/shop/{store_id}/chat', json={'guest_id': 'g2', 'input': 'Pautang po'}).json()
    assert reply == {'reply': 'Calling the owner.', 'handoff': True}
    assert len(client.get('/api/dash/messages', headers=seller_headers).json()['messages']) == 4


def test_reports_and_exports(client, seller_headers, ai_client):
    add(client, seller_headers, 'Kape', quantity=2)

    report = client.get('/api/reports', headers=seller_headers).json()
    assert report['kpis']['total_orders'] == 0
    assert [i['name'] for i in report['low_stock_items']] == ['Kape']

    refused = client.post('/api/reports/analyze', headers=seller_headers).json()
    assert refused['success'] is False

    csv_resp = client.get('/api/reports/export/csv', headers=seller_headers)
    assert csv_resp.headers['content-type'].startswith('text/csv')
    assert 'Kape' in csv_resp.text

    pdf_resp = client.get('/api/reports/export/pdf', headers=seller_headers)
    assert pdf_resp.content.startswith(b'%PDF')

    ai_client.queue('Mag-restock ng Kape.')
    insight = client.get('/api/dash/insight', params={'mode': 'restock'}, headers=seller_headers).json()
    assert insight == {'message': 'Mag-restock ng Kape.'}


def test_cart_cookie_is_refreshed_on_every_cart_request(client, seller_headers):
    store_id = client.get('/api/dash', headers=seller_headers).json()['store']['id']
    soda = add(client, seller_headers, 'Soda')

    shopper = TestClient(client.app)
    first = shopper.post(f'/api/shop/{store_id}/cart', json={'item_id': soda['id']})
    issued = first.cookies.get('cart_session')
    assert issued

    again = shopper.get(f'/api/shop/{store_id}/cart')
    refreshed = again.headers.get('set-cookie', '')
    assert f'cart_session={issued}' in refreshed
    assert 'Max-Age=3600' in refreshed
    assert again.json()['grand_total'] == 10


def test_cart_refuses_item_from_another_store(client, mailer, seller_headers):
    store_a = client.get('/api/dash', headers=seller_headers).json()['store']['id']
    other_headers = sign_up(client, mailer, username='mang_kanor')
    foreign = add(client, other_headers, 'Sabon', quantity=5)

    shopper = TestClient(client.app)
    resp = shopper.post(f'/api/shop/{store_a}/cart', json={'item_id': foreign['id'], 'quantity': 2})
    assert resp.status_code == 404
    assert resp.json()['success'] is False

    assert shopper.post(f'/api/shop/{store_a}/checkout').json()['redirect'] == f'/shop/{store_a}?view=shop'
    other_items = client.get('/api/dash', headers=other_headers).json()['items']
    assert other_items[0]['quantity'] == 5
