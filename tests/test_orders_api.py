# tests/test_orders_api.py
"""착불(COD) 주문 생성/조회 API 테스트"""
from datetime import timedelta

import pytest

from app.utils.datetime_utils import DateTimeUtils

SHIPPING = {'fullName': 'Asha Rao', 'phone': '9876543210', 'email': 'asha@example.com',
            'address': '12 MG Road, Bengaluru'}


def _order_payload(*items):
    return {'items': list(items) or [{'productId': 'prod-1', 'quantity': 2}], 'shippingAddress': SHIPPING}


def _place(client, headers, payload=None):
    return client.post('/api/orders/', json=payload or _order_payload(), headers=headers)


def _seed_order(db, order_id, order_number, user_id='user-1', created_at=None, status='pending'):
    created_at = created_at or DateTimeUtils.now()
    db.collection('orders').document(order_id).set({
        'order_id': order_id, 'order_number': order_number, 'user_id': user_id,
        'items': [{'product_id': 'prod-1', 'name': 'Flea Shampoo', 'quantity': 1, 'price': 249.5}],
        'shipping_address': {'full_name': 'Asha Rao', 'phone': '9876543210',
                             'email': 'asha@example.com', 'address': '12 MG Road'},
        'payment_method': 'cod', 'total_amount': 249.5, 'status': status, 'payment_details': None,
        'created_at': created_at, 'updated_at': created_at,
    })


@pytest.fixture
def catalog(seed_product):
    seed_product()
    seed_product('prod-2', name='Dewormer Tablets', price=120.0)


def test_cod_order_uses_catalog_prices(client, db, users, catalog, auth_headers):
    payload = _order_payload({'productId': 'prod-1', 'quantity': 2, 'price': 1.0, 'name': 'Cheap'},
                             {'productId': 'prod-2', 'quantity': 1})
    response = _place(client, auth_headers('user-1'), payload)

    assert response.status_code == 201
    body = response.get_json()
    assert body['message'] == 'Order placed successfully'
    order = body['order']
    assert order['totalAmount'] == 619.0
    assert order['items'][0] == {'productId': 'prod-1', 'name': 'Flea Shampoo', 'quantity': 2, 'price': 249.5}
    assert order['paymentMethod'] == 'cod'
    assert order['status'] == 'pending'
    assert order['paymentDetails'] is None

    stored = db.collection('orders').document(order['id']).get().to_dict()
    assert stored['total_amount'] == 619.0
    assert stored['user_id'] == 'user-1'


def test_order_numbers_are_sequential_per_day(client, users, catalog, auth_headers):
    today = DateTimeUtils.to_yymmdd()
    first = _place(client, auth_headers('user-1')).get_json()['order']
    second = _place(client, auth_headers('user-2')).get_json()['order']

    assert first['orderNumber'] == f'ORD-{today}-0001'
    assert second['orderNumber'] == f'ORD-{today}-0002'


def test_previous_day_orders_do_not_count(client, db, users, catalog, auth_headers):
    _seed_order(db, 'old-order', 'ORD-000101-0001', created_at=DateTimeUtils.now() - timedelta(days=2))
    order = _place(client, auth_headers('user-1')).get_json()['order']
    assert order['orderNumber'] == f'ORD-{DateTimeUtils.to_yymmdd()}-0001'


def test_order_number_collision_asks_client_to_retry(client, db, users, catalog, auth_headers):
    # 어제 날짜로 기록됐지만 오늘 번호를 가진 주문 -> 채번 결과가 기존 번호와 충돌
    _seed_order(db, 'clash', f'ORD-{DateTimeUtils.to_yymmdd()}-0001',
                created_at=DateTimeUtils.now() - timedelta(days=1))
    response = _place(client, auth_headers('user-1'))

    assert response.status_code == 409
    body = response.get_json()
    assert body['shouldRetry'] is True
    assert body['message'] == 'Order creation failed. Please try again.'
    assert len(list(db.collection('orders').stream())) == 1


def test_unknown_product_is_not_found(client, db, users, catalog, auth_headers):
    response = _place(client, auth_headers('user-1'), _order_payload({'productId': 'nope', 'quantity': 1}))

    assert response.status_code == 404
    assert response.get_json()['message'] == 'Product nope not found'
    assert list(db.collection('orders').stream()) == []


@pytest.mark.parametrize('payload, field', [
    ({'items': [], 'shippingAddress': SHIPPING}, 'items'),
    ({'items': [{'productId': 'prod-1', 'quantity': 0}], 'shippingAddress': SHIPPING}, 'items'),
    ({'items': [{'productId': 'prod-1', 'quantity': 1}]}, 'shippingAddress'),
    ({'items': [{'productId': 'prod-1', 'quantity': 1}], 'shippingAddress': dict(SHIPPING, email='bad')},
     'shippingAddress'),
    ({'items': [{'productId': 'prod-1', 'quantity': 1}], 'shippingAddress': SHIPPING, 'paymentMethod': 'online'},
     'paymentMethod'),
])
def test_invalid_order_payload(client, users, catalog, auth_headers, payload, field):
    response = _place(client, auth_headers('user-1'), payload)
    assert response.status_code == 400
    assert field in response.get_json()['details']


def test_empty_items_message(client, users, auth_headers):
    response = _place(client, auth_headers('user-1'), {'items': [], 'shippingAddress': SHIPPING})
    assert response.get_json()['details']['items'] == ['Order must contain at least one item']


def test_non_json_order_body_is_a_validation_error(client, users, auth_headers):
    response = client.post('/api/orders/', data='items=prod-1', content_type='text/plain',
                           headers=auth_headers('user-1'))
    assert response.status_code == 400
    assert 'items' in response.get_json()['details']


def test_my_orders_lists_only_own_orders(client, db, users, auth_headers):
    now = DateTimeUtils.now()
    _seed_order(db, 'o1', 'ORD-240101-0001', created_at=now - timedelta(hours=2))
    _seed_order(db, 'o2', 'ORD-240101-0002', created_at=now)
    _seed_order(db, 'o3', 'ORD-240101-0003', user_id='user-2')

    body = client.get('/api/orders/my-orders', headers=auth_headers('user-1')).get_json()
    assert [order['id'] for order in body] == ['o2', 'o1']


def test_get_order_is_limited_to_owner_or_admin(client, db, users, auth_headers):
    _seed_order(db, 'o1', 'ORD-240101-0001')

    own = client.get('/api/orders/o1', headers=auth_headers('user-1'))
    assert own.status_code == 200
    assert own.get_json()['user']['name'] == 'Asha Rao'

    assert client.get('/api/orders/o1', headers=auth_headers('admin-1')).status_code == 200

    other = client.get('/api/orders/o1', headers=auth_headers('user-2'))
    assert other.status_code == 403
    assert other.get_json()['message'] == 'Access denied'

    assert client.get('/api/orders/missing', headers=auth_headers('user-1')).status_code == 404


def test_admin_list_full_and_paged(client, db, users, auth_headers):
    now = DateTimeUtils.now()
    for index in range(12):
        _seed_order(db, f'o{index:02d}', f'ORD-240101-{index + 1:04d}', created_at=now - timedelta(minutes=index))
    admin = auth_headers('admin-1')

    full = client.get('/api/orders/', headers=admin).get_json()
    assert (full['total'], full['totalPages'], full['currentPage']) == (12, 1, 1)
    assert len(full['orders']) == 12

    paged = client.get('/api/orders/?page=2', headers=admin).get_json()
    assert (paged['total'], paged['totalPages'], paged['currentPage']) == (12, 2, 2)
    assert [order['id'] for order in paged['orders']] == ['o10', 'o11']

    limited = client.get('/api/orders/?limit=5', headers=admin).get_json()
    assert len(limited['orders']) == 5
    assert limited['totalPages'] == 3


def test_admin_list_requires_admin(client, users, auth_headers):
    assert client.get('/api/orders/', headers=auth_headers('user-1')).status_code == 403


def test_update_order_status(client, db, users, auth_headers):
    _seed_order(db, 'o1', 'ORD-240101-0001')
    response = client.patch('/api/orders/o1/status', json={'status': 'delivered'}, headers=auth_headers('admin-1'))

    assert response.status_code == 200
    assert response.get_json()['status'] == 'delivered'
    assert db.collection('orders').document('o1').get().to_dict()['status'] == 'delivered'

    invalid = client.patch('/api/orders/o1/status', json={'status': 'shipped'}, headers=auth_headers('admin-1'))
    assert invalid.status_code == 400
