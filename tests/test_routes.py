"""
Tests for the HTTP API: public booking flow and operator endpoints.
"""

from datetime import timedelta

import pytest

GATEWAY_SECRET = 'test-gateway-secret'


@pytest.fixture
def booking_date(app):
    """A date a few days ahead, so no slot on it has started."""
    from utils.datetime_helpers import get_today
    return (get_today() + timedelta(days=3)).isoformat()


@pytest.fixture
def booking_payload(booking_date):
    return {
        'name': 'Ravi Kumar',
        'phone': '9876543210',
        'email': 'ravi@example.com',
        'groundId': 'G1',
        'date': booking_date,
        'hours': [20, 21]
    }


def _create(client, payload):
    response = client.post('/api/bookings', json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['data']['app'] == 'TurfBook'

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_method_not_allowed_is_json(self, client):
        response = client.put('/api/bookings')
        assert response.status_code == 405
        assert response.get_json()['success'] is False


class TestGroundRoutes:

    def test_list_grounds(self, client):
        response = client.get('/api/grounds')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert [g['name'] for g in data] == ['G1', 'G2', 'Mega_Ground']
        assert data[2]['related_grounds'] == ['G1', 'G2']
        assert data[0]['related_grounds'] == ['Mega_Ground']

    def test_available_dates(self, client):
        response = client.get('/api/grounds/available-dates?days=10')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert sum(len(days) for days in data.values()) == 10
        for month, days in data.items():
            assert all(day['date'].startswith(month) for day in days)

    def test_available_dates_bad_window(self, client):
        response = client.get('/api/grounds/available-dates?days=500')
        assert response.status_code == 400

    def test_available_slots(self, client, booking_date):
        response = client.get(f'/api/grounds/available-slots?date={booking_date}')
        slots = response.get_json()['data']

        assert response.status_code == 200
        assert len(slots) == 24
        assert slots[3]['enabled'] is False
        assert slots[20] == {
            'hour': 20, 'slot': '8:00 PM to 9:00 PM', 'enabled': True,
            'grounds': ['G1', 'G2', 'Mega_Ground']
        }

    def test_available_slots_requires_date(self, client):
        response = client.get('/api/grounds/available-slots')
        body = response.get_json()

        assert response.status_code == 400
        assert body['field'] == 'date'

    def test_available_grounds(self, client, booking_date):
        response = client.get(f'/api/grounds/available-grounds?date={booking_date}&hours=20,21')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert {g['name'] for g in data if g['available']} == {'G1', 'G2', 'Mega_Ground'}

    def test_available_grounds_non_consecutive(self, client, booking_date):
        response = client.get(f'/api/grounds/available-grounds?date={booking_date}&hours=9,11')
        assert response.status_code == 400

    def test_pricing_update_requires_operator(self, client, grounds):
        response = client.put(f"/api/grounds/{grounds['G1']['id']}/pricing",
                              json={'pricing': {'Weekday_first_half': 900}})
        assert response.status_code == 401

    def test_pricing_update(self, operator_client, grounds):
        response = operator_client.put(f"/api/grounds/{grounds['G1']['id']}/pricing",
                                       json={'pricing': {'Weekday_first_half': 900}})

        assert response.status_code == 200
        assert response.get_json()['data']['pricing']['Weekday_first_half'] == 900


class TestBookingFlow:

    def test_create_booking(self, client, booking_payload):
        data = _create(client, booking_payload)

        assert data['payment_status'] == 'pending'
        assert data['ground_name'] == 'G1'
        assert data['hours'] == [20, 21]
        assert 'phone' not in data
        assert 'email' not in data

    def test_create_with_start_hour_and_duration(self, client, booking_payload):
        payload = dict(booking_payload)
        del payload['hours']
        payload.update(startHour=20, duration=2, groundId='G2')

        assert _create(client, payload)['hours'] == [20, 21]

    def test_create_validation_error(self, client, booking_payload):
        payload = dict(booking_payload, email='not-an-email')
        response = client.post('/api/bookings', json=payload)
        body = response.get_json()

        assert response.status_code == 400
        assert body['success'] is False
        assert body['field'] == 'email'

    def test_create_requires_body(self, client):
        response = client.post('/api/bookings', data='nope', content_type='text/plain')
        assert response.status_code == 400

    def test_conflicting_booking_rejected(self, client, booking_payload):
        _create(client, dict(booking_payload, groundId='Mega_Ground'))

        response = client.post('/api/bookings', json=booking_payload)
        body = response.get_json()

        assert response.status_code == 409
        assert body['unavailable_hours'] == [20, 21]

    def test_unknown_ground(self, client, booking_payload):
        response = client.post('/api/bookings', json=dict(booking_payload, groundId='G9'))
        assert response.status_code == 404

    def test_get_booking(self, client, booking_payload):
        booking = _create(client, booking_payload)

        response = client.get(f"/api/bookings/{booking['id']}")
        assert response.status_code == 200
        assert response.get_json()['data']['id'] == booking['id']

        assert client.get('/api/bookings/9999').status_code == 404

    def test_full_payment_flow(self, client, booking_payload, gateway_server):
        from blueprints.turf.services.payment_gateway import compute_signature

        booking = _create(client, booking_payload)

        response = client.post(f"/api/bookings/{booking['id']}/payment")
        checkout = response.get_json()['data']
        assert response.status_code == 200
        assert checkout['order_id'] == 'order_test_1'
        assert checkout['key_id'] == 'rzp_test_key'
        assert checkout['booking']['payment_status'] == 'processing'

        response = client.post(f"/api/bookings/{booking['id']}/payment/verify", json={
            'razorpay_order_id': checkout['order_id'],
            'razorpay_payment_id': 'pay_42',
            'razorpay_signature': compute_signature(checkout['order_id'], 'pay_42', GATEWAY_SECRET)
        })
        assert response.status_code == 200
        assert response.get_json()['data']['payment_status'] == 'paid'

        slots = client.get(f"/api/grounds/available-slots?date={booking_payload['date']}")
        assert slots.get_json()['data'][20]['grounds'] == ['G2']

    def test_verify_with_bad_signature(self, client, booking_payload, gateway_server):
        booking = _create(client, booking_payload)
        checkout = client.post(f"/api/bookings/{booking['id']}/payment").get_json()['data']

        response = client.post(f"/api/bookings/{booking['id']}/payment/verify", json={
            'orderId': checkout['order_id'],
            'paymentId': 'pay_42',
            'signature': 'forged'
        })

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid payment signature'
        assert gateway_server.payment_fetches == []

    def test_verify_gateway_timeout(self, client, booking_payload, gateway_server):
        from blueprints.turf.services.payment_gateway import compute_signature

        gateway_server.timeout_payments = True
        booking = _create(client, booking_payload)
        checkout = client.post(f"/api/bookings/{booking['id']}/payment").get_json()['data']

        response = client.post(f"/api/bookings/{booking['id']}/payment/verify", json={
            'razorpay_order_id': checkout['order_id'],
            'razorpay_payment_id': 'pay_42',
            'razorpay_signature': compute_signature(checkout['order_id'], 'pay_42', GATEWAY_SECRET)
        })

        assert response.status_code == 504
        assert response.get_json()['retryable'] is True

    def test_order_creation_failure(self, client, booking_payload, gateway_server):
        gateway_server.fail_orders = True
        booking = _create(client, booking_payload)

        response = client.post(f"/api/bookings/{booking['id']}/payment")
        assert response.status_code == 502

        detail = client.get(f"/api/bookings/{booking['id']}").get_json()['data']
        assert detail['payment_status'] == 'failed'

    def test_payment_failure_report(self, client, booking_payload):
        booking = _create(client, booking_payload)

        response = client.post(f"/api/bookings/{booking['id']}/payment/failure",
                               json={'error': {'description': 'Payment cancelled'}})
        data = response.get_json()['data']

        assert response.status_code == 200
        assert data['payment_status'] == 'failed'
        assert data['payment_failure_reason'] == 'Payment cancelled'

    def test_cancel_pending(self, client, booking_payload):
        booking = _create(client, booking_payload)

        response = client.delete(f"/api/bookings/{booking['id']}")
        assert response.status_code == 200
        assert client.get(f"/api/bookings/{booking['id']}").status_code == 404

    def test_cancel_paid_forbidden(self, operator_client, booking_payload):
        created = operator_client.post('/admin/offline-bookings', json=booking_payload)
        booking = created.get_json()['data']

        response = operator_client.delete(f"/api/bookings/{booking['id']}")

        assert response.status_code == 403
        assert response.get_json()['error'] == 'Cannot cancel paid booking. Please request refund.'


class TestAuth:

    def test_login_wrong_password(self, client):
        response = client.post('/auth/login', json={'username': 'admin', 'password': 'nope'})
        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        response = client.post('/auth/login', json={'username': 'admin'})
        assert response.status_code == 400
        assert 'password' in response.get_json()['errors']

    def test_me(self, operator_client):
        response = operator_client.get('/auth/me')
        assert response.status_code == 200
        assert response.get_json()['data']['username'] == 'admin'

    def test_me_requires_login(self, client):
        assert client.get('/auth/me').status_code == 401


class TestAdminRoutes:

    @pytest.mark.parametrize('method, url', [
        ('get', '/admin/bookings'),
        ('get', '/admin/bookings/search?q=ravi'),
        ('get', '/admin/statistics'),
        ('get', '/admin/blocked-slots'),
        ('post', '/admin/offline-bookings'),
        ('post', '/admin/blocked-slots'),
    ])
    def test_requires_operator(self, client, method, url):
        response = getattr(client, method)(url, json={})
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_offline_booking(self, operator_client, booking_payload):
        response = operator_client.post('/admin/offline-bookings',
                                        json=dict(booking_payload, totalAmount=1500))
        data = response.get_json()['data']

        assert response.status_code == 201
        assert data['payment_status'] == 'paid'
        assert data['booking_type'] == 'offline'
        assert data['total_amount'] == 1500
        assert data['created_by'] == 1

    def test_list_and_filter_bookings(self, operator_client, booking_payload):
        _create(operator_client, booking_payload)
        _create(operator_client, dict(booking_payload, groundId='G2', phone='9123456780'))

        response = operator_client.get('/admin/bookings?groundId=G2')
        body = response.get_json()

        assert response.status_code == 200
        assert len(body['data']) == 1
        assert body['data'][0]['phone'] == '9123456780'
        assert body['pagination']['total'] == 1

        response = operator_client.get('/admin/bookings?status=pending&limit=1')
        body = response.get_json()
        assert body['pagination'] == {'total': 2, 'page': 1, 'per_page': 1, 'pages': 2}

    def test_invalid_status_filter(self, operator_client):
        response = operator_client.get('/admin/bookings?status=lost')
        assert response.status_code == 400

    def test_search(self, operator_client, booking_payload):
        _create(operator_client, booking_payload)

        response = operator_client.get('/admin/bookings/search?q=ravi@')
        assert len(response.get_json()['data']) == 1
        assert operator_client.get('/admin/bookings/search').status_code == 400

    def test_history_and_refund(self, operator_client, booking_payload):
        booking = operator_client.post('/admin/offline-bookings',
                                       json=booking_payload).get_json()['data']

        response = operator_client.post(f"/admin/bookings/{booking['id']}/refund",
                                        json={'reason': 'Rain'})
        assert response.status_code == 200
        assert response.get_json()['data']['payment_status'] == 'refunded'

        history = operator_client.get(f"/admin/bookings/{booking['id']}/history").get_json()['data']
        assert [h['to_status'] for h in history] == ['paid', 'refunded']
        assert history[-1]['changed_by_username'] == 'admin'

    def test_refund_unpaid_rejected(self, operator_client, booking_payload):
        booking = _create(operator_client, booking_payload)

        response = operator_client.post(f"/admin/bookings/{booking['id']}/refund")
        assert response.status_code == 409

    def test_statistics(self, operator_client, booking_payload):
        operator_client.post('/admin/offline-bookings', json=booking_payload)

        response = operator_client.get('/admin/statistics?period=month')
        data = response.get_json()['data']

        assert response.status_code == 200
        assert data['period'] == 'month'
        assert data['totalBookings'] == 1
        assert data['confirmedBookings'] == 1
        assert data['totalRevenue'] > 0

        assert operator_client.get('/admin/statistics?period=forever').status_code == 400

    def test_block_and_unblock(self, operator_client, client, booking_date, booking_payload):
        response = operator_client.post('/admin/blocked-slots', json={
            'date': booking_date,
            'timeSlot': '8:00 PM to 9:00 PM',
            'groundId': 'G1',
            'reason': 'Lights repair'
        })
        block = response.get_json()['data']
        assert response.status_code == 201
        assert block['ground_name'] == 'G1'

        response = client.post('/api/bookings', json=booking_payload)
        assert response.status_code == 409

        listed = operator_client.get(f'/admin/blocked-slots?date={booking_date}').get_json()['data']
        assert [b['id'] for b in listed] == [block['id']]

        response = operator_client.delete(f"/admin/blocked-slots/{block['id']}")
        assert response.status_code == 200
        assert response.get_json()['data']['is_active'] == 0

        assert client.post('/api/bookings', json=booking_payload).status_code == 201

    def test_block_by_hour(self, operator_client, booking_date):
        response = operator_client.post('/admin/blocked-slots', json={
            'date': booking_date, 'hour': 14
        })
        assert response.status_code == 201
        assert response.get_json()['data']['time_slot'] == '2:00 PM to 3:00 PM'

    def test_duplicate_block(self, operator_client, booking_date):
        payload = {'date': booking_date, 'hour': 14}
        operator_client.post('/admin/blocked-slots', json=payload)

        response = operator_client.post('/admin/blocked-slots', json=payload)
        assert response.status_code == 409
