"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database,
and a fake payment gateway served through httpx.MockTransport.
"""

import json
import os
import pytest
import tempfile
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'turfbook_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH

TEST_TIMEZONE = 'Asia/Kolkata'


class FakeGatewayServer:
    """In-process stand-in for the gateway's REST API."""

    def __init__(self):
        self.requests = []
        self.payment_status = 'captured'
        self.payment_method = 'upi'
        self.fail_orders = False
        self.fail_payments = False
        self.timeout_payments = False
        self._order_count = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == 'POST' and path.endswith('/orders'):
            if self.fail_orders:
                return httpx.Response(500, json={'error': {'description': 'server error'}})
            self._order_count += 1
            body = json.loads(request.content)
            return httpx.Response(200, json={
                'id': f'order_test_{self._order_count}',
                'amount': body['amount'],
                'currency': body['currency'],
                'receipt': body['receipt'],
                'notes': body['notes'],
                'status': 'created'
            })

        if request.method == 'GET' and '/payments/' in path:
            if self.timeout_payments:
                raise httpx.ReadTimeout('timed out', request=request)
            if self.fail_payments:
                return httpx.Response(502, json={'error': {'description': 'bad gateway'}})
            return httpx.Response(200, json={
                'id': path.rsplit('/', 1)[-1],
                'status': self.payment_status,
                'method': self.payment_method
            })

        return httpx.Response(404, json={'error': {'description': 'not found'}})

    @property
    def payment_fetches(self):
        return [r for r in self.requests if '/payments/' in r.url.path]

    @property
    def order_creations(self):
        return [r for r in self.requests if r.url.path.endswith('/orders')]


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for suffix in ('', '-wal', '-shm'):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def gateway_server():
    """Fake gateway; tweak its attributes to simulate outcomes."""
    return FakeGatewayServer()


@pytest.fixture
def app(gateway_server):
    """Create test application with isolated database and fake gateway."""
    from app import create_app
    from database import init_db
    from blueprints.turf.services.payment_gateway import init_payment_gateway

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = TEST_DB_PATH
    app.config['TIMEZONE'] = TEST_TIMEZONE

    app.extensions['payment_gateway'].close()
    init_payment_gateway(app, transport=httpx.MockTransport(gateway_server.handler))

    with app.app_context():
        init_db()
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def operator_client(app, client):
    """Create test client logged in as the seeded operator."""
    response = client.post('/auth/login', json={
        'username': 'admin',
        'password': 'admin123'
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def local_time():
    """Factory for aware datetimes in the business timezone."""
    def make(year, month, day, hour=0, minute=0):
        return datetime(year, month, day, hour, minute, tzinfo=ZoneInfo(TEST_TIMEZONE))
    return make


@pytest.fixture
def grounds(app):
    """Seeded grounds keyed by name."""
    from models.ground import get_all_grounds
    return {ground['name']: ground for ground in get_all_grounds()}


@pytest.fixture
def set_status(app):
    """Force a booking's payment status (test setup shortcut)."""
    from database import get_db

    def update(booking_id, status, order_id=None):
        db = get_db()
        db.execute('''
            UPDATE turf_bookings
            SET payment_status = ?, gateway_order_id = COALESCE(?, gateway_order_id)
            WHERE id = ?
        ''', (status, order_id, booking_id))
        db.commit()
    return update
