"""
Pytest fixtures for rh-pos backend tests.

Provides test database setup, two-tenant fixtures, a fake object store and
test client helpers.
"""

import base64
from decimal import Decimal

import pytest

from rhpos import create_app
from rhpos.errors import StorageError
from rhpos.extensions import db
from rhpos.models import Product, Tenant
from rhpos.services.auth_service import create_user
from rhpos.services.identifier_service import get_codec
from rhpos.services.tenant_service import TenantScope


TEST_PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'HASHID_SALT': 'rhpos-test-salt',
    'JWT_SECRET': 'rhpos-test-jwt-secret',
    'ADMIN_USERNAME': 'platform',
    'ADMIN_PASSWORD': 'platform-secret',
    'STORAGE_ENDPOINT': '',
    'STORAGE_ACCESS_KEY': '',
    'SALE_TIMEOUT_SECONDS': 5,
}


class FakeStorage:
    """In-memory stand-in for ObjectStorage (put / get / presign)."""

    def __init__(self):
        self.objects = {}
        self.presigned = []

    def put(self, key, data, content_type):
        self.objects[key] = (bytes(data), content_type)

    def get(self, key):
        if key not in self.objects:
            raise StorageError("download", key, KeyError(key))
        return self.objects[key][0]

    def presign(self, key, ttl_seconds, for_upload):
        self.presigned.append((key, ttl_seconds, for_upload))
        method = "PUT" if for_upload else "GET"
        return f"https://storage.test/rh-pos/{key}?method={method}&expires={ttl_seconds}"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def codec(app):
    with app.app_context():
        return get_codec()


@pytest.fixture(scope='function')
def fake_storage(app):
    """Install FakeStorage as the app's object store for one test."""
    storage = FakeStorage()
    previous = app.extensions.get("object_storage")
    app.extensions["object_storage"] = storage
    yield storage
    if previous is None:
        app.extensions.pop("object_storage", None)
    else:
        app.extensions["object_storage"] = previous


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Create Tenant A (first tenant)."""
    tenant = Tenant(name="Warung A", address="Jl. Merdeka 1", phone_number="081200000001")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Create Tenant B (second tenant)."""
    tenant = Tenant(name="Warung B", address="Jl. Sudirman 2", phone_number="081200000002")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def scope_a(tenant_a):
    return TenantScope.for_tenant(tenant_a.id)


@pytest.fixture(scope='function')
def scope_b(tenant_b):
    return TenantScope.for_tenant(tenant_b.id)


def make_product(db_session, tenant, *, sku, name, sale_price, cost_price=None, stock=0):
    product = Product(
        tenant_id=tenant.id,
        sku=sku,
        name=name,
        cost_price=Decimal(str(cost_price if cost_price is not None else sale_price)),
        sale_price=Decimal(str(sale_price)),
        stock=stock,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a(db_session, tenant_a):
    """NAS001 in Tenant A: stock 50, sale price 12000."""
    return make_product(
        db_session, tenant_a, sku="NAS001", name="Nasi Goreng", cost_price=8000, sale_price=12000, stock=50
    )


@pytest.fixture(scope='function')
def product_b(db_session, tenant_b):
    """Product in Tenant B."""
    return make_product(
        db_session, tenant_b, sku="MIE001", name="Mie Goreng", cost_price=7000, sale_price=10000, stock=20
    )


@pytest.fixture(scope='function')
def user_a(db_session, tenant_a):
    return create_user("kasir_a", TEST_PASSWORD, tenant_a.id)


@pytest.fixture(scope='function')
def user_b(db_session, tenant_b):
    return create_user("kasir_b", TEST_PASSWORD, tenant_b.id)


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def admin_headers(username: str = 'platform', password: str = 'platform-secret') -> dict:
    raw = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {'Authorization': f'Basic {raw}'}
