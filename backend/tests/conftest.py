"""
Pytest fixtures for restopos backend tests.

Provides the test app, a fresh database per test, and a small directory:
- hq: the first restaurant registered (its user is the superadmin)
- restaurant_a / restaurant_b: two ordinary tenants with an admin each
- seller_a / waiter_a: staff of restaurant_a
"""

import pytest

from restopos import create_app
from restopos.config import TestConfig
from restopos.extensions import db
from restopos.models import Product, Restaurant, User
from restopos.permissions import Actor, Scoped, resolve_scope
from restopos.services import restaurant_service
from restopos.services.auth_service import hash_password

PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    db.session.expunge_all()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


def register(name: str, email: str, *, address: str = "Main Street 1", phone: str = "600123456") -> Restaurant:
    restaurant_id = restaurant_service.create_restaurant(
        {"name": name, "address": address, "phone": phone},
        {"name": f"{name} Admin", "email": email, "password": PASSWORD},
    )
    return db.session.get(Restaurant, restaurant_id)


def make_user(restaurant: Restaurant, role: str, email: str, name: str) -> User:
    user = User(
        restaurant_id=restaurant.id,
        name=name,
        email=email,
        role=role,
        password_hash=hash_password(PASSWORD),
    )
    db.session.add(user)
    db.session.commit()
    return user


def user_by_email(email: str) -> User:
    return db.session.query(User).filter_by(email=email).one()


@pytest.fixture(scope='function')
def hq(db_session):
    """First restaurant: its user becomes the superadmin."""
    return register("Headquarters", "root@hq.test")


@pytest.fixture(scope='function')
def superadmin(hq):
    return user_by_email("root@hq.test")


@pytest.fixture(scope='function')
def restaurant_a(hq):
    return register("Casa Alfa", "admin@alfa.test")


@pytest.fixture(scope='function')
def restaurant_b(hq):
    return register("Bistro Beta", "admin@beta.test")


@pytest.fixture(scope='function')
def admin_a(restaurant_a):
    return user_by_email("admin@alfa.test")


@pytest.fixture(scope='function')
def admin_b(restaurant_b):
    return user_by_email("admin@beta.test")


@pytest.fixture(scope='function')
def seller_a(restaurant_a):
    return make_user(restaurant_a, "seller", "seller@alfa.test", "Sam Seller")


@pytest.fixture(scope='function')
def waiter_a(restaurant_a):
    return make_user(restaurant_a, "waiter", "waiter@alfa.test", "Wendy Waiter")


@pytest.fixture(scope='function')
def product_a(restaurant_a):
    product = Product(restaurant_id=restaurant_a.id, name="Paella", price="12.50", category="Mains")
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(restaurant_b):
    product = Product(restaurant_id=restaurant_b.id, name="Ratatouille", price="9.00", category="Mains")
    db.session.add(product)
    db.session.commit()
    return product


def actor(user: User) -> Actor:
    return Actor.from_user(user)


def scope_of(restaurant: Restaurant) -> Scoped:
    return Scoped(restaurant.id)


def all_tenants(superadmin_user: User):
    return resolve_scope(Actor.from_user(superadmin_user), "all")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def login(client, user: User) -> dict:
    return auth_headers(get_auth_token(client, user.email))
