"""
Shared pytest fixtures: a fresh in-memory app per test plus users for each role.
"""
from types import SimpleNamespace

import pytest

from agrilinker import create_app, db
from agrilinker.models import Product, User
from agrilinker.security import issue_token

PASSWORD = 'secret@123'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', overrides={'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, email, role='buyer', name=None, verification_status=None):
    """Create a user and return its id, email and ready-to-use auth headers."""
    with app.app_context():
        if verification_status is None:
            verification_status = 'pending' if role == 'farmer' else 'unverified'
        user = User(name=name or email.split('@')[0].title(), email=email, role=role,
                    verification_status=verification_status)
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return SimpleNamespace(
            id=user.id,
            uid=user.uid,
            email=user.email,
            headers={'Authorization': f'Bearer {issue_token(user)}'},
        )


def make_product(app, farmer_email, name='Fresh Tomato', category='vegetables',
                 quantity=10, unit='kg', price=40, status=None):
    with app.app_context():
        product = Product(name=name, category=category, quantity_value=quantity,
                          quantity_unit=unit, price=price, farmer_email=farmer_email,
                          image='/uploads/tomato.jpg')
        product.refresh_status()
        if status:
            product.status = status
        db.session.add(product)
        db.session.commit()
        return product.id


@pytest.fixture
def buyer(app):
    return make_user(app, 'buyer@test.com', role='buyer')


@pytest.fixture
def farmer(app):
    return make_user(app, 'farmer@test.com', role='farmer', verification_status='verified')


@pytest.fixture
def admin(app):
    return make_user(app, 'admin@test.com', role='admin')


@pytest.fixture
def product(app, farmer):
    return make_product(app, farmer.email)


VALID_CARD = {
    'paymentMethod': 'card',
    'cardNumber': '4242 4242 4242 4242',
    'expiryDate': '12/99',
    'cvv': '123',
    'cardholderName': 'Rahim Uddin',
}

VALID_BKASH = {
    'paymentMethod': 'bkash',
    'bkashNumber': '01712345678',
    'bkashPin': '12345',
}


@pytest.fixture
def checkout(client):
    """Add products to a buyer's cart and pay by card; returns the response JSON."""
    def _checkout(user, items, payment=None):
        for product_id, quantity in items:
            resp = client.post('/api/cart/add', json={'productId': product_id, 'quantity': quantity},
                               headers=user.headers)
            assert resp.status_code == 200, resp.get_json()
        resp = client.post('/api/orders/create', json=payment or VALID_CARD, headers=user.headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _checkout
