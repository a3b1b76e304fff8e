from decimal import Decimal

import pytest

from core.config import TestConfig
from core.extensions import db
from main import create_app
from models.productModels import Products


@pytest.fixture()
def app(tmp_path):
    # A file database so worker threads in the concurrency tests share it
    class FileDatabaseConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'storefront-test.db'}"

    app = create_app(FileDatabaseConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_product(app):
    def _make_product(name="Widget", price="10.00", stock=5, category="Electronics",
                      description="A useful widget", is_active=True):
        product = Products(
            name=name,
            description=description,
            price=Decimal(price),
            stock=stock,
            category=category,
            is_active=is_active,
        )
        db.session.add(product)
        db.session.commit()
        return product
    return _make_product


@pytest.fixture()
def order_payload():
    def _order_payload(*items, **overrides):
        payload = {
            "customer_name": "John Doe",
            "customer_email": "john.doe@example.com",
            "customer_phone": "555-0100",
            "shipping_address": "123 Main Street, Springfield",
            "items": [{"product_id": pid, "quantity": qty} for pid, qty in items],
        }
        payload.update(overrides)
        return payload
    return _order_payload
