import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import (
    InsufficientStockError,
    OrderPlacementError,
    PersistenceError,
    ProductUnavailableError,
    ValidationError,
)
from core.extensions import db
from models.orderModels import Order, OrderItem
from models.productModels import Products
from services import catalog, checkout


def _stock(product_id):
    return db.session.execute(
        select(Products.stock).where(Products.id == product_id)
    ).scalar_one()


def _counts():
    return Order.query.count(), OrderItem.query.count()


def test_places_order_and_takes_stock(make_product, order_payload):
    product = make_product(price="10.00", stock=5)

    order = checkout.place_order(order_payload((product.id, 3)))

    assert order.total == Decimal("30.00")
    assert order.status == "pending"
    assert [(i.product_id, i.quantity, i.price) for i in order.order_items] == [
        (product.id, 3, Decimal("10.00"))
    ]
    assert order.order_items[0].product.name == "Widget"
    assert _stock(product.id) == 2
    assert _counts() == (1, 1)


def test_one_item_row_per_line_and_exact_decrements(make_product, order_payload):
    a = make_product(name="A", price="2.50", stock=10)
    b = make_product(name="B", price="4.00", stock=3)
    c = make_product(name="C", price="0.99", stock=1)

    order = checkout.place_order(order_payload((a.id, 4), (b.id, 3), (c.id, 1)))

    assert order.total == Decimal("22.99")
    assert order.total == order.calculate_total()
    assert _counts() == (1, 3)
    assert (_stock(a.id), _stock(b.id), _stock(c.id)) == (6, 0, 0)


def test_duplicate_lines_are_merged(make_product, order_payload):
    product = make_product(stock=5)

    order = checkout.place_order(order_payload((product.id, 2), (product.id, 2)))

    assert len(order.order_items) == 1
    assert order.order_items[0].quantity == 4
    assert _stock(product.id) == 1


def test_insufficient_stock_fails_without_side_effects(make_product, order_payload):
    plenty = make_product(name="Plenty", stock=50)
    product = make_product(name="Widget", stock=5)

    with pytest.raises(InsufficientStockError) as excinfo:
        checkout.place_order(order_payload((plenty.id, 1), (product.id, 6)))

    assert "Widget" in excinfo.value.message
    assert _counts() == (0, 0)
    assert (_stock(plenty.id), _stock(product.id)) == (50, 5)


def test_unknown_product_fails_without_side_effects(make_product, order_payload):
    product = make_product(stock=5)

    with pytest.raises(ProductUnavailableError) as excinfo:
        checkout.place_order(order_payload((product.id, 1), (999, 1)))

    assert "not found" in excinfo.value.message
    assert _counts() == (0, 0)
    assert _stock(product.id) == 5


def test_inactive_product_cannot_be_ordered(make_product, order_payload):
    product = make_product(is_active=False)

    with pytest.raises(ProductUnavailableError):
        checkout.place_order(order_payload((product.id, 1)))


def test_total_uses_prices_captured_before_writing(make_product, order_payload, monkeypatch):
    product = make_product(price="10.00", stock=5)
    decrement = catalog.decrement_stock

    def price_changes_mid_request(product_id, quantity):
        db.session.execute(
            update(Products).where(Products.id == product_id).values(price=Decimal("99.00"))
        )
        decrement(product_id, quantity)

    monkeypatch.setattr(catalog, "decrement_stock", price_changes_mid_request)

    order = checkout.place_order(order_payload((product.id, 3)))

    assert order.total == Decimal("30.00")
    assert order.order_items[0].price == Decimal("10.00")
    assert db.session.get(Products, product.id).price == Decimal("99.00")


def test_item_price_is_not_recomputed_after_price_change(make_product, order_payload):
    product = make_product(price="10.00", stock=5)
    order = checkout.place_order(order_payload((product.id, 1)))

    product.price = Decimal("12.00")
    db.session.commit()
    db.session.expire_all()

    stored = db.session.get(Order, order.id)
    assert stored.order_items[0].price == Decimal("10.00")
    assert stored.total == Decimal("10.00")


def test_stale_stock_read_is_caught_at_decrement(make_product, order_payload, monkeypatch):
    product = make_product(stock=5)
    lock_products = catalog.lock_products

    def another_buyer_takes_stock(product_ids):
        products = lock_products(product_ids)
        db.session.execute(
            update(Products)
            .where(Products.id == product.id)
            .values(stock=1)
            .execution_options(synchronize_session=False)
        )
        return products

    monkeypatch.setattr(catalog, "lock_products", another_buyer_takes_stock)

    with pytest.raises(InsufficientStockError):
        checkout.place_order(order_payload((product.id, 3)))

    assert _counts() == (0, 0)


def test_storage_failure_rolls_back_everything(make_product, order_payload, monkeypatch):
    first = make_product(name="First", stock=5)
    second = make_product(name="Second", stock=5)
    decrement = catalog.decrement_stock

    def fail_on_second(product_id, quantity):
        if product_id == second.id:
            raise SQLAlchemyError("disk I/O error")
        decrement(product_id, quantity)

    monkeypatch.setattr(catalog, "decrement_stock", fail_on_second)

    with pytest.raises(PersistenceError):
        checkout.place_order(order_payload((first.id, 2), (second.id, 2)))

    assert _counts() == (0, 0)
    assert (_stock(first.id), _stock(second.id)) == (5, 5)


def test_notification_failure_does_not_fail_the_order(make_product, order_payload, monkeypatch):
    product = make_product(stock=5)

    def broken_sink(order):
        raise RuntimeError("smtp down")

    monkeypatch.setattr("services.notifications.build_order_email", broken_sink)

    order = checkout.place_order(order_payload((product.id, 1)))

    assert order.id is not None
    assert _stock(product.id) == 4


@pytest.mark.parametrize("field, value", [
    ("customer_name", ""),
    ("customer_name", "x" * 256),
    ("customer_email", "not-an-email"),
    ("customer_email", None),
    ("customer_phone", "1" * 21),
    ("shipping_address", "   "),
    ("items", []),
])
def test_validation_errors_name_the_field(order_payload, field, value):
    with pytest.raises(ValidationError) as excinfo:
        checkout.validate_order_request(order_payload((1, 1), **{field: value}))

    assert field in excinfo.value.errors


@pytest.mark.parametrize("item, field", [
    ({"product_id": 1, "quantity": 0}, "items.0.quantity"),
    ({"product_id": 1, "quantity": "2"}, "items.0.quantity"),
    ({"product_id": 1, "quantity": True}, "items.0.quantity"),
    ({"product_id": "abc", "quantity": 1}, "items.0.product_id"),
    ({"quantity": 1}, "items.0.product_id"),
])
def test_validation_errors_for_items(order_payload, item, field):
    payload = order_payload(items=[item])

    with pytest.raises(ValidationError) as excinfo:
        checkout.validate_order_request(payload)

    assert field in excinfo.value.errors


def test_validation_happens_before_any_write(make_product, order_payload):
    product = make_product(stock=5)

    with pytest.raises(ValidationError):
        checkout.place_order(order_payload((product.id, 1), customer_email="bad"))

    assert _counts() == (0, 0)
    assert _stock(product.id) == 5


def test_phone_is_optional(order_payload):
    payload = order_payload((1, 1))
    del payload["customer_phone"]

    cleaned = checkout.validate_order_request(payload)

    assert cleaned["customer_phone"] is None


def test_concurrent_orders_never_oversell(app, make_product, order_payload):
    product = make_product(stock=5)
    product_id = product.id
    payload = order_payload((product_id, 1))
    sold = []
    failed = []

    def buy():
        with app.app_context():
            try:
                order = checkout.place_order(payload)
                sold.append(order.order_items[0].quantity)
            except OrderPlacementError as e:
                failed.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=buy) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    db.session.expire_all()
    assert len(sold) + len(failed) == 8
    assert sum(sold) <= 5
    assert _stock(product_id) == 5 - sum(sold)
    assert Order.query.count() == len(sold)


def test_price_is_read_from_the_locked_row(make_product, order_payload):
    product = make_product(price="10.00", stock=5)
    assert product.price == Decimal("10.00")

    db.session.execute(
        update(Products)
        .where(Products.id == product.id)
        .values(price=Decimal("12.00"))
        .execution_options(synchronize_session=False)
    )

    order = checkout.place_order(order_payload((product.id, 3)))

    assert order.total == Decimal("36.00")
    assert order.order_items[0].price == Decimal("12.00")


def test_product_id_beyond_the_column_range_is_not_found(make_product, order_payload):
    product = make_product(stock=5)

    with pytest.raises(ProductUnavailableError) as excinfo:
        checkout.place_order(order_payload((product.id, 1), (10**20, 1)))

    assert excinfo.value.message == f"Product with ID {10**20} not found."
    assert _counts() == (0, 0)
    assert _stock(product.id) == 5


def test_quantity_beyond_the_column_range_is_rejected(order_payload):
    with pytest.raises(ValidationError) as excinfo:
        checkout.validate_order_request(order_payload((1, 10**20)))

    assert "items.0.quantity" in excinfo.value.errors


def test_merged_quantity_above_stock_fails_before_writing(make_product, order_payload):
    product = make_product(stock=5)
    big = 2**31 - 1

    with pytest.raises(InsufficientStockError):
        checkout.place_order(order_payload((product.id, big), (product.id, big)))

    assert _counts() == (0, 0)


def test_unknown_status_is_refused_by_the_database(make_product, order_payload):
    product = make_product(stock=5)
    order = checkout.place_order(order_payload((product.id, 1)))

    order.status = "lost"
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()

    assert db.session.get(Order, order.id).status == "pending"


def test_timestamps_are_naive_utc(make_product, order_payload):
    product = make_product(stock=5)

    order = checkout.place_order(order_payload((product.id, 1)))

    assert order.created_at.tzinfo is None
    assert abs(datetime.now(timezone.utc).replace(tzinfo=None) - order.created_at) < timedelta(minutes=1)
