from core.extensions import db
from core.errors import NotFoundError, PersistenceError
from core.imports import SQLAlchemyError, current_app, select, selectinload
from core.money import to_money
from services.catalog import is_storable_id
from models.orderModels import Order, OrderItem


def _with_items():
    return select(Order).options(
        selectinload(Order.order_items).joinedload(OrderItem.product)
    )


def create_order(customer, total, items, user_id=None, commit=True):
    """Insert an order and its line items.

    ``items`` is a sequence of dicts with ``product_id``, ``quantity`` and
    ``unit_price``. With ``commit=False`` the rows are only flushed, so the
    caller can fold them into a larger transaction.
    """
    try:
        order = Order(
            user_id=user_id,
            customer_name=customer["customer_name"],
            customer_email=customer["customer_email"],
            customer_phone=customer.get("customer_phone"),
            shipping_address=customer["shipping_address"],
            total=to_money(total),
            status="pending",
        )
        db.session.add(order)
        db.session.flush()

        for item in items:
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=item["product_id"],
                quantity=item["quantity"],
                price=to_money(item["unit_price"]),
            ))
        db.session.flush()

        if commit:
            db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Failed to persist order for %s", customer.get("customer_email"))
        raise PersistenceError() from e

    return order


def get_order(order_id):
    if not is_storable_id(order_id):
        raise NotFoundError("Order not found")
    order = db.session.execute(
        _with_items().where(Order.id == order_id)
    ).scalar_one_or_none()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def list_orders_for_user(user_id):
    query = (
        _with_items()
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return db.session.execute(query).scalars().all()
