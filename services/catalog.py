"""Read paths over the product catalog, plus the stock decrement used by checkout.

Only active products are visible to customers. Nothing here commits; callers
own the transaction.
"""
from core.extensions import db
from core.errors import NotFoundError, InsufficientStockError
from core.imports import func, or_, select, update
from models.productModels import MAX_INTEGER, Products


def is_storable_id(value):
    """True if ``value`` can be bound as a row id without overflowing the column."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_INTEGER


def _active():
    return select(Products).where(Products.is_active.is_(True))


def list_products(category=None, search=None):
    query = _active()

    if category:
        query = query.where(Products.category == category)

    if search and search.strip():
        term = search.strip().lower()
        query = query.where(
            or_(
                func.lower(Products.name).contains(term, autoescape=True),
                func.lower(Products.description).contains(term, autoescape=True),
            )
        )

    query = query.order_by(Products.created_at.desc(), Products.id.desc())
    return db.session.execute(query).scalars().all()


def get_product(product_id):
    if not is_storable_id(product_id):
        raise NotFoundError("Product not found")
    product = db.session.execute(
        _active().where(Products.id == product_id)
    ).scalar_one_or_none()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def list_categories():
    query = (
        select(Products.category)
        .where(Products.is_active.is_(True), Products.category.is_not(None))
        .distinct()
        .order_by(Products.category)
    )
    return db.session.execute(query).scalars().all()


def check_availability(product_id, quantity):
    if not is_storable_id(product_id):
        return False
    stock = db.session.execute(
        select(Products.stock).where(Products.id == product_id)
    ).scalar_one_or_none()
    return stock is not None and stock >= quantity


def lock_products(product_ids):
    """Load active products by id with row locks, keyed by id.

    Locked rows overwrite any copies already in the session, so the stock
    check and price snapshot see the row the lock protects. Ids that cannot
    exist are left out. Rows are locked in ascending id order so two
    checkouts touching the same products cannot deadlock each other. SQLite
    has no row locks; there the conditional decrement alone guards stock.
    """
    ids = sorted({pid for pid in product_ids if is_storable_id(pid)})
    if not ids:
        return {}
    query = (
        _active()
        .where(Products.id.in_(ids))
        .order_by(Products.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {product.id: product for product in db.session.execute(query).scalars()}


def decrement_stock(product_id, quantity):
    """Take ``quantity`` units out of stock in one conditional UPDATE.

    Zero affected rows means another checkout got there first, so the stock
    read earlier is stale and the line can no longer be filled.
    """
    result = db.session.execute(
        update(Products)
        .where(Products.id == product_id, Products.stock >= quantity)
        .values(stock=Products.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    product = db.session.get(Products, product_id)
    if product is not None:
        db.session.expire(product, ["stock"])
    if result.rowcount != 1:
        raise InsufficientStockError(product.name if product else str(product_id))
