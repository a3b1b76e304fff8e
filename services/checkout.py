"""Order placement.

Validates the checkout request, prices it against the catalog, writes the
order and takes the stock in a single transaction, then asks the
notification sink to confirm with the customer.
"""
from core.extensions import db
from core.errors import (
    InsufficientStockError,
    OrderPlacementError,
    PersistenceError,
    ProductUnavailableError,
    ValidationError,
)
from core.imports import SQLAlchemyError, current_app, re
from core.money import to_money
from models.productModels import MAX_INTEGER
from services import catalog, notifications, orders

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 20


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _required_string(data, field, errors, max_length=None):
    label = field.replace("_", " ")
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        errors.setdefault(field, []).append(f"The {label} field is required.")
        return None
    if not isinstance(value, str):
        errors.setdefault(field, []).append(f"The {label} must be a string.")
        return None
    value = value.strip()
    if max_length and len(value) > max_length:
        errors.setdefault(field, []).append(
            f"The {label} must not be greater than {max_length} characters."
        )
    return value


def validate_order_request(data):
    """Check a checkout payload and return a cleaned copy.

    Raises ValidationError with per-field messages. Lines for the same
    product are merged so each product is decremented once.
    """
    if not isinstance(data, dict):
        raise ValidationError({"body": ["The request body must be a JSON object."]})

    errors = {}
    customer_name = _required_string(data, "customer_name", errors, MAX_NAME_LENGTH)
    customer_email = _required_string(data, "customer_email", errors, MAX_EMAIL_LENGTH)
    if customer_email and not EMAIL_RE.match(customer_email):
        errors.setdefault("customer_email", []).append(
            "The customer email must be a valid email address."
        )
    shipping_address = _required_string(data, "shipping_address", errors)

    customer_phone = data.get("customer_phone")
    if customer_phone is not None:
        if not isinstance(customer_phone, str):
            errors.setdefault("customer_phone", []).append("The customer phone must be a string.")
        elif len(customer_phone.strip()) > MAX_PHONE_LENGTH:
            errors.setdefault("customer_phone", []).append(
                f"The customer phone must not be greater than {MAX_PHONE_LENGTH} characters."
            )
        else:
            customer_phone = customer_phone.strip() or None

    items = data.get("items")
    lines = {}
    if not isinstance(items, list) or not items:
        errors.setdefault("items", []).append("The items field must contain at least one item.")
    else:
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                errors.setdefault(f"items.{index}", []).append("Each item must be an object.")
                continue
            product_id = item.get("product_id")
            quantity = item.get("quantity")
            if not _is_int(product_id):
                errors.setdefault(f"items.{index}.product_id", []).append(
                    "The product id must be an integer."
                )
            if not _is_int(quantity) or quantity < 1:
                errors.setdefault(f"items.{index}.quantity", []).append(
                    "The quantity must be an integer of at least 1."
                )
            elif quantity > MAX_INTEGER:
                errors.setdefault(f"items.{index}.quantity", []).append(
                    f"The quantity must not be greater than {MAX_INTEGER}."
                )
            if _is_int(product_id) and _is_int(quantity) and 1 <= quantity <= MAX_INTEGER:
                lines[product_id] = lines.get(product_id, 0) + quantity

    if errors:
        raise ValidationError(errors)

    return {
        "customer_name": customer_name,
        "customer_email": customer_email,
        "customer_phone": customer_phone,
        "shipping_address": shipping_address,
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in lines.items()],
    }


def place_order(data, user_id=None):
    request_data = validate_order_request(data)
    lines = request_data["items"]

    try:
        products = catalog.lock_products([line["product_id"] for line in lines])

        for line in lines:
            if line["product_id"] not in products:
                raise ProductUnavailableError(line["product_id"])

        for line in lines:
            product = products[line["product_id"]]
            if not product.is_in_stock(line["quantity"]):
                raise InsufficientStockError(product.name)

        # Prices are captured once here; every later step uses these values
        priced = [
            {
                "product_id": line["product_id"],
                "quantity": line["quantity"],
                "unit_price": to_money(products[line["product_id"]].price),
            }
            for line in lines
        ]
        total = to_money(sum((p["unit_price"] * p["quantity"] for p in priced), 0))

        order = orders.create_order(request_data, total, priced, user_id=user_id, commit=False)

        for line in priced:
            catalog.decrement_stock(line["product_id"], line["quantity"])

        db.session.commit()
    except OrderPlacementError as e:
        db.session.rollback()
        current_app.logger.warning("Order rejected for %s: %s", request_data["customer_email"], e.message)
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Order transaction failed for %s", request_data["customer_email"])
        raise PersistenceError() from e

    current_app.logger.info("Order %s placed, total %s", order.id, total)

    notifications.notify_order_placed(order)

    return orders.get_order(order.id)
