class StorefrontError(Exception):
    """Base for errors that are reported to API clients as a failure envelope."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"success": False, "message": self.message}


class ValidationError(StorefrontError):
    """Malformed or missing input, raised before anything is written."""

    status_code = 422
    default_message = "Validation failed"

    def __init__(self, errors, message=None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self):
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class NotFoundError(StorefrontError):
    status_code = 404
    default_message = "Not found"


class OrderPlacementError(StorefrontError):
    """Any failure while placing an order. Reported as 'Failed to create order: ...'."""

    status_code = 400

    def to_dict(self):
        return {"success": False, "message": f"Failed to create order: {self.message}"}


class ProductUnavailableError(OrderPlacementError, NotFoundError):
    """A line references a product that does not exist or is not for sale."""

    status_code = 400

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} not found.")


class BusinessRuleError(OrderPlacementError):
    pass


class InsufficientStockError(BusinessRuleError):
    def __init__(self, product_name):
        self.product_name = product_name
        super().__init__(
            f"Product '{product_name}' is out of stock or insufficient quantity available."
        )


class PersistenceError(OrderPlacementError):
    status_code = 500
    default_message = "The order could not be saved. Please try again."


class NotificationError(Exception):
    """Confirmation delivery failed. Logged, never shown to the customer."""
