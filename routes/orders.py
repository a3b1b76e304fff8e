from core.imports import Blueprint, jwt_required, get_jwt_identity, jsonify, request
from services import checkout, orders

orders_bp = Blueprint('orders', __name__)


def _current_user_id():
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


@orders_bp.route('/api/orders', methods=['POST'])
@jwt_required(optional=True)
def place_order():
    """
    Place an order
    ---
    tags:
      - Orders
    summary: Check out the items of the customer's cart
    description: >
      Validates stock for every line, stores the order with a snapshot of
      each product's price, takes the stock and e-mails a confirmation.
      Either every line is ordered or nothing is. A bearer token is optional;
      when present the order is linked to that account.
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - customer_name
            - customer_email
            - shipping_address
            - items
          properties:
            customer_name:
              type: string
              example: "John Doe"
            customer_email:
              type: string
              example: "john.doe@example.com"
            customer_phone:
              type: string
              example: "+1 555 0100"
            shipping_address:
              type: string
              example: "123 Main Street, Springfield"
            items:
              type: array
              items:
                type: object
                properties:
                  product_id:
                    type: integer
                    example: 1
                  quantity:
                    type: integer
                    example: 3
    responses:
      201:
        description: Order placed successfully
      400:
        description: Unknown product or insufficient stock
        schema:
          type: object
          properties:
            success:
              type: boolean
              example: false
            message:
              type: string
              example: "Failed to create order: Product 'Wireless Mouse' is out of stock or insufficient quantity available."
      422:
        description: Validation failed
      500:
        description: The order could not be saved
    """
    data = request.get_json(silent=True)
    order = checkout.place_order(data, user_id=_current_user_id())

    return jsonify({
        "success": True,
        "message": "Order placed successfully",
        "data": order.to_dict()
    }), 201


@orders_bp.route('/api/orders/<int:order_id>', methods=['GET'])
def get_order(order_id):
    """
    Get an order with its items
    ---
    tags:
      - Orders
    parameters:
      - name: order_id
        in: path
        required: true
        type: integer
        example: 1
    responses:
      200:
        description: Order details, each item with its product
      404:
        description: Order not found
    """
    order = orders.get_order(order_id)
    return jsonify({"success": True, "data": order.to_dict()}), 200


@orders_bp.route('/api/orders', methods=['GET'])
@jwt_required()
def list_my_orders():
    """
    Orders placed by the signed-in user
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - name: Authorization
        in: header
        description: "JWT token as: Bearer <your_token>"
        required: true
        type: string
    responses:
      200:
        description: Orders, newest first
      401:
        description: Missing or invalid token
    """
    user_orders = orders.list_orders_for_user(_current_user_id())
    return jsonify({
        "success": True,
        "data": [order.to_dict() for order in user_orders]
    }), 200
