from core.imports import Blueprint, jsonify, request, current_app, Decimal
from core.extensions import db
from models.productModels import Products
from services import catalog

products_bp = Blueprint('products', __name__)

SAMPLE_PRODUCTS = [
    {
        "name": "Wireless Bluetooth Headphones",
        "description": "High-quality wireless headphones with noise cancellation and 30-hour battery life.",
        "price": "79.99",
        "stock": 50,
        "category": "Electronics",
        "image": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=500",
    },
    {
        "name": "Smart Watch Pro",
        "description": "Smartwatch with fitness tracking, heart rate monitor and smartphone notifications.",
        "price": "199.99",
        "stock": 30,
        "category": "Electronics",
        "image": "https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=500",
    },
    {
        "name": "Laptop Backpack",
        "description": "Durable backpack with a padded compartment that fits up to 15.6\" laptops.",
        "price": "49.99",
        "stock": 75,
        "category": "Accessories",
        "image": "https://images.unsplash.com/photo-1553062407-98eeb64c6a62?w=500",
    },
    {
        "name": "Mechanical Gaming Keyboard",
        "description": "RGB backlit mechanical keyboard with customizable keys and anti-ghosting.",
        "price": "89.99",
        "stock": 40,
        "category": "Electronics",
        "image": "https://images.unsplash.com/photo-1511467687858-23d96c32e4ae?w=500",
    },
    {
        "name": "Wireless Mouse",
        "description": "Ergonomic wireless mouse with adjustable DPI and long battery life.",
        "price": "29.99",
        "stock": 100,
        "category": "Electronics",
        "image": "https://images.unsplash.com/photo-1527864550417-7fd91fc51a46?w=500",
    },
]


def seed_products(sample_products=SAMPLE_PRODUCTS):
    created = []
    for prod in sample_products:
        if Products.query.filter_by(name=prod["name"]).first():
            continue
        db.session.add(Products(
            name=prod["name"],
            description=prod["description"],
            price=Decimal(prod["price"]),
            stock=prod["stock"],
            category=prod.get("category"),
            image=prod.get("image"),
            is_active=prod.get("is_active", True),
        ))
        created.append(prod["name"])
    db.session.commit()

    if created:
        current_app.logger.info("Products created: %s", ", ".join(created))
    else:
        current_app.logger.info("Products already exist.")
    return created


@products_bp.route('/api/products', methods=['GET'])
def list_products():
    """
    List active products
    ---
    tags:
      - Products
    parameters:
      - name: category
        in: query
        type: string
        required: false
        description: Exact category name
        example: Electronics
      - name: search
        in: query
        type: string
        required: false
        description: Case-insensitive text matched against name and description
        example: wireless
    responses:
      200:
        description: Products, newest first
        schema:
          type: object
          properties:
            success:
              type: boolean
              example: true
            data:
              type: array
              items:
                type: object
                properties:
                  id:
                    type: integer
                    example: 1
                  name:
                    type: string
                    example: "Wireless Mouse"
                  price:
                    type: string
                    example: "29.99"
                  stock:
                    type: integer
                    example: 100
                  category:
                    type: string
                    example: "Electronics"
    """
    products = catalog.list_products(
        category=request.args.get('category'),
        search=request.args.get('search'),
    )
    return jsonify({
        "success": True,
        "data": [product.to_dict() for product in products]
    }), 200


@products_bp.route('/api/products/<int:product_id>', methods=['GET'])
def get_product(product_id):
    """
    Get an active product by ID
    ---
    tags:
      - Products
    parameters:
      - name: product_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Product details
      404:
        description: Product not found
        schema:
          type: object
          properties:
            success:
              type: boolean
              example: false
            message:
              type: string
              example: "Product not found"
    """
    product = catalog.get_product(product_id)
    return jsonify({"success": True, "data": product.to_dict()}), 200


@products_bp.route('/api/categories', methods=['GET'])
def list_categories():
    """
    List categories of active products
    ---
    tags:
      - Products
    responses:
      200:
        description: Unique category names
        schema:
          type: object
          properties:
            success:
              type: boolean
              example: true
            data:
              type: array
              items:
                type: string
              example: ["Accessories", "Electronics"]
    """
    return jsonify({"success": True, "data": catalog.list_categories()}), 200
