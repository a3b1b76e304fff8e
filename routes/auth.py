from core.imports import Blueprint, jsonify, request, create_access_token, jwt_required, get_jwt_identity, IntegrityError, current_app
from core.extensions import db, bcrypt
from core.errors import NotFoundError
from models.userModel import Users
from services.checkout import EMAIL_RE

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/api/auth/register', methods=['POST'])
def register():
    """
    Create a customer account
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - email
            - password
          properties:
            name:
              type: string
              example: "Jane Doe"
            email:
              type: string
              example: "jane@example.com"
            password:
              type: string
              example: "password123"
    responses:
      201:
        description: Account created
      409:
        description: Email already registered
      422:
        description: Missing or invalid fields
    """
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    errors = {}
    if not name:
        errors["name"] = ["The name field is required."]
    if not EMAIL_RE.match(email):
        errors["email"] = ["The email must be a valid email address."]
    if len(password) < 8:
        errors["password"] = ["The password must be at least 8 characters."]
    if errors:
        return jsonify({"success": False, "message": "Validation failed", "errors": errors}), 422

    if Users.query.filter_by(email=email).first():
        return jsonify({"success": False, "message": "Account with this email already exists"}), 409

    user = Users(
        name=name,
        email=email,
        password=bcrypt.generate_password_hash(password).decode('utf-8'),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"success": False, "message": "Account with this email already exists"}), 409

    current_app.logger.info("User %s registered", user.id)
    return jsonify({"success": True, "data": user.to_dict()}), 201


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    """
    Exchange credentials for an access token
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            email:
              type: string
              example: "jane@example.com"
            password:
              type: string
              example: "password123"
    responses:
      200:
        description: Login successful
      401:
        description: Invalid credentials
    """
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    if not email or not password:
        return jsonify({"success": False, "message": "Email and password are required"}), 400

    user = Users.query.filter_by(email=email).first()
    if not user or not bcrypt.check_password_hash(user.password, password):
        return jsonify({"success": False, "message": "Invalid credentials"}), 401

    access_token = create_access_token(identity=str(user.id))

    return jsonify({
        "success": True,
        "message": "Login successful",
        "access_token": access_token,
        "user": user.to_dict()
    }), 200


@auth_bp.route('/api/auth/me', methods=['GET'])
@jwt_required()
def me():
    """
    The signed-in user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Account details
      401:
        description: Missing or invalid token
    """
    user = db.session.get(Users, int(get_jwt_identity()))
    if user is None:
        raise NotFoundError("User not found")
    return jsonify({"success": True, "data": user.to_dict()}), 200
