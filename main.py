from core.imports import jsonify, Flask
from core.config import Config
from core.errors import StorefrontError
from core.extensions import db, jwt, swagger, cors, bcrypt, migrate, mail
from werkzeug.exceptions import HTTPException
from models import productModels, orderModels, userModel  # noqa: F401  register tables
from routes.products import products_bp, seed_products
from routes.orders import orders_bp
from routes.auth import auth_bp
from routes.health import health_bp


def register_error_handlers(app):
    @app.errorhandler(StorefrontError)
    def handle_storefront_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"success": False, "message": error.description}), error.code

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"success": False, "message": reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"success": False, "message": reason}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"success": False, "message": "Token has expired"}), 401


def register_commands(app):
    @app.cli.command("seed")
    def seed():
        """Create the tables and load the demo catalog."""
        db.create_all()
        created = seed_products()
        print(f"Seeded {len(created)} products")


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    jwt.init_app(app)
    swagger.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    bcrypt.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    app.register_blueprint(products_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)

    register_error_handlers(app)
    register_commands(app)

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
        seed_products()

    app.run(debug=True)
