from core.imports import Blueprint, jsonify, text, datetime, timezone, SQLAlchemyError, current_app
from core.extensions import db

health_bp = Blueprint('health', __name__)


@health_bp.route('/api/health', methods=['GET'])
def health():
    """
    Liveness check
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is up
    """
    return jsonify({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }), 200


@health_bp.route('/api/health/db', methods=['GET'])
def health_db():
    """
    Database connectivity check
    ---
    tags:
      - Health
    responses:
      200:
        description: Database reachable
      503:
        description: Database unreachable
    """
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        current_app.logger.error("Database health check failed: %s", e)
        return jsonify({
            "status": "error",
            "database": "disconnected",
            "message": str(e)
        }), 503

    return jsonify({"status": "ok", "database": "connected"}), 200
