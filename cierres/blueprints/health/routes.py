# cierres/blueprints/health/routes.py

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from cierres.extensions import db
from cierres.utils.logging import get_logger

logger = get_logger("health")

health_bp = Blueprint("health", __name__)

@health_bp.route("/")
def health():
    return jsonify({"status": "healthy"})

@health_bp.route("/db")
def health_db():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"DB health check failed: {e}")
        return jsonify({"status": "unhealthy", "error": str(e)}), 503
    return jsonify({"status": "healthy"})
