"""Health check endpoints."""
from flask import Blueprint, jsonify

from erp_api.core.models import iso_timestamp, utc_now

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint (no authentication)."""
    return jsonify({
        "success": True,
        "message": "API is working",
        "timestamp": iso_timestamp(utc_now()),
    }), 200
