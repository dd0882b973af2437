# Overview: Flask API routes for settings; read-only typed key-value pairs.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..services import settings_service


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def list_settings_route():
    """Query: category (e.g. "pos"). Returns {key: {value, type, description, category}}."""
    try:
        data = settings_service.list_settings(request.args.get("category") or None)
        return jsonify({"success": True, "data": data}), 200
    except Exception:
        current_app.logger.exception("Failed to fetch settings")
        return jsonify({"success": False, "message": "Internal server error"}), 500
