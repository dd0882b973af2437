# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/tokopos/routes/auth.py
"""
Authentication API routes

Users are created by an administrator (CLI: flask users create); there is
no self-registration. Tokens go in the Authorization header as
"Bearer <token>".
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """Authenticate and create a session token. Body: {email|username, password}"""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email") or data.get("username")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"success": False, "message": "Email and password are required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"success": False, "message": "Invalid credentials"}), 401

        _, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "success": True,
            "message": "Login successful",
            "data": {"token": token, "user": user.to_dict()},
        }), 200

    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"success": False, "message": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"success": True, "data": g.current_user.to_dict()}), 200
