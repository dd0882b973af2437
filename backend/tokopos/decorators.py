# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session token.

    Sets g.current_user (the authenticated User) and g.session_token.

    Returns 401 if the header is missing, the token is unknown, expired or
    revoked, or the user account is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"success": False, "message": "Authentication required"}), 401

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"success": False, "message": "Invalid or expired token"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function
