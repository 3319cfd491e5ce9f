# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/rhpos/routes/auth.py
"""
Authentication and current-user routes

- POST /auth/login: username/password -> bearer token
- GET /api/profile: the authenticated user
- GET /api/my-tenant: the authenticated user's tenant
- PUT /api/update-password: change own password

Self-registration does not exist; users are created through /admin/users.
"""

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..errors import PosError
from ..services import auth_service
from ..services.identifier_service import get_codec
from ..services.tenant_service import get_scope_tenant
from .common import error_response, internal_error, json_body


auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/auth/login")
def login_route():
    """Authenticate user and issue a JWT for the Authorization header."""
    try:
        data = json_body()
        username = data.get("username")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username and password required"}), 400

        codec = get_codec()
        token, user = auth_service.login(username, password, codec)
        return jsonify({"token": token, "user": user.to_dict(codec)}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Login failed")


@auth_bp.get("/api/profile")
@require_auth
def profile_route():
    try:
        user = auth_service.get_user(g.current_user_id)
        return jsonify({"user": user.to_dict(get_codec())}), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load profile")


@auth_bp.get("/api/my-tenant")
@require_auth
def my_tenant_route():
    try:
        tenant = get_scope_tenant(g.tenant_scope)
        return jsonify({"tenant": tenant.to_dict(get_codec())}), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load tenant")


@auth_bp.put("/api/update-password")
@require_auth
def update_password_route():
    try:
        data = json_body()
        current_password = data.get("current_password") or data.get("old_password")
        new_password = data.get("new_password")

        if not all([current_password, new_password]):
            return jsonify({"error": "current_password and new_password required"}), 400

        auth_service.update_password(g.current_user_id, current_password, new_password)
        return jsonify({"ok": True}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update password")
