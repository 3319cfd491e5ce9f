# Overview: Flask API routes for platform-admin operations; parses input and returns JSON responses.

# backend/rhpos/routes/admin.py
"""
Platform-admin routes for tenant and user management.

Authenticated with HTTP Basic credentials (ADMIN_USERNAME / ADMIN_PASSWORD),
never with tenant bearer tokens. These handlers take no TenantScope.
"""

from flask import Blueprint, jsonify

from ..decorators import require_platform_admin
from ..errors import PosError
from ..services import auth_service, tenant_service
from ..services.identifier_service import get_codec
from ..services.tenant_service import TenantPatch
from .common import error_response, internal_error, json_body

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# =============================================================================
# TENANTS
# =============================================================================

@admin_bp.get("/tenants")
@require_platform_admin
def list_tenants_route():
    try:
        codec = get_codec()
        tenants = [t.to_dict(codec) for t in tenant_service.list_tenants()]
        return jsonify({"tenants": tenants, "count": len(tenants)}), 200
    except Exception:
        return internal_error("Failed to list tenants")


@admin_bp.post("/tenants")
@require_platform_admin
def create_tenant_route():
    """
    Create a tenant.

    Request body:
    {
        "name": "Toko Nasi",          // required
        "about": "...",               // optional
        "address": "...",             // optional
        "phone_number": "0812...",    // optional
        "logo": "..."                 // optional
    }
    """
    try:
        patch = TenantPatch.from_dict(json_body())
        tenant = tenant_service.create_tenant(patch)
        return jsonify({"tenant": tenant.to_dict(get_codec())}), 201
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create tenant")


@admin_bp.get("/tenants/<tenant_token>")
@require_platform_admin
def get_tenant_route(tenant_token: str):
    try:
        codec = get_codec()
        tenant = tenant_service.get_tenant(codec.decode(tenant_token))
        return jsonify({"tenant": tenant.to_dict(codec)}), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load tenant")


@admin_bp.put("/tenants/<tenant_token>")
@require_platform_admin
def update_tenant_route(tenant_token: str):
    try:
        codec = get_codec()
        tenant_id = codec.decode(tenant_token)
        patch = TenantPatch.from_dict(json_body())
        tenant = tenant_service.update_tenant(tenant_id, patch)
        return jsonify({"tenant": tenant.to_dict(codec)}), 200
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update tenant")


# =============================================================================
# USERS
# =============================================================================

@admin_bp.post("/users")
@require_platform_admin
def create_user_route():
    """
    Create a user, optionally bound to a tenant.

    Request body:
    {
        "username": "kasir1",         // required
        "password": "S3cure!pass",    // required, strength checked
        "tenant_id": "<token>",       // optional
        "role": "user"                // optional
    }
    """
    try:
        data = json_body()
        username = data.get("username")
        password = data.get("password")
        if not all([username, password]):
            return jsonify({"error": "username and password required"}), 400

        codec = get_codec()
        tenant_token = data.get("tenant_id")
        tenant_id = codec.decode(tenant_token) if tenant_token else None

        user = auth_service.create_user(username, password, tenant_id, role=data.get("role") or "user")
        return jsonify({"user": user.to_dict(codec)}), 201
    except PosError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create user")
