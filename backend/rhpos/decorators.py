# Overview: Request authentication decorators for API routes.

import hmac
from functools import wraps

from flask import current_app, g, jsonify, request

from .errors import AuthenticationError, InvalidTokenFormatError
from .services import auth_service
from .services.identifier_service import get_codec
from .services.tenant_service import TenantScope


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a bearer JWT and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user_id: decoded user id
    - g.claims: the verified token claims
    - g.tenant_scope: TenantScope for the token's tenant

    A token without a usable tenant_id claim still authenticates, but its
    scope is unbound, so every tenant-bound service call answers 403.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or tampered token
    - Token subject is not an identifier this deployment minted
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        codec = get_codec()
        try:
            claims = auth_service.decode_token(token)
            user_id = codec.decode(claims.get("sub"))
        except (AuthenticationError, InvalidTokenFormatError):
            return jsonify({"error": "Invalid or expired token"}), 401

        scope = TenantScope.unbound()
        tenant_claim = claims.get("tenant_id")
        if tenant_claim:
            try:
                scope = TenantScope.for_tenant(codec.decode(tenant_claim))
            except InvalidTokenFormatError:
                current_app.logger.warning(
                    "TENANT_CLAIM_INVALID user_id=%s path=%s", user_id, request.path
                )

        g.current_user_id = user_id
        g.claims = claims
        g.tenant_scope = scope

        return f(*args, **kwargs)

    return decorated_function


def require_platform_admin(f):
    """
    Require HTTP Basic credentials matching ADMIN_USERNAME / ADMIN_PASSWORD.

    This is a separate credential class from tenant bearer tokens: a tenant
    JWT never grants access here. With no admin credentials configured the
    admin surface is closed.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected_user = current_app.config.get("ADMIN_USERNAME") or ""
        expected_password = current_app.config.get("ADMIN_PASSWORD") or ""
        auth = request.authorization

        authorized = (
            bool(expected_user and expected_password)
            and auth is not None
            and auth.type == "basic"
            and hmac.compare_digest((auth.username or "").encode("utf-8"), expected_user.encode("utf-8"))
            and hmac.compare_digest((auth.password or "").encode("utf-8"), expected_password.encode("utf-8"))
        )
        if not authorized:
            current_app.logger.warning("admin authentication failed path=%s", request.path)
            response = jsonify({"error": "Admin authentication required"})
            response.headers["WWW-Authenticate"] = 'Basic realm="admin"'
            return response, 401

        return f(*args, **kwargs)

    return decorated_function
