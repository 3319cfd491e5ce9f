"""
Multi-Tenant Service: Tenant Scope and Scoping Helpers

WHY: Centralize tenant scoping for reuse across services. Every tenant-bound
read or write takes an explicit TenantScope, and cross-tenant access must be
indistinguishable from "does not exist".

SECURITY INVARIANTS:
1. Every authenticated request builds one TenantScope (see decorators.require_auth)
2. Tenant-bound queries always filter on tenant_id; a scope without a tenant
   raises MissingTenantScopeError instead of running unscoped
3. Creates stamp tenant_id from the scope, never from client input
4. Updates and deletes load the row through the scoped query first, so a
   foreign row is NotFound even when its numeric id is guessed
5. Cross-tenant lookups are logged as security warnings

PLATFORM ADMIN: tenant management functions below take no scope. They are
reachable only through the Basic-auth admin blueprint.

USAGE:
    from rhpos.services.tenant_service import TenantScope, scoped_query

    scope = TenantScope.for_tenant(tenant_id)
    products = scoped_query(Product, scope).all()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Optional

from ..extensions import db
from ..errors import MissingTenantScopeError, NotFoundError, ValidationError
from ..models import Tenant
from ..validation import ModelValidationPolicy, validate_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantScope:
    """Request-scoped tenant value. tenant_id is None for admin/unbound requests."""

    tenant_id: Optional[int] = None

    @classmethod
    def for_tenant(cls, tenant_id: int) -> "TenantScope":
        if tenant_id is None:
            raise MissingTenantScopeError()
        return cls(tenant_id=tenant_id)

    @classmethod
    def unbound(cls) -> "TenantScope":
        return cls(tenant_id=None)

    @property
    def is_bound(self) -> bool:
        return self.tenant_id is not None

    def require_tenant_id(self, operation: str | None = None) -> int:
        if self.tenant_id is None:
            raise MissingTenantScopeError(operation)
        return self.tenant_id


def require_scope(scope: TenantScope | None, operation: str | None = None) -> int:
    """Tenant id of a bound scope; fails closed for None or unbound scopes."""
    if scope is None:
        raise MissingTenantScopeError(operation)
    return scope.require_tenant_id(operation)


def scoped_query(model, scope: TenantScope):
    """
    Base query for a tenant-owned model, filtered to the scope's tenant.

    Usage:
        products = scoped_query(Product, scope).order_by(Product.name).all()
    """
    tenant_id = require_scope(scope, f"query {model.__tablename__}")
    return db.session.query(model).filter(model.tenant_id == tenant_id)


def scoped_get(model, scope: TenantScope, object_id: int, *, entity: str, for_update: bool = False):
    """
    Load one tenant-owned row or raise NotFoundError.

    A row that exists under another tenant is reported exactly like a missing
    row; the attempt is logged.
    """
    query = scoped_query(model, scope).filter(model.id == object_id)
    if for_update:
        query = query.with_for_update()
    obj = query.first()
    if obj is None:
        _log_cross_tenant_attempt(model, scope, object_id)
        raise NotFoundError(entity)
    return obj


def stamp_tenant(obj, scope: TenantScope, operation: str | None = None):
    """Set tenant_id on a new tenant-owned row from the scope."""
    obj.tenant_id = require_scope(scope, operation)
    return obj


def _log_cross_tenant_attempt(model, scope: TenantScope, object_id: int) -> None:
    owner = (
        db.session.query(model.tenant_id)
        .filter(model.id == object_id)
        .scalar()
    )
    if owner is not None and owner != scope.tenant_id:
        logger.warning(
            "CROSS_TENANT_ACCESS_DENIED table=%s id=%s owner_tenant=%s scope_tenant=%s",
            model.__tablename__,
            object_id,
            owner,
            scope.tenant_id,
        )


# ---------------------------------------------------------------------------
# Platform-admin tenant management (no TenantScope)
# ---------------------------------------------------------------------------

TENANT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "about", "address", "phone_number", "logo"},
)


@dataclass
class TenantPatch:
    """Optional fields for creating or partially updating a Tenant."""

    name: Optional[str] = None
    about: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    logo: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TenantPatch":
        """Validate against the Tenant columns; unknown fields are rejected."""
        clean = validate_payload(model=Tenant, payload=data, policy=TENANT_POLICY, partial=True)
        return cls(**clean)


def apply_tenant_patch(tenant: Tenant, patch: TenantPatch) -> None:
    for f in fields(TenantPatch):
        value = getattr(patch, f.name)
        if value is not None:
            setattr(tenant, f.name, value)


def create_tenant(patch: TenantPatch) -> Tenant:
    if not patch.name or not patch.name.strip():
        raise ValidationError("name is required")

    tenant = Tenant()
    apply_tenant_patch(tenant, patch)
    db.session.add(tenant)
    db.session.commit()
    logger.info("tenant created id=%s name=%s", tenant.id, tenant.name)
    return tenant


def get_tenant(tenant_id: int) -> Tenant:
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant")
    return tenant


def list_tenants() -> list[Tenant]:
    return db.session.query(Tenant).order_by(Tenant.id.asc()).all()


def update_tenant(tenant_id: int, patch: TenantPatch) -> Tenant:
    tenant = get_tenant(tenant_id)
    if patch.name is not None and not patch.name.strip():
        raise ValidationError("name cannot be blank")
    apply_tenant_patch(tenant, patch)
    db.session.commit()
    logger.info("tenant updated id=%s", tenant.id)
    return tenant


def get_scope_tenant(scope: TenantScope) -> Tenant:
    """The caller's own tenant (GET /api/my-tenant)."""
    return get_tenant(require_scope(scope, "get tenant"))
