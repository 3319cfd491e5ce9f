from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.orm import declared_attr, validates

from ..extensions import db
from ..errors import ValidationError
from rhpos.time_utils import to_utc_z, utcnow


class TenantOwnedMixin:
    """
    Column and invariant shared by every tenant-owned table.

    tenant_id is nullable only for legacy rows created before tenancy.
    Once a row carries a tenant it can never be re-parented.
    """

    @declared_attr
    def tenant_id(cls):
        return db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=True, index=True)

    @validates("tenant_id")
    def _freeze_tenant_id(self, key, value):
        state = inspect(self)
        current = state.dict.get(key)
        if current is None and state.has_identity and state.session is not None and key in state.expired_attributes:
            # Expired after commit: load the stored value before comparing
            with state.session.no_autoflush:
                current = getattr(self, key)
        if current is not None and value != current:
            raise ValidationError("tenant reference is immutable")
        return value


class Tenant(db.Model):
    """
    Multi-tenant root: every tenant-owned row points at exactly one Tenant.

    Tenants are created and edited by platform admins only and are never
    deleted by the application.
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Optional profile fields shown on receipts
    about = db.Column(db.Text, nullable=True)
    address = db.Column(db.Text, nullable=True)
    phone_number = db.Column(db.String(20), nullable=True)
    logo = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name!r}>"

    def to_dict(self, codec) -> dict:
        return {
            "id": codec.encode(self.id),
            "name": self.name,
            "about": self.about,
            "address": self.address,
            "phone_number": self.phone_number,
            "logo": self.logo,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class User(TenantOwnedMixin, db.Model):
    """
    Login identity. Users with a tenant_id operate inside that tenant;
    users without one can authenticate but every tenant-bound call fails
    closed for them.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(50), nullable=False, default="user")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    tenant = db.relationship("Tenant", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} tenant_id={self.tenant_id}>"

    def to_dict(self, codec) -> dict:
        return {
            "id": codec.encode(self.id),
            "username": self.username,
            "role": self.role,
            "tenant_id": codec.encode_optional(self.tenant_id),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
