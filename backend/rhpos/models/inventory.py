from __future__ import annotations

from ..extensions import db
from .tenancy import TenantOwnedMixin
from rhpos.time_utils import to_utc_z, utcnow


def money_str(value) -> str | None:
    if value is None:
        return None
    return f"{value:.2f}"


class Product(TenantOwnedMixin, db.Model):
    """
    Product master data with its stock counter.

    MULTI-TENANT: SKUs are unique within a tenant: UniqueConstraint("tenant_id", "sku").

    STOCK: the counter is only ever changed through a guarded
    "stock = stock + delta WHERE stock + delta >= 0" update (see
    products_service.adjust_stock); the CHECK constraint backs that up at
    the database level.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "sku", name="uq_products_tenant_sku"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_tenant_name", "tenant_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(100), nullable=False)

    cost_price = db.Column(db.Numeric(12, 2), nullable=False)
    sale_price = db.Column(db.Numeric(12, 2), nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)

    # Object-storage key, never a URL
    image_ref = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    tenant = db.relationship("Tenant", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} tenant_id={self.tenant_id}>"

    def to_dict(self, codec) -> dict:
        return {
            "id": codec.encode(self.id),
            "name": self.name,
            "sku": self.sku,
            "cost_price": money_str(self.cost_price),
            "sale_price": money_str(self.sale_price),
            "stock": self.stock,
            "image": self.image_ref,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
