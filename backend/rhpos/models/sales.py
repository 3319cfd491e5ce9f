from __future__ import annotations

from ..extensions import db
from .inventory import money_str
from .tenancy import TenantOwnedMixin
from rhpos.time_utils import to_utc_z, utcnow


class Transaction(TenantOwnedMixin, db.Model):
    """
    A completed sale.

    Written exactly once, together with its items and the stock decrements,
    inside one database transaction (see sales_service.create_sale).
    total_price is always the server-computed amount.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        # Report window scans are tenant + time range
        db.Index("ix_transactions_tenant_created", "tenant_id", "created_at"),
        db.CheckConstraint("discount >= 0 AND discount <= 100", name="ck_transactions_discount_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    cashier = db.Column(db.String(255), nullable=False)
    payment_method = db.Column(db.String(50), nullable=False)

    # Percentage, 0-100
    discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    items = db.relationship(
        "TransactionItem",
        back_populates="transaction",
        lazy="selectin",
        order_by="TransactionItem.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self, codec) -> dict:
        return {
            "id": codec.encode(self.id),
            "user": self.cashier,
            "payment_method": self.payment_method,
            "discount": money_str(self.discount),
            "total_price": money_str(self.total_price),
            "notes": self.notes,
            "items": [item.to_dict(codec) for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TransactionItem(db.Model):
    """
    One product's contribution to a sale.

    unit_price is the product's sale price at the moment of sale, so history
    stays accurate when prices change later.
    """
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_transaction_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    transaction = db.relationship("Transaction", back_populates="items")
    product = db.relationship("Product", lazy="joined")

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_dict(self, codec) -> dict:
        return {
            "id": codec.encode(self.id),
            "product_id": codec.encode(self.product_id),
            "product": self.product.to_dict(codec) if self.product is not None else None,
            "quantity": self.quantity,
            "price": money_str(self.unit_price),
            "line_total": money_str(self.line_total),
            "created_at": to_utc_z(self.created_at),
        }
