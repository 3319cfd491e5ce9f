# Overview: Service-layer operations for sales; turns a cart into one committed transaction.

"""
Sales Service - atomic sale processing

A sale is one atomic unit of work:
    lock each product row -> check stock -> snapshot sale price -> decrement
    stock (guarded) -> apply discount -> verify the client's total ->
    insert header + lines -> commit

Any failure rolls the whole unit back: no header, no lines, no stock change.
The computed total is authoritative; a client total that differs by even one
cent is rejected.

CONCURRENCY: the unit relies on the database only (row locks, SQLite's write
lock via BEGIN IMMEDIATE and the guarded stock UPDATE). Lock and deadlock
failures are retried by run_with_retry with backoff.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import (
    EmptySaleError,
    InsufficientStockError,
    PersistenceFailure,
    PosError,
    ProductNotFoundError,
    TotalMismatchError,
    ValidationError,
)
from ..models import Product, Transaction, TransactionItem
from ..validation import CENT, clamp_pagination, optional_text, parse_int, parse_money, parse_percent, require_text
from .concurrency import begin_atomic_unit, lock_for_update, remaining_seconds, run_with_retry
from .identifier_service import IdentifierCodec
from .products_service import adjust_stock
from .tenant_service import TenantScope, require_scope, scoped_get, scoped_query, stamp_tenant

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class SaleLineRequest:
    product_id: int
    quantity: int
    # Public token as sent by the client, echoed back in error details
    product_ref: Optional[str] = None


@dataclass(frozen=True)
class SaleRequest:
    cashier: str
    payment_method: str
    total_price: Decimal
    discount: Decimal = Decimal("0")
    notes: Optional[str] = None
    items: tuple[SaleLineRequest, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: dict, codec: IdentifierCodec) -> "SaleRequest":
        """
        Validate and decode a JSON sale request.

        Everything here runs before the atomic unit opens: a malformed
        request never touches the database.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        raw_items = payload.get("items")
        if raw_items is None or (isinstance(raw_items, list) and not raw_items):
            raise EmptySaleError()
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")

        items = []
        for index, raw in enumerate(raw_items):
            if not isinstance(raw, dict):
                raise ValidationError(f"items[{index}] must be an object")
            token = raw.get("product_id")
            if not isinstance(token, str):
                raise ValidationError(f"items[{index}].product_id must be a string")
            product_id = codec.decode(token)
            quantity = parse_int(raw.get("quantity"), f"items[{index}].quantity")
            if quantity < 1:
                raise ValidationError(f"items[{index}].quantity must be >= 1")
            items.append(SaleLineRequest(product_id=product_id, quantity=quantity, product_ref=token))

        # "user" is the field name older clients send
        cashier_source = payload if "cashier" in payload else {"cashier": payload.get("user")}
        total_price = parse_money(payload.get("total_price"), "total_price")
        if total_price < 0:
            raise ValidationError("total_price must be >= 0")

        return cls(
            cashier=require_text(cashier_source, "cashier", max_length=255),
            payment_method=require_text(payload, "payment_method", max_length=50),
            total_price=total_price,
            discount=parse_percent(payload.get("discount"), "discount"),
            notes=optional_text(payload, "notes"),
            items=tuple(items),
        )


def apply_discount(running_total: Decimal, discount: Decimal) -> Decimal:
    """running * (100 - discount) / 100, rounded half-up to cents."""
    return (running_total * (HUNDRED - discount) / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def create_sale(scope: TenantScope, request: SaleRequest, *, timeout_seconds: float | None = None) -> Transaction:
    """
    Process one sale atomically for the scope's tenant.

    Raises:
        MissingTenantScopeError: scope carries no tenant
        EmptySaleError: no items
        ProductNotFoundError: a line references a product outside the tenant
        InsufficientStockError: a line asks for more than is on hand
        TotalMismatchError: the claimed total differs from the computed one
        PersistenceFailure: the database failed underneath
    """
    tenant_id = require_scope(scope, "create transaction")
    if not request.items:
        raise EmptySaleError()

    # discount is stored as Numeric(5, 2)
    parse_percent(request.discount, "discount")

    if timeout_seconds is None:
        timeout_seconds = current_app.config.get("SALE_TIMEOUT_SECONDS")
    deadline = time.monotonic() + timeout_seconds if timeout_seconds else None

    def _op():
        try:
            begin_atomic_unit(remaining_seconds(deadline))

            running_total = Decimal("0")
            lines = []
            for line in request.items:
                product = lock_for_update(
                    scoped_query(Product, scope).filter(Product.id == line.product_id)
                ).first()
                if product is None:
                    raise ProductNotFoundError(line.product_ref)

                if line.quantity > product.stock:
                    raise InsufficientStockError(
                        product.name,
                        requested=line.quantity,
                        available=product.stock,
                        product_ref=line.product_ref,
                    )

                unit_price = product.sale_price
                running_total += unit_price * line.quantity
                lines.append(TransactionItem(product_id=product.id, quantity=line.quantity, unit_price=unit_price))

                adjust_stock(scope, product.id, -line.quantity)

            final_total = apply_discount(running_total, request.discount)
            if final_total != request.total_price:
                raise TotalMismatchError(request.total_price, final_total)

            sale = Transaction(
                cashier=request.cashier,
                payment_method=request.payment_method,
                discount=request.discount,
                total_price=final_total,
                notes=request.notes,
            )
            stamp_tenant(sale, scope, "create transaction")
            sale.items.extend(lines)
            db.session.add(sale)

            db.session.commit()
            return sale.id
        except Exception:
            db.session.rollback()
            raise

    try:
        sale_id = run_with_retry(_op, deadline=deadline)
    except PosError as exc:
        logger.info("transaction rejected tenant_id=%s: %s", tenant_id, exc)
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("transaction failed tenant_id=%s", tenant_id)
        raise PersistenceFailure("create transaction", exc) from exc

    logger.info("transaction created id=%s tenant_id=%s items=%s", sale_id, tenant_id, len(request.items))
    return get_sale(scope, sale_id)


def get_sale(scope: TenantScope, sale_id: int) -> Transaction:
    """Scoped read; lines and their products load with the header."""
    return scoped_get(Transaction, scope, sale_id, entity="Transaction")


def list_sales(scope: TenantScope, page: int | None = None, per_page: int | None = None) -> tuple[list[Transaction], int]:
    """Newest first. Returns (items for the page, total count for the tenant)."""
    page, per_page = clamp_pagination(page, per_page)
    base_query = scoped_query(Transaction, scope)

    total = base_query.count()
    items = (
        base_query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total
