# Overview: Service-layer operations for reporting; tenant-scoped sales aggregation.

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from ..extensions import db
from ..errors import ValidationError
from ..models import Product, Transaction, TransactionItem
from ..models.inventory import money_str
from ..validation import CENT
from .identifier_service import IdentifierCodec
from .tenant_service import TenantScope, require_scope
from rhpos.time_utils import REPORT_DATE_FORMAT, end_of_day, start_of_day

logger = logging.getLogger(__name__)


def _average(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return Decimal("0.00")
    return (total / count).quantize(CENT)


def sales_report(scope: TenantScope, start: date, end: date, codec: IdentifierCodec) -> dict:
    """
    Sales of the scope's tenant between two calendar dates (inclusive, UTC).

    Lines are grouped per product and ordered by revenue (desc), then product
    id. Revenue is price * quantity of each line, before the sale discount.

    average_transaction_value divides revenue by the number of product groups
    and is kept for existing clients; average_per_transaction divides by the
    number of sales.
    """
    tenant_id = require_scope(scope, "sales report")
    if start > end:
        raise ValidationError("start_date must be on or before end_date")

    window_start = start_of_day(start)
    window_end = end_of_day(end)

    rows = (
        db.session.query(
            TransactionItem.transaction_id,
            TransactionItem.product_id,
            TransactionItem.quantity,
            TransactionItem.unit_price,
            Product.name,
        )
        .join(Transaction, TransactionItem.transaction_id == Transaction.id)
        .join(Product, TransactionItem.product_id == Product.id)
        .filter(
            Transaction.tenant_id == tenant_id,
            Transaction.created_at >= window_start,
            Transaction.created_at <= window_end,
        )
        .all()
    )

    groups: dict[int, dict] = {}
    sale_ids = set()
    for transaction_id, product_id, quantity, unit_price, product_name in rows:
        sale_ids.add(transaction_id)
        group = groups.setdefault(
            product_id,
            {"product_id": product_id, "product_name": product_name, "total": 0, "total_price": Decimal("0")},
        )
        group["total"] += quantity
        group["total_price"] += Decimal(unit_price) * quantity

    details = sorted(groups.values(), key=lambda g: (-g["total_price"], g["product_id"]))

    total_revenue = sum((g["total_price"] for g in details), Decimal("0")).quantize(CENT)
    items_sold = sum(g["total"] for g in details)

    logger.info(
        "sales report tenant_id=%s start=%s end=%s groups=%s transactions=%s",
        tenant_id, start, end, len(details), len(sale_ids),
    )

    return {
        "start_date": start.strftime(REPORT_DATE_FORMAT),
        "end_date": end.strftime(REPORT_DATE_FORMAT),
        "total_revenue": money_str(total_revenue),
        "items_sold": items_sold,
        "transaction_count": len(sale_ids),
        "average_transaction_value": money_str(_average(total_revenue, len(details))),
        "average_per_transaction": money_str(_average(total_revenue, len(sale_ids))),
        "details": [
            {
                "product_id": codec.encode(g["product_id"]),
                "product_name": g["product_name"],
                "total": g["total"],
                "total_price": money_str(g["total_price"]),
            }
            for g in details
        ],
    }
