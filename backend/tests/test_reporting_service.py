# Overview: Pytest coverage for the sales report.

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import make_product
from rhpos.errors import MissingTenantScopeError, ValidationError
from rhpos.models import Transaction
from rhpos.services import sales_service
from rhpos.services.reporting_service import sales_report
from rhpos.services.sales_service import SaleLineRequest, SaleRequest
from rhpos.services.tenant_service import TenantScope


def _sell(db_session, scope, lines, total, discount="0", at=None):
    sale = sales_service.create_sale(scope, SaleRequest(
        cashier="kasir",
        payment_method="cash",
        total_price=Decimal(str(total)),
        discount=Decimal(discount),
        items=tuple(SaleLineRequest(product_id=p.id, quantity=q) for p, q in lines),
    ))
    if at is not None:
        row = db_session.get(Transaction, sale.id)
        row.created_at = at
        db_session.commit()
    return sale


@pytest.fixture
def teh(db_session, tenant_a):
    return make_product(db_session, tenant_a, sku="TEH001", name="Es Teh", sale_price=3000, stock=100)


class TestSalesReport:

    def test_groups_and_totals(self, db_session, codec, scope_a, product_a, teh):
        day = datetime(2026, 3, 10, 9, 30)
        _sell(db_session, scope_a, [(product_a, 2), (teh, 1)], 27000, at=day)
        _sell(db_session, scope_a, [(teh, 4)], 12000, at=day)

        report = sales_report(scope_a, date(2026, 3, 10), date(2026, 3, 10), codec)

        assert report["total_revenue"] == "39000.00"
        assert report["items_sold"] == 7
        assert report["transaction_count"] == 2
        # Compatibility metric: revenue / product groups
        assert report["average_transaction_value"] == "19500.00"
        assert report["average_per_transaction"] == "19500.00"

        assert [d["product_name"] for d in report["details"]] == ["Nasi Goreng", "Es Teh"]
        assert report["details"][0] == {
            "product_id": codec.encode(product_a.id),
            "product_name": "Nasi Goreng",
            "total": 2,
            "total_price": "24000.00",
        }
        assert report["details"][1]["total"] == 5
        assert report["details"][1]["total_price"] == "15000.00"

    def test_full_stock_sale_report(self, db_session, codec, scope_a, product_a):
        _sell(db_session, scope_a, [(product_a, 50)], 600000, at=datetime(2026, 3, 9, 15, 0))
        report = sales_report(scope_a, date(2026, 3, 9), date(2026, 3, 9), codec)
        assert report["total_revenue"] == "600000.00"
        assert report["items_sold"] == 50

    def test_averages_differ_when_groups_and_sales_differ(self, db_session, codec, scope_a, product_a):
        day = datetime(2026, 3, 11, 12, 0)
        for _ in range(3):
            _sell(db_session, scope_a, [(product_a, 1)], 12000, at=day)

        report = sales_report(scope_a, date(2026, 3, 11), date(2026, 3, 11), codec)

        assert report["total_revenue"] == "36000.00"
        assert report["average_transaction_value"] == "36000.00"
        assert report["average_per_transaction"] == "12000.00"

    def test_revenue_is_before_discount(self, db_session, codec, scope_a, product_a):
        _sell(db_session, scope_a, [(product_a, 1)], "6000.00", discount="50", at=datetime(2026, 3, 12, 8, 0))
        report = sales_report(scope_a, date(2026, 3, 12), date(2026, 3, 12), codec)
        assert report["total_revenue"] == "12000.00"

    def test_window_includes_whole_end_day(self, db_session, codec, scope_a, product_a):
        _sell(db_session, scope_a, [(product_a, 1)], 12000, at=datetime(2026, 4, 1, 0, 0, 0))
        _sell(db_session, scope_a, [(product_a, 1)], 12000, at=datetime(2026, 4, 2, 23, 59, 59, 999000))
        _sell(db_session, scope_a, [(product_a, 1)], 12000, at=datetime(2026, 4, 3, 0, 0, 0))
        _sell(db_session, scope_a, [(product_a, 1)], 12000, at=datetime(2026, 3, 31, 23, 59, 59))

        report = sales_report(scope_a, date(2026, 4, 1), date(2026, 4, 2), codec)
        assert report["transaction_count"] == 2
        assert report["items_sold"] == 2

    def test_ties_ordered_by_product_id(self, db_session, codec, scope_a, tenant_a):
        first = make_product(db_session, tenant_a, sku="A1", name="Zebra", sale_price=1000, stock=5)
        second = make_product(db_session, tenant_a, sku="A2", name="Apple", sale_price=1000, stock=5)
        _sell(db_session, scope_a, [(second, 1), (first, 1)], 2000, at=datetime(2026, 5, 1, 10, 0))

        report = sales_report(scope_a, date(2026, 5, 1), date(2026, 5, 1), codec)
        assert [d["product_id"] for d in report["details"]] == [codec.encode(first.id), codec.encode(second.id)]

    def test_empty_window(self, db_session, codec, scope_a):
        report = sales_report(scope_a, date(2026, 1, 1), date(2026, 1, 31), codec)
        assert report["total_revenue"] == "0.00"
        assert report["items_sold"] == 0
        assert report["transaction_count"] == 0
        assert report["average_transaction_value"] == "0.00"
        assert report["average_per_transaction"] == "0.00"
        assert report["details"] == []
        assert report["start_date"] == "2026-01-01"
        assert report["end_date"] == "2026-01-31"

    def test_start_after_end(self, db_session, codec, scope_a):
        with pytest.raises(ValidationError):
            sales_report(scope_a, date(2026, 2, 2), date(2026, 2, 1), codec)

    def test_unbound_scope(self, db_session, codec):
        with pytest.raises(MissingTenantScopeError):
            sales_report(TenantScope.unbound(), date(2026, 2, 1), date(2026, 2, 1), codec)
