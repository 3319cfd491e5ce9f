# Overview: Pytest coverage for concurrent sales against one stock counter.

"""
Concurrency tests for sale processing.

Runs against a file-backed SQLite database so each thread gets its own
connection and the database write lock is real. Every thread pushes its own
app context and removes its session when done.
"""

import threading
from decimal import Decimal

import pytest

from conftest import TEST_CONFIG
from rhpos import create_app
from rhpos.errors import InsufficientStockError
from rhpos.extensions import db
from rhpos.models import Product, Tenant, Transaction
from rhpos.services import sales_service
from rhpos.services.sales_service import SaleLineRequest, SaleRequest
from rhpos.services.tenant_service import TenantScope


@pytest.fixture
def concurrency_app(tmp_path):
    db_path = tmp_path / "concurrency.sqlite3"
    app = create_app({
        **TEST_CONFIG,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{db_path}",
        'SALE_TIMEOUT_SECONDS': 10,
    })
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def _seed(app, stock: int, price: str = "1000") -> tuple[int, int]:
    with app.app_context():
        tenant = Tenant(name="Concurrent Warung")
        db.session.add(tenant)
        db.session.commit()

        product = Product(
            tenant_id=tenant.id,
            sku="CONCUR-1",
            name="Concurrent Product",
            cost_price=Decimal("500"),
            sale_price=Decimal(price),
            stock=stock,
        )
        db.session.add(product)
        db.session.commit()
        ids = (tenant.id, product.id)
        db.session.remove()
        return ids


def _run_concurrently(app, tenant_id: int, product_id: int, quantities: list[int], unit_price: Decimal) -> list[str]:
    barrier = threading.Barrier(len(quantities))
    results = []
    results_lock = threading.Lock()

    def worker(quantity):
        with app.app_context():
            try:
                barrier.wait(timeout=10)
                sales_service.create_sale(
                    TenantScope.for_tenant(tenant_id),
                    SaleRequest(
                        cashier="thread",
                        payment_method="cash",
                        total_price=unit_price * quantity,
                        items=(SaleLineRequest(product_id=product_id, quantity=quantity),),
                    ),
                )
                outcome = "ok"
            except InsufficientStockError:
                outcome = "insufficient"
            except Exception as exc:
                outcome = f"error: {exc!r}"
            finally:
                db.session.remove()
            with results_lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker, args=(q,)) for q in quantities]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def _stock_and_sales(app, product_id: int) -> tuple[int, int]:
    with app.app_context():
        stock = db.session.get(Product, product_id).stock
        sales = db.session.query(Transaction).count()
        db.session.remove()
        return stock, sales


def test_two_sales_for_full_stock_only_one_wins(concurrency_app):
    tenant_id, product_id = _seed(concurrency_app, stock=5)

    results = _run_concurrently(concurrency_app, tenant_id, product_id, [5, 5], Decimal("1000"))

    assert sorted(results) == ["insufficient", "ok"]
    assert _stock_and_sales(concurrency_app, product_id) == (0, 1)


def test_many_small_sales_never_oversell(concurrency_app):
    tenant_id, product_id = _seed(concurrency_app, stock=6)

    results = _run_concurrently(concurrency_app, tenant_id, product_id, [2] * 5, Decimal("1000"))

    assert results.count("ok") == 3
    assert results.count("insufficient") == 2
    assert _stock_and_sales(concurrency_app, product_id) == (0, 3)
