# Overview: Pytest coverage for retry and time bounds of atomic units.

import time
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from rhpos.services import sales_service
from rhpos.services.concurrency import remaining_seconds, run_with_retry
from rhpos.services.sales_service import SaleLineRequest, SaleRequest


def _locked():
    return OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))


class TestRunWithRetry:

    def test_retries_until_success(self, db_session):
        calls = []

        def op():
            calls.append(1)
            if len(calls) < 3:
                raise _locked()
            return "done"

        assert run_with_retry(op, backoff_base=0) == "done"
        assert len(calls) == 3

    def test_gives_up_after_attempts(self, db_session):
        calls = []

        def op():
            calls.append(1)
            raise _locked()

        with pytest.raises(OperationalError):
            run_with_retry(op, attempts=2, backoff_base=0)
        assert len(calls) == 2

    def test_no_retry_past_deadline(self, db_session):
        calls = []

        def op():
            calls.append(1)
            raise _locked()

        with pytest.raises(OperationalError):
            run_with_retry(op, attempts=5, backoff_base=0.05, deadline=time.monotonic() + 0.01)
        assert len(calls) == 1


class TestRemainingSeconds:

    def test_no_deadline(self):
        assert remaining_seconds(None) is None

    def test_counts_down(self):
        left = remaining_seconds(time.monotonic() + 5)
        assert 4 < left <= 5

    def test_never_below_a_millisecond(self):
        assert remaining_seconds(time.monotonic() - 10) == 0.001


def test_sale_retries_share_one_time_budget(db_session, scope_a, product_a, monkeypatch):
    real_begin = sales_service.begin_atomic_unit
    timeouts = []

    def flaky_begin(timeout_seconds=None):
        timeouts.append(timeout_seconds)
        if len(timeouts) == 1:
            time.sleep(0.2)
            raise _locked()
        real_begin(timeout_seconds)

    monkeypatch.setattr(sales_service, "begin_atomic_unit", flaky_begin)

    sale = sales_service.create_sale(
        scope_a,
        SaleRequest(
            cashier="kasir",
            payment_method="cash",
            total_price=Decimal("12000"),
            items=(SaleLineRequest(product_id=product_a.id, quantity=1),),
        ),
        timeout_seconds=2,
    )

    assert sale.id is not None
    assert len(timeouts) == 2
    assert timeouts[0] <= 2
    assert timeouts[1] < 2 - 0.2
