# Overview: Pytest coverage for input coercion helpers.

from decimal import Decimal

import pytest

from rhpos.errors import ValidationError
from rhpos.validation import clamp_pagination, parse_int, parse_money, parse_percent


@pytest.mark.parametrize("value, expected", [(5, 5), ("12", 12), (" 7 ", 7), (0, 0)])
def test_parse_int_accepts(value, expected):
    assert parse_int(value, "quantity") == expected


@pytest.mark.parametrize("value", [True, 1.0, "1.5", "1e3", "", "abc", None, [1]])
def test_parse_int_rejects(value):
    with pytest.raises(ValidationError):
        parse_int(value, "quantity")


def test_parse_money_keeps_float_text():
    assert parse_money(12000.5, "price") == Decimal("12000.5")
    assert parse_money("3500.50", "price") == Decimal("3500.50")


@pytest.mark.parametrize("value", [None, False, "NaN", "Infinity", "12,000", {}])
def test_parse_money_rejects(value):
    with pytest.raises(ValidationError):
        parse_money(value, "price")


def test_parse_percent_bounds():
    assert parse_percent(None, "discount") == Decimal("0")
    assert parse_percent(100, "discount") == Decimal("100")
    with pytest.raises(ValidationError):
        parse_percent("100.01", "discount")


@pytest.mark.parametrize("page, per_page, expected", [
    (None, None, (1, 10)),
    (0, 0, (1, 1)),
    (-3, 500, (1, 100)),
    (4, 25, (4, 25)),
])
def test_clamp_pagination(page, per_page, expected):
    assert clamp_pagination(page, per_page) == expected


@pytest.mark.parametrize("value", [2 ** 63, -(2 ** 63) - 1, 10 ** 20, str(10 ** 20)])
def test_parse_int_rejects_out_of_range(value):
    with pytest.raises(ValidationError):
        parse_int(value, "stock")


def test_parse_int_accepts_64_bit_bounds():
    assert parse_int(2 ** 63 - 1, "stock") == 2 ** 63 - 1
    assert parse_int(-(2 ** 63), "stock") == -(2 ** 63)


def test_parse_percent_two_decimals_max():
    assert parse_percent("12.35", "discount") == Decimal("12.35")
    assert parse_percent("12.300", "discount") == Decimal("12.300")
    with pytest.raises(ValidationError):
        parse_percent("12.345", "discount")
