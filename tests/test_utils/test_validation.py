"""
Tests for money input parsing
"""
import pytest
from decimal import Decimal

from app.utils.validation import parse_money


@pytest.mark.parametrize("value,expected", [
    ("200", Decimal("200")),
    ("199,90", Decimal("199.90")),
    (" 12.5 ", Decimal("12.5")),
    (40, Decimal("40")),
    (Decimal("0.01"), Decimal("0.01")),
])
def test_parse_money(value, expected):
    assert parse_money(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "-5", "1.234", "NaN", "1e3"])
def test_parse_money_rejects(value):
    with pytest.raises(ValueError):
        parse_money(value)


@pytest.mark.parametrize("value", ["1e2", "+5", "1.2.3"])
def test_parse_money_non_plain_number_is_invalid_amount(value):
    with pytest.raises(ValueError, match="Некорректная сумма"):
        parse_money(value)


def test_parse_money_too_precise_message():
    with pytest.raises(ValueError, match="Максимум 2 знака"):
        parse_money("1.234")
