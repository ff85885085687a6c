"""
Tests for budget domain rules (windows, deltas)
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.domain.budget import (
    ensure_utc, period_window, spending_delta,
)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_monthly_window_covers_whole_month():
    start, end = period_window("monthly", _utc(2026, 1, 15, 10, 30))

    assert start == _utc(2026, 1, 1)
    assert end == _utc(2026, 1, 31, 23, 59, 59, 999999)


def test_monthly_window_february_leap_year():
    start, end = period_window("monthly", _utc(2028, 2, 10))

    assert start == _utc(2028, 2, 1)
    assert end.date().day == 29


def test_quarterly_window():
    start, end = period_window("quarterly", _utc(2026, 8, 20))

    assert start == _utc(2026, 7, 1)
    assert end == _utc(2026, 9, 30, 23, 59, 59, 999999)


def test_yearly_window():
    start, end = period_window("yearly", _utc(2026, 12, 31, 23, 0))

    assert start == _utc(2026, 1, 1)
    assert end == _utc(2026, 12, 31, 23, 59, 59, 999999)


def test_unknown_period_rejected():
    with pytest.raises(ValueError):
        period_window("weekly", _utc(2026, 1, 1))


def test_ensure_utc_treats_naive_as_utc():
    assert ensure_utc(datetime(2026, 1, 15)) == _utc(2026, 1, 15)


def test_ensure_utc_converts_offsets():
    moscow = timezone(timedelta(hours=3))
    assert ensure_utc(datetime(2026, 1, 15, 3, 0, tzinfo=moscow)) == _utc(2026, 1, 15, 0, 0)


def test_expense_delta_is_positive_magnitude():
    assert spending_delta("expense", Decimal("25")) == Decimal("25")
    assert spending_delta("expense", Decimal("-25")) == Decimal("25")


def test_income_delta_is_negative_magnitude():
    assert spending_delta("income", Decimal("25")) == Decimal("-25")
    assert spending_delta("income", Decimal("-25")) == Decimal("-25")


def test_other_types_have_no_delta():
    assert spending_delta("transfer", Decimal("25")) is None
    assert spending_delta("EXPENSE", Decimal("25")) is None
