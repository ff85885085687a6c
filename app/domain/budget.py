"""
Budget domain rules

Period windows and spending deltas.
"""
import calendar
from datetime import datetime, timedelta, timezone
from decimal import Decimal


BUDGET_PERIOD_MONTHLY = "monthly"
BUDGET_PERIOD_QUARTERLY = "quarterly"
BUDGET_PERIOD_YEARLY = "yearly"

BUDGET_PERIODS = (BUDGET_PERIOD_MONTHLY, BUDGET_PERIOD_QUARTERLY, BUDGET_PERIOD_YEARLY)

TRANSACTION_TYPE_EXPENSE = "expense"
TRANSACTION_TYPE_INCOME = "income"


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_window(period: str, anchor: datetime) -> tuple[datetime, datetime]:
    """
    Calendar window of the given kind that contains anchor.

    The end is the last microsecond of the window, so both bounds are
    inclusive: period_window("monthly", Jan 15) -> [Jan 1 00:00, Jan 31 23:59:59.999999].
    """
    anchor = ensure_utc(anchor)
    year = anchor.year

    if period == BUDGET_PERIOD_MONTHLY:
        first_month, months = anchor.month, 1
    elif period == BUDGET_PERIOD_QUARTERLY:
        first_month, months = 3 * ((anchor.month - 1) // 3) + 1, 3
    elif period == BUDGET_PERIOD_YEARLY:
        first_month, months = 1, 12
    else:
        raise ValueError(f"Unknown budget period: {period}")

    last_month = first_month + months - 1
    start = datetime(year, first_month, 1, tzinfo=timezone.utc)
    last_day = calendar.monthrange(year, last_month)[1]
    end = datetime(year, last_month, last_day, tzinfo=timezone.utc) + timedelta(days=1, microseconds=-1)
    return start, end


def spending_delta(transaction_type: str, amount: Decimal) -> Decimal | None:
    """
    Signed change of budget spent for one transaction.

    expense -> +|amount|, income -> -|amount| (refund lowers spending).
    Returns None for any other type: such transactions do not touch budgets.
    """
    magnitude = abs(Decimal(amount))
    if transaction_type == TRANSACTION_TYPE_EXPENSE:
        return magnitude
    if transaction_type == TRANSACTION_TYPE_INCOME:
        return -magnitude
    return None
