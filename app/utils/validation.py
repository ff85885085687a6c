"""
Validation utilities
"""
import re
from decimal import Decimal, InvalidOperation


def normalize_decimal_input(value: str) -> str:
    """
    Нормализовать ввод суммы: заменить запятую на точку

    Example:
        >>> normalize_decimal_input("100,50")
        "100.50"
    """
    return value.strip().replace(",", ".")


def parse_money(value: str | int | float | Decimal, max_decimal_places: int = 2) -> Decimal:
    """
    Разобрать неотрицательную денежную сумму

    Args:
        value: Сумма (строка с точкой или запятой, либо число)
        max_decimal_places: Максимум знаков после запятой

    Returns:
        Decimal

    Raises:
        ValueError: если это не сумма, она отрицательная или слишком точная

    Example:
        >>> parse_money("200,5")
        Decimal("200.5")
        >>> parse_money("100.505")
        ValueError: Максимум 2 знака после запятой
    """
    normalized = normalize_decimal_input(str(value))

    try:
        amount = Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError("Некорректная сумма")

    if not amount.is_finite():
        raise ValueError("Некорректная сумма")
    if amount < 0:
        raise ValueError("Сумма не может быть отрицательной")

    if not re.fullmatch(r"\d+(\.\d+)?", normalized):
        raise ValueError("Некорректная сумма")

    pattern = rf"^\d+(\.\d{{1,{max_decimal_places}}})?$"
    if not re.match(pattern, normalized):
        raise ValueError(f"Максимум {max_decimal_places} знака после запятой")

    return amount
