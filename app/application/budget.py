"""
Budget use cases - создание, изменение и статус бюджетов

spent здесь меняется только административно (SetBudgetSpentUseCase),
инкрементальный учёт расходов - в app.application.budget_spending.
"""
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session

from app.domain.budget import BUDGET_PERIODS, ensure_utc, period_window
from app.infrastructure.budgets.repository import BudgetNotFoundError, BudgetRepository
from app.infrastructure.db.models import Budget


class BudgetValidationError(ValueError):
    """Ошибка валидации бюджета"""
    pass


def _validate_limit(amount: Decimal) -> Decimal:
    amount = Decimal(amount)
    if amount <= 0:
        raise BudgetValidationError("Лимит бюджета должен быть больше нуля")
    return amount


def _validate_alert_percent(alert_percent: Decimal) -> Decimal:
    alert_percent = Decimal(alert_percent)
    if not (0 <= alert_percent <= 100):
        raise BudgetValidationError("Порог уведомления должен быть от 0 до 100%")
    return alert_percent


def _validate_window(period_start: datetime, period_end: datetime) -> tuple[datetime, datetime]:
    period_start, period_end = ensure_utc(period_start), ensure_utc(period_end)
    if period_start > period_end:
        raise BudgetValidationError("Начало периода бюджета позже его конца")
    return period_start, period_end


class CreateBudgetUseCase:
    """
    Use case: Создать бюджет

    Если окно не задано явно - берётся календарный месяц/квартал/год,
    содержащий period_start (или текущий момент).
    """

    def __init__(self, db: Session):
        self.db = db
        self.budget_repo = BudgetRepository(db)

    def execute(
        self,
        user_id: str,
        category_id: str,
        amount: Decimal,
        currency: str,
        period: str,
        period_start: Optional[datetime] = None,
        period_end: Optional[datetime] = None,
        alert_percent: Decimal = Decimal("80"),
    ) -> Budget:
        """
        Создать бюджет

        Args:
            user_id: владелец
            category_id: категория расходов
            amount: лимит
            currency: валюта (3 заглавные буквы)
            period: monthly / quarterly / yearly
            period_start: начало окна (опционально)
            period_end: конец окна (опционально, включительно)
            alert_percent: порог уведомления, % от лимита

        Returns:
            Созданный Budget (spent = 0)
        """
        if period not in BUDGET_PERIODS:
            raise BudgetValidationError(
                f"Неверный период бюджета: {period}. Используйте monthly, quarterly или yearly"
            )

        if not re.fullmatch(r"[A-Z]{3}", currency):
            raise BudgetValidationError(
                f"Неверный код валюты: «{currency}». Используйте 3 заглавные буквы (например USD, EUR)"
            )

        if period_start is None or period_end is None:
            anchor = period_start or period_end or datetime.now(timezone.utc)
            default_start, default_end = period_window(period, anchor)
            period_start = period_start or default_start
            period_end = period_end or default_end

        period_start, period_end = _validate_window(period_start, period_end)
        now = datetime.now(timezone.utc)

        budget = Budget(
            id=str(uuid.uuid4()),
            user_id=user_id,
            category_id=category_id,
            amount=_validate_limit(amount),
            currency=currency,
            period=period,
            period_start=period_start,
            period_end=period_end,
            spent=Decimal("0"),
            alert_percent=_validate_alert_percent(alert_percent),
            created_at=now,
            updated_at=now,
        )
        self.budget_repo.create(budget)
        self.db.commit()
        return budget


class UpdateBudgetUseCase:
    """Use case: Изменить лимит, порог или окно бюджета (spent не трогает)"""

    def __init__(self, db: Session):
        self.db = db
        self.budget_repo = BudgetRepository(db)

    def execute(
        self,
        user_id: str,
        budget_id: str,
        amount: Optional[Decimal] = None,
        alert_percent: Optional[Decimal] = None,
        period_start: Optional[datetime] = None,
        period_end: Optional[datetime] = None,
    ) -> Budget:
        budget = get_budget(self.db, user_id, budget_id)

        if amount is not None:
            budget.amount = _validate_limit(amount)
        if alert_percent is not None:
            budget.alert_percent = _validate_alert_percent(alert_percent)
        if period_start is not None or period_end is not None:
            budget.period_start, budget.period_end = _validate_window(
                period_start or budget.period_start,
                period_end or budget.period_end,
            )
        budget.updated_at = datetime.now(timezone.utc)

        self.budget_repo.update(budget)
        self.db.commit()
        return budget


class SetBudgetSpentUseCase:
    """
    Use case: Перезаписать spent абсолютным значением

    Административная корректировка (например, после ручной сверки).
    """

    def __init__(self, db: Session):
        self.db = db
        self.budget_repo = BudgetRepository(db)

    def execute(self, user_id: str, budget_id: str, spent: Decimal) -> Budget:
        spent = Decimal(spent)
        if spent < 0:
            raise BudgetValidationError("Потраченная сумма не может быть отрицательной")

        get_budget(self.db, user_id, budget_id)
        self.budget_repo.update_spent(budget_id, user_id, spent)
        self.db.commit()
        return get_budget(self.db, user_id, budget_id)


def get_budget(db: Session, user_id: str, budget_id: str) -> Budget:
    """
    Raises:
        BudgetNotFoundError: если бюджета нет или он чужой
    """
    budget = BudgetRepository(db).get_by_id(budget_id, user_id)
    if budget is None:
        raise BudgetNotFoundError(budget_id)
    return budget


def list_budgets(db: Session, user_id: str, limit: int = 0, offset: int = 0) -> List[Budget]:
    return BudgetRepository(db).list(user_id, limit=limit, offset=offset)


@dataclass(frozen=True)
class BudgetStatus:
    remaining: Decimal
    percent_used: Decimal
    alert: bool
    exceeded: bool


def build_budget_status(budget: Budget) -> BudgetStatus:
    """
    Остаток, процент использования и флаг уведомления

    alert - spent достиг alert_percent от лимита, exceeded - лимит превышен.
    """
    amount = Decimal(budget.amount)
    spent = Decimal(budget.spent)
    percent_used = (spent / amount * 100).quantize(Decimal("0.01")) if amount > 0 else Decimal("0")
    return BudgetStatus(
        remaining=amount - spent,
        percent_used=percent_used,
        alert=percent_used >= Decimal(budget.alert_percent),
        exceeded=spent > amount,
    )
