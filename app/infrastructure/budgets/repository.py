"""
Budget Repository - хранилище бюджетов

Worker использует только find_active_by_category и increment_spent,
остальное - CRUD для use cases и API.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from app.domain.budget import ensure_utc
from app.infrastructure.db.models import Budget


class BudgetNotFoundError(LookupError):
    """Бюджет с таким id не найден у этого пользователя"""
    pass


class BudgetRepository:

    def __init__(self, db: Session):
        self.db = db

    def create(self, budget: Budget) -> Budget:
        self.db.add(budget)
        self.db.flush()
        return budget

    def update(self, budget: Budget) -> Budget:
        """
        Сохранить изменения бюджета

        Raises:
            BudgetNotFoundError: если бюджет не принадлежит user_id
        """
        if self.get_by_id(budget.id, budget.user_id) is None:
            raise BudgetNotFoundError(budget.id)
        self.db.flush()
        return budget

    def get_by_id(self, budget_id: str, user_id: str) -> Optional[Budget]:
        """
        Получить бюджет по ID

        Returns:
            Budget или None (в том числе если бюджет чужой)
        """
        return self.db.query(Budget).filter(
            Budget.id == budget_id,
            Budget.user_id == user_id
        ).first()

    def list(self, user_id: str, limit: int = 0, offset: int = 0) -> List[Budget]:
        """Бюджеты пользователя, новые первыми"""
        query = (
            self.db.query(Budget)
            .filter(Budget.user_id == user_id)
            .order_by(Budget.created_at.desc(), Budget.id.asc())
        )
        if offset > 0:
            query = query.offset(offset)
        if limit > 0:
            query = query.limit(limit)
        return query.all()

    def find_active_by_category(
        self,
        user_id: str,
        category_id: str,
        timestamp: datetime
    ) -> List[Budget]:
        """
        Бюджеты пользователя по категории, окно которых содержит timestamp

        Обе границы включительно: period_start <= timestamp <= period_end.
        Пересекающиеся бюджеты (месячный + годовой) возвращаются все.
        """
        timestamp = ensure_utc(timestamp)
        stmt = select(Budget).where(
            Budget.user_id == user_id,
            Budget.category_id == category_id,
            Budget.period_start <= timestamp,
            Budget.period_end >= timestamp,
        ).order_by(Budget.id)
        return list(self.db.scalars(stmt))

    def update_spent(self, budget_id: str, user_id: str, spent: Decimal) -> None:
        """
        Перезаписать spent абсолютным значением (административный путь)

        Raises:
            BudgetNotFoundError: если нет бюджета с таким id у user_id
        """
        stmt = (
            update(Budget)
            .where(Budget.id == budget_id, Budget.user_id == user_id)
            .values(spent=Decimal(spent))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            raise BudgetNotFoundError(budget_id)
        self._expire_cached(budget_id)

    def increment_spent(self, budget_id: str, user_id: str, delta: Decimal) -> Decimal:
        """
        Атомарно применить delta к spent: spent = max(0, spent + delta)

        Одним UPDATE на стороне БД, без read-modify-write, поэтому
        параллельные worker'ы не теряют обновления одного бюджета.

        Returns:
            Новое значение spent

        Raises:
            BudgetNotFoundError: если нет бюджета с таким id у user_id
        """
        delta = Decimal(delta)
        new_spent = Budget.spent + delta
        stmt = (
            update(Budget)
            .where(Budget.id == budget_id, Budget.user_id == user_id)
            .values(spent=case((new_spent < 0, Decimal("0")), else_=new_spent))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            raise BudgetNotFoundError(budget_id)
        self._expire_cached(budget_id)

        return self.db.scalar(
            select(Budget.spent).where(Budget.id == budget_id)
        )

    def _expire_cached(self, budget_id: str) -> None:
        # UPDATE идёт мимо identity map - сбросить закэшированный spent
        cached = self.db.identity_map.get(self.db.identity_key(Budget, budget_id))
        if cached is not None:
            self.db.expire(cached, ["spent", "updated_at"])
