"""
Budget spending worker - применяет TransactionRecorded события к активным бюджетам

Доставка at-least-once, эффект exactly-once:
1. Разобрать тело сообщения (битое - выбросить, не ретраить)
2. Поставить idempotency marker (уже есть - дубликат, успех)
3. Посчитать delta (expense +, income -, остальное - игнор)
4. Найти бюджеты пользователя по категории, окно которых содержит occurred_at
5. Атомарно применить delta к каждому (spent не уходит ниже нуля)

Marker и все изменения бюджетов одного события коммитятся одной
транзакцией БД. При ошибке откатывается всё вместе с marker'ом,
повторная доставка обработает событие с нуля без двойного учёта.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app.domain.budget import spending_delta
from app.domain.transaction_event import MalformedEventError, TransactionRecordedEvent, decode_event
from app.infrastructure.budgets.repository import BudgetRepository
from app.infrastructure.processed_transactions.repository import ProcessedTransactionRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class ProcessOutcome(str, enum.Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"  # неизвестный type, помечен обработанным
    NO_OP = "no_op"  # нулевая сумма, помечен обработанным
    MALFORMED = "malformed"  # не разобрали, marker не создан


@dataclass(frozen=True)
class ProcessResult:
    outcome: ProcessOutcome
    transaction_id: Optional[str] = None
    budgets_updated: int = 0
    delta: Optional[Decimal] = None


class BudgetSpendingProcessor:
    """
    Единая точка входа для push (Lambda) и pull (long-poll) режимов

    Процессор не ретраит сам: любая ошибка хранилища пробрасывается
    наружу, повтор - забота очереди (redelivery).
    """

    def __init__(self, db: Session):
        self.db = db
        self.budget_repo = BudgetRepository(db)
        self.processed_repo = ProcessedTransactionRepository(db)

    def handle_message(self, body: str | bytes | None) -> ProcessResult:
        """
        Разобрать тело сообщения и обработать событие

        Returns:
            ProcessResult; MALFORMED для неразбираемого тела

        Raises:
            SQLAlchemyError, BudgetNotFoundError: transient, событие нужно
            оставить в очереди
        """
        try:
            event = decode_event(body)
        except MalformedEventError as e:
            logger.warning("Discarding malformed transaction event: %s", e)
            return ProcessResult(outcome=ProcessOutcome.MALFORMED)

        return self.process_event(event)

    def process_event(self, event: TransactionRecordedEvent) -> ProcessResult:
        """
        Применить одно событие к бюджетам (ровно один раз по transaction_id)
        """
        try:
            result = self._process(event)
            self.db.commit()
        except Exception:
            # Compensation: rollback снимает marker и все изменения бюджетов события
            self.db.rollback()
            logger.error("Rolled back transaction %s, marker released for retry", event.transaction_id)
            raise
        return result

    def _process(self, event: TransactionRecordedEvent) -> ProcessResult:
        inserted = self.processed_repo.mark_processed(
            event.transaction_id,
            event.user_id,
            event.kind,
            datetime.now(timezone.utc),
        )
        if not inserted:
            logger.debug("Transaction %s already processed", event.transaction_id)
            return ProcessResult(outcome=ProcessOutcome.DUPLICATE, transaction_id=event.transaction_id)

        delta = spending_delta(event.kind, event.amount)
        if delta is None:
            logger.warning("Unknown transaction type %r for transaction %s", event.kind, event.transaction_id)
            return ProcessResult(outcome=ProcessOutcome.IGNORED, transaction_id=event.transaction_id)

        # spent хранится с точностью до копейки, меньшая delta ничего не меняет
        delta = delta.quantize(CENT, rounding=ROUND_HALF_UP)

        if delta == 0:
            logger.debug("Ignoring zero-impact transaction %s", event.transaction_id)
            return ProcessResult(outcome=ProcessOutcome.NO_OP, transaction_id=event.transaction_id, delta=delta)

        logger.info("Updating budget spending for transaction %s, delta=%s", event.transaction_id, delta)
        budgets = self.budget_repo.find_active_by_category(event.user_id, event.category_id, event.occurred_at)

        for budget in budgets:
            self.budget_repo.increment_spent(budget.id, budget.user_id, delta)

        logger.info("Budget spending updated: transaction=%s budgets=%d", event.transaction_id, len(budgets))
        return ProcessResult(
            outcome=ProcessOutcome.APPLIED,
            transaction_id=event.transaction_id,
            budgets_updated=len(budgets),
            delta=delta,
        )
