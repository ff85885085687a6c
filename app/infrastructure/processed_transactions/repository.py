"""
Processed Transaction Repository - idempotency ledger budget worker'а

Одна строка на transaction_id. Вставка атомарна ("insert if absent"),
поэтому два параллельных получения одного события не применят его дважды.
"""
from datetime import datetime
from sqlalchemy import delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.infrastructure.db.models import ProcessedTransaction


class ProcessedTransactionRepository:

    def __init__(self, db: Session):
        self.db = db

    def mark_processed(
        self,
        transaction_id: str,
        user_id: str,
        transaction_type: str,
        processed_at: datetime,
    ) -> bool:
        """
        Записать marker для транзакции

        Args:
            transaction_id: ID транзакции (он же primary key marker'а)
            user_id: владелец транзакции
            transaction_type: expense / income / ...
            processed_at: когда обработано

        Returns:
            True - marker создан, False - уже существовал (повторная доставка)

        Raises:
            SQLAlchemyError: если БД недоступна
        """
        values = {
            "id": transaction_id,
            "transaction_id": transaction_id,
            "user_id": user_id,
            "type": transaction_type,
            "processed_at": processed_at,
        }

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(ProcessedTransaction).values(**values).on_conflict_do_nothing(index_elements=["id"])
        elif dialect == "sqlite":
            stmt = sqlite_insert(ProcessedTransaction).values(**values).on_conflict_do_nothing(index_elements=["id"])
        else:
            return self._insert_with_savepoint(values)

        result = self.db.execute(stmt)
        return result.rowcount == 1

    def _insert_with_savepoint(self, values: dict) -> bool:
        try:
            with self.db.begin_nested():
                self.db.execute(insert(ProcessedTransaction).values(**values))
        except IntegrityError:
            return False
        return True

    def remove(self, transaction_id: str) -> None:
        """Удалить marker (no-op если его нет)"""
        self.db.execute(
            delete(ProcessedTransaction).where(ProcessedTransaction.id == transaction_id)
        )

    def exists(self, transaction_id: str) -> bool:
        return self.db.scalar(
            select(ProcessedTransaction.id).where(ProcessedTransaction.id == transaction_id)
        ) is not None
