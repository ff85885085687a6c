"""
Tests for ProcessedTransactionRepository (idempotency ledger)
"""
from datetime import datetime, timezone

from app.infrastructure.db.models import ProcessedTransaction
from app.infrastructure.processed_transactions.repository import ProcessedTransactionRepository


_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_mark_processed_inserts_marker(db_session):
    repo = ProcessedTransactionRepository(db_session)

    assert repo.mark_processed("txn-1", "user-1", "expense", _NOW) is True
    db_session.commit()

    marker = db_session.get(ProcessedTransaction, "txn-1")
    assert marker.transaction_id == "txn-1"
    assert marker.user_id == "user-1"
    assert marker.type == "expense"


def test_mark_processed_twice_returns_false(db_session):
    repo = ProcessedTransactionRepository(db_session)

    assert repo.mark_processed("txn-1", "user-1", "expense", _NOW) is True
    db_session.commit()

    assert repo.mark_processed("txn-1", "user-1", "expense", _NOW) is False
    db_session.commit()

    assert db_session.query(ProcessedTransaction).count() == 1


def test_duplicate_does_not_overwrite_existing_marker(db_session):
    repo = ProcessedTransactionRepository(db_session)
    repo.mark_processed("txn-1", "user-1", "expense", _NOW)
    db_session.commit()

    repo.mark_processed("txn-1", "user-2", "income", _NOW)
    db_session.commit()

    assert db_session.get(ProcessedTransaction, "txn-1").user_id == "user-1"


def test_duplicate_keeps_session_usable(db_session):
    """Повторная вставка не ломает текущую транзакцию session"""
    repo = ProcessedTransactionRepository(db_session)
    repo.mark_processed("txn-1", "user-1", "expense", _NOW)
    db_session.commit()

    repo.mark_processed("txn-1", "user-1", "expense", _NOW)
    repo.mark_processed("txn-2", "user-1", "income", _NOW)
    db_session.commit()

    assert repo.exists("txn-2")


def test_remove_deletes_marker(db_session):
    repo = ProcessedTransactionRepository(db_session)
    repo.mark_processed("txn-1", "user-1", "expense", _NOW)
    db_session.commit()

    repo.remove("txn-1")
    db_session.commit()

    assert not repo.exists("txn-1")
    assert repo.mark_processed("txn-1", "user-1", "expense", _NOW) is True


def test_remove_missing_marker_is_noop(db_session):
    repo = ProcessedTransactionRepository(db_session)

    repo.remove("never-seen")
    db_session.commit()

    assert db_session.query(ProcessedTransaction).count() == 0
