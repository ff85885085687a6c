"""
Pytest fixtures for testing
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.infrastructure.db.session import Base
from app.infrastructure.db.models import Budget


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests (one shared connection)"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create database session for tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_user_id():
    """Sample user ID for tests"""
    return "user-1"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def make_budget(db_session, sample_user_id):
    """Фабрика бюджетов: создаёт и коммитит"""
    counter = {"n": 0}

    def _make(
        category_id="groceries",
        period_start=None,
        period_end=None,
        spent="0",
        amount="200",
        period="monthly",
        user_id=None,
        created_at=None,
    ) -> Budget:
        counter["n"] += 1
        budget = Budget(
            id=f"budget-{counter['n']}",
            user_id=user_id or sample_user_id,
            category_id=category_id,
            amount=Decimal(amount),
            currency="USD",
            period=period,
            period_start=period_start or utc(2026, 1, 1),
            period_end=period_end or utc(2026, 1, 31, 23, 59, 59, 999999),
            spent=Decimal(spent),
            alert_percent=Decimal("80"),
            created_at=created_at or utc(2026, 1, 1),
            updated_at=created_at or utc(2026, 1, 1),
        )
        db_session.add(budget)
        db_session.commit()
        return budget

    return _make
