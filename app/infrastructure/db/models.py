"""
SQLAlchemy ORM models (budgets + idempotency ledger)
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Text, DateTime, TIMESTAMP, Numeric, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.db.session import Base


class Budget(Base):
    """
    Budget - лимит расходов по одной категории за один период

    spent изменяется только worker'ом (инкрементально) или
    административной записью абсолютного значения.
    """
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    category_id: Mapped[str] = mapped_column(String(64), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    period: Mapped[str] = mapped_column(String(16), nullable=False)  # monthly, quarterly, yearly

    # Окно бюджета [period_start, period_end], обе границы включительно
    period_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    spent: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2),
        nullable=False,
        default=Decimal("0"),
        server_default="0"
    )
    alert_percent: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
        default=Decimal("80"),
        server_default="80"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index("ix_budgets_user_created", "user_id", "created_at"),
        Index("ix_budgets_user_category_window", "user_id", "category_id", "period_start", "period_end"),
    )


class ProcessedTransaction(Base):
    """
    Infrastructure: idempotency marker для budget worker

    id == transaction_id, поэтому повторная вставка того же
    transaction_id падает на primary key.
    """
    __tablename__ = "processed_transactions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)  # любой type из события, в т.ч. неизвестный
    processed_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
