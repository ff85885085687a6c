"""
TransactionRecorded event - wire contract между записью транзакции и budget worker

JSON, camelCase-поля фиксированы:
    {"transactionId", "userId", "accountId", "categoryId",
     "amount", "currency", "occurredAt", "type"}
"""
import json
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.domain.budget import ensure_utc


EVENT_TYPE_TRANSACTION_RECORDED = "TRANSACTION_RECORDED"

# Numeric(20,2): больше 18 знаков до запятой не помещается
MAX_EVENT_AMOUNT = Decimal("1e18")
# processed_transactions.id / user_id - String(64)
MAX_ID_LENGTH = 64


class MalformedEventError(ValueError):
    """Тело сообщения не разбирается в TransactionRecordedEvent"""
    pass


class TransactionRecordedEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    transaction_id: str = Field(alias="transactionId", min_length=1, max_length=MAX_ID_LENGTH)
    user_id: str = Field(alias="userId", min_length=1, max_length=MAX_ID_LENGTH)
    account_id: str = Field(default="", alias="accountId")
    category_id: str = Field(alias="categoryId")
    amount: Decimal
    currency: str = ""
    occurred_at: datetime = Field(alias="occurredAt")
    kind: str = Field(alias="type")  # "expense" | "income" | любой другой

    @field_validator("occurred_at", mode="before")
    @classmethod
    def occurred_at_is_timestamp_string(cls, v):
        # В JSON только RFC 3339 строка, epoch-числа не принимаем
        if not isinstance(v, (str, datetime)):
            raise ValueError("occurredAt must be an RFC 3339 timestamp string")
        return v

    @field_validator("occurred_at")
    @classmethod
    def normalize_occurred_at(cls, v: datetime) -> datetime:
        """Naive timestamp считаем UTC"""
        return ensure_utc(v)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, v):
        # bool - подкласс int, строки в wire-формате не допускаются
        if isinstance(v, bool) or not isinstance(v, (int, float, Decimal)):
            raise ValueError("amount must be a JSON number")
        return v

    @field_validator("amount")
    @classmethod
    def finite_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite number")
        if abs(v) >= MAX_EVENT_AMOUNT:
            raise ValueError("amount is out of range")
        return v

    @classmethod
    def from_transaction(
        cls,
        transaction_id: str,
        user_id: str,
        account_id: str,
        category_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime,
        kind: str,
    ) -> "TransactionRecordedEvent":
        """
        Собрать событие из только что записанной транзакции

        kind берётся из типа категории (expense / income).
        """
        return cls(
            transaction_id=transaction_id,
            user_id=user_id,
            account_id=account_id,
            category_id=category_id,
            amount=amount,
            currency=currency,
            occurred_at=occurred_at,
            kind=kind,
        )

    def to_json(self) -> str:
        """Сериализовать в wire-формат (camelCase, amount как число)"""
        payload = {
            "transactionId": self.transaction_id,
            "userId": self.user_id,
            "accountId": self.account_id,
            "categoryId": self.category_id,
            "amount": float(self.amount),
            "currency": self.currency,
            "occurredAt": self.occurred_at.isoformat().replace("+00:00", "Z"),
            "type": self.kind,
        }
        return json.dumps(payload)


def decode_event(body: str | bytes | None) -> TransactionRecordedEvent:
    """
    Разобрать тело сообщения из очереди

    Raises:
        MalformedEventError: пустое тело, не JSON или не та структура
    """
    if not body:
        raise MalformedEventError("empty message body")
    try:
        return TransactionRecordedEvent.model_validate_json(body)
    except ValidationError as e:
        raise MalformedEventError(str(e)) from e
