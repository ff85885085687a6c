"""
Budget API endpoints
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id
from app.application.budget import (
    CreateBudgetUseCase, UpdateBudgetUseCase, SetBudgetSpentUseCase,
    BudgetValidationError, build_budget_status, get_budget, list_budgets,
)
from app.infrastructure.budgets.repository import BudgetNotFoundError
from app.infrastructure.db.models import Budget
from app.utils.validation import parse_money


router = APIRouter(prefix="/api/v1/budgets", tags=["budgets"])


# === Request/Response models ===

class CreateBudgetRequest(BaseModel):
    category_id: str
    amount: Decimal
    currency: str  # USD, EUR, ...
    period: str  # monthly, quarterly, yearly
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    alert_percent: Decimal = Decimal("80")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v) -> Decimal:
        """Валидация и нормализация лимита (точка/запятая, макс 2 знака)"""
        return parse_money(v)


class UpdateBudgetRequest(BaseModel):
    amount: Optional[Decimal] = None
    alert_percent: Optional[Decimal] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v) -> Optional[Decimal]:
        return None if v is None else parse_money(v)


class SetSpentRequest(BaseModel):
    spent: Decimal

    @field_validator("spent", mode="before")
    @classmethod
    def validate_spent(cls, v) -> Decimal:
        return parse_money(v)


class BudgetResponse(BaseModel):
    id: str
    category_id: str
    amount: str  # Decimal as string
    currency: str
    period: str
    period_start: datetime
    period_end: datetime
    spent: str
    alert_percent: str
    remaining: str
    percent_used: str
    alert: bool


def _to_response(budget: Budget) -> BudgetResponse:
    status = build_budget_status(budget)
    return BudgetResponse(
        id=budget.id,
        category_id=budget.category_id,
        amount=str(budget.amount),
        currency=budget.currency,
        period=budget.period,
        period_start=budget.period_start,
        period_end=budget.period_end,
        spent=str(budget.spent),
        alert_percent=str(budget.alert_percent),
        remaining=str(status.remaining),
        percent_used=str(status.percent_used),
        alert=status.alert,
    )


# === Endpoints ===

@router.post("/", response_model=BudgetResponse, status_code=201)
def create_budget(
    req: CreateBudgetRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Создать бюджет"""
    try:
        budget = CreateBudgetUseCase(db).execute(
            user_id=user_id,
            category_id=req.category_id,
            amount=req.amount,
            currency=req.currency,
            period=req.period,
            period_start=req.period_start,
            period_end=req.period_end,
            alert_percent=req.alert_percent,
        )
    except BudgetValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(budget)


@router.get("/", response_model=list[BudgetResponse])
def get_budgets(
    limit: int = 0,
    offset: int = 0,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Список бюджетов пользователя"""
    return [_to_response(b) for b in list_budgets(db, user_id, limit=limit, offset=offset)]


@router.get("/{budget_id}", response_model=BudgetResponse)
def get_budget_by_id(
    budget_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    try:
        return _to_response(get_budget(db, user_id, budget_id))
    except BudgetNotFoundError:
        raise HTTPException(status_code=404, detail="Budget not found")


@router.patch("/{budget_id}", response_model=BudgetResponse)
def update_budget(
    budget_id: str,
    req: UpdateBudgetRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Изменить лимит, порог или окно"""
    try:
        budget = UpdateBudgetUseCase(db).execute(
            user_id=user_id,
            budget_id=budget_id,
            amount=req.amount,
            alert_percent=req.alert_percent,
            period_start=req.period_start,
            period_end=req.period_end,
        )
    except BudgetNotFoundError:
        raise HTTPException(status_code=404, detail="Budget not found")
    except BudgetValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(budget)


@router.put("/{budget_id}/spent", response_model=BudgetResponse)
def set_budget_spent(
    budget_id: str,
    req: SetSpentRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Перезаписать spent (ручная корректировка)"""
    try:
        budget = SetBudgetSpentUseCase(db).execute(user_id, budget_id, req.spent)
    except BudgetNotFoundError:
        raise HTTPException(status_code=404, detail="Budget not found")
    except BudgetValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(budget)
