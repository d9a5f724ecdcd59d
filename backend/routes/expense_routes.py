from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from auth import get_current_user
from config import TOP_SPENDING_LIMIT
from database import get_db
from services.expense_service import ExpenseService
from services.report_service import ReportService

router = APIRouter(prefix="/api/expenses", tags=["Expenses"])


def get_now() -> datetime:
    """Current instant for bucketed queries; overridden in tests."""
    return datetime.now(timezone.utc)


class ExpenseCreate(BaseModel):
    # Loose on purpose: ExpenseService.validate owns the business rules.
    name: Optional[str] = None
    amount: Optional[float] = None
    category: Optional[str] = None
    date: Optional[str] = None


@router.post("", status_code=201)
async def create_expense(
    body: ExpenseCreate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    expense = ExpenseService.record_expense(db, user_id, body.model_dump(), now=now)
    return expense.to_dict()


@router.get("")
async def list_expenses(user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    return [e.to_dict() for e in ExpenseService.list_all(db, user_id)]


@router.get("/daily")
async def daily_expenses(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return [e.to_dict() for e in ExpenseService.list_daily(db, user_id, now=now)]


@router.get("/weekly")
async def weekly_expenses(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return [e.to_dict() for e in ExpenseService.list_weekly(db, user_id, now=now)]


@router.get("/monthly")
async def monthly_expenses(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return [e.to_dict() for e in ExpenseService.list_monthly(db, user_id, now=now)]


@router.get("/category-summary")
async def category_summary(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return ReportService.category_summary(db, user_id, now=now)


@router.get("/top-spending")
async def top_spending(
    limit: int = TOP_SPENDING_LIMIT,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return [e.to_dict() for e in ReportService.top_spending(db, user_id, now=now, limit=limit)]


@router.delete("/{expense_id}")
async def delete_expense(expense_id: str, user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    deleted = ExpenseService.delete_expense(db, user_id, expense_id)
    return {"message": "Expense deleted successfully", "deletedExpense": deleted}
