"""
expense_service.py — Expense records
Creation (with bucket labels frozen at write time), deletion, and the
rolling daily / current week / current month listings.
"""

import logging
from datetime import datetime, timezone, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session, Query

from config import DAILY_WINDOW_DAYS
from database import store_guard
from errors import ValidationError, NotFound
from models.expense import Expense, CATEGORIES
from services.bucketing import BUCKETING_VERSION, compute_buckets, to_utc

logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("0.01")


def resolve_now(now: datetime | None = None) -> datetime:
    """Naive UTC 'now'; callers pass a fixed instant to pin the clock."""
    if now is None:
        now = datetime.now(timezone.utc)
    return to_utc(now)


def parse_instant(value) -> datetime:
    """Accept a datetime, a date or an ISO-8601 string ("...Z" included)."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    return to_utc(value)


class ExpenseService:
    @staticmethod
    def validate(data: dict, now: datetime) -> dict:
        """Clean user input or raise ValidationError with a field -> message map."""
        errors = {}
        clean = {}

        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors["name"] = "Name is required"
        else:
            clean["name"] = name.strip()

        raw_amount = data.get("amount")
        if raw_amount is None or raw_amount == "":
            errors["amount"] = "Amount is required"
        else:
            try:
                if isinstance(raw_amount, bool):
                    raise InvalidOperation
                amount = Decimal(str(raw_amount))
                if not amount.is_finite():
                    raise InvalidOperation
            except InvalidOperation:
                errors["amount"] = "Amount must be a number"
            else:
                if amount < MIN_AMOUNT:
                    errors["amount"] = "Amount must be at least 0.01"
                elif amount != amount.quantize(MIN_AMOUNT):
                    errors["amount"] = "Amount must have at most 2 decimal places"
                else:
                    clean["amount"] = amount.quantize(MIN_AMOUNT)

        category = data.get("category")
        if not isinstance(category, str) or not category.strip():
            errors["category"] = "Category is required"
        elif category.strip().lower() not in CATEGORIES:
            errors["category"] = f"Category must be one of: {', '.join(CATEGORIES)}"
        else:
            clean["category"] = category.strip().lower()

        raw_date = data.get("date")
        if raw_date is None or raw_date == "":
            clean["date"] = now
        else:
            try:
                clean["date"] = parse_instant(raw_date)
            except (TypeError, ValueError):
                errors["date"] = "Date must be an ISO-8601 date or date-time"

        if errors:
            raise ValidationError(details=errors)
        return clean

    @staticmethod
    def record_expense(db: Session, user_id: int, data: dict, now: datetime | None = None) -> Expense:
        """Validate, stamp bucket labels from the occurrence date, and persist."""
        now = resolve_now(now)
        fields = ExpenseService.validate(data, now)
        buckets = compute_buckets(fields["date"])

        expense = Expense(
            user_id=user_id,
            name=fields["name"],
            amount=fields["amount"],
            category=fields["category"],
            date=fields["date"],
            week=buckets.week_label,
            month=buckets.month_name,
            year=buckets.year,
            bucket_version=BUCKETING_VERSION,
            created_at=now,
        )
        with store_guard(db, "record_expense"):
            db.add(expense)
            db.commit()
            db.refresh(expense)
        logger.info(f"Recorded expense {expense.id} for user {user_id} in {expense.week}")
        return expense

    @staticmethod
    def owned(db: Session, user_id: int) -> Query:
        return db.query(Expense).filter(Expense.user_id == user_id)

    @staticmethod
    def newest_first(query: Query) -> Query:
        return query.order_by(Expense.date.desc(), Expense.created_at.desc())

    @staticmethod
    def current_month(db: Session, user_id: int, now: datetime | None = None) -> Query:
        buckets = compute_buckets(resolve_now(now))
        return ExpenseService.owned(db, user_id).filter(
            Expense.month == buckets.month_name,
            Expense.year == buckets.year,
        )

    @staticmethod
    def list_all(db: Session, user_id: int) -> list[Expense]:
        with store_guard(db, "list_all"):
            return ExpenseService.newest_first(ExpenseService.owned(db, user_id)).all()

    @staticmethod
    def list_daily(db: Session, user_id: int, now: datetime | None = None) -> list[Expense]:
        """Drop records older than the daily window, then return what is left.

        The sweep is a permanent delete, not a filter.
        """
        cutoff = resolve_now(now) - timedelta(days=DAILY_WINDOW_DAYS)
        with store_guard(db, "list_daily"):
            swept = ExpenseService.owned(db, user_id).filter(
                Expense.date < cutoff
            ).delete(synchronize_session=False)
            db.commit()
            if swept:
                logger.info(f"Retention sweep removed {swept} expenses older than {cutoff.isoformat()} for user {user_id}")
            return ExpenseService.newest_first(
                ExpenseService.owned(db, user_id).filter(Expense.date >= cutoff)
            ).all()

    @staticmethod
    def list_weekly(db: Session, user_id: int, now: datetime | None = None) -> list[Expense]:
        week_label = compute_buckets(resolve_now(now)).week_label
        with store_guard(db, "list_weekly"):
            return ExpenseService.newest_first(
                ExpenseService.owned(db, user_id).filter(Expense.week == week_label)
            ).all()

    @staticmethod
    def list_monthly(db: Session, user_id: int, now: datetime | None = None) -> list[Expense]:
        with store_guard(db, "list_monthly"):
            return ExpenseService.newest_first(ExpenseService.current_month(db, user_id, now)).all()

    @staticmethod
    def delete_expense(db: Session, user_id: int, expense_id: str) -> dict:
        """Delete one of the caller's expenses; returns the deleted record as a dict."""
        with store_guard(db, "delete_expense"):
            expense = ExpenseService.owned(db, user_id).filter(Expense.id == expense_id).first()
            if expense is None:
                raise NotFound("Expense not found or you do not have permission to delete it")
            snapshot = expense.to_dict()
            db.delete(expense)
            db.commit()
        logger.info(f"Deleted expense {expense_id} for user {user_id}")
        return snapshot
