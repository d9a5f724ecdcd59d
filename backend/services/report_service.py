"""
report_service.py — Spending reports
Current-month breakdowns, the biggest expenses, and week / month history
rollups built on the bucket labels stored with every expense.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import TOP_SPENDING_LIMIT
from database import store_guard
from errors import InvalidArgument, NotFound
from models.expense import Expense
from services.expense_service import ExpenseService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PERIOD_KINDS = ("weekly", "monthly")


def _money(value) -> float:
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


class ReportService:
    @staticmethod
    def category_summary(db: Session, user_id: int, now: datetime | None = None) -> list[dict]:
        """Per-category totals for the current month with each category's share.

        Shares are percentages of the month's total, rounded to 2 places.
        An empty month yields an empty list.
        """
        with store_guard(db, "category_summary"):
            rows = (
                ExpenseService.current_month(db, user_id, now)
                .with_entities(Expense.category, func.sum(Expense.amount).label("total"))
                .group_by(Expense.category)
                .all()
            )

        totals = [(category, Decimal(str(total))) for category, total in rows]
        overall = sum((total for _, total in totals), Decimal("0"))
        totals.sort(key=lambda item: (-item[1], item[0]))

        summary = []
        for category, total in totals:
            if overall > 0:
                share = (total / overall * 100).quantize(CENT, rounding=ROUND_HALF_UP)
            else:
                share = Decimal("0")
            summary.append({
                "category": category,
                "totalSpent": _money(total),
                "percentage": float(share),
            })
        return summary

    @staticmethod
    def top_spending(db: Session, user_id: int, now: datetime | None = None, limit: int = TOP_SPENDING_LIMIT) -> list[Expense]:
        if limit < 1:
            raise InvalidArgument("limit must be a positive integer")
        with store_guard(db, "top_spending"):
            return (
                ExpenseService.current_month(db, user_id, now)
                .order_by(Expense.amount.desc(), Expense.created_at.asc(), Expense.id.asc())
                .limit(limit)
                .all()
            )

    @staticmethod
    def _grouped(db: Session, user_id: int, key) -> dict:
        with store_guard(db, "history"):
            expenses = ExpenseService.newest_first(ExpenseService.owned(db, user_id)).all()
        groups = {}
        for e in expenses:
            groups.setdefault(key(e), []).append(e)
        return groups

    @staticmethod
    def weekly_history(db: Session, user_id: int) -> list[dict]:
        """All expenses grouped by stored week label.

        Groups are ordered by the label string, descending. That is not
        chronological: "Week 9 (2025)" sorts above "Week 34 (2025)".
        """
        groups = ReportService._grouped(db, user_id, lambda e: e.week)
        return [
            {
                "weekId": week,
                "totalSpent": _money(sum(e.amount for e in members)),
                "expenses": [e.to_summary() for e in members],
            }
            for week, members in sorted(groups.items(), key=lambda item: item[0], reverse=True)
        ]

    @staticmethod
    def monthly_history(db: Session, user_id: int) -> list[dict]:
        """All expenses grouped by (month name, year).

        Ordered by year descending, then by month name descending as a
        string, so "September" comes before "January" within a year.
        """
        groups = ReportService._grouped(db, user_id, lambda e: (e.month, e.year))
        ordered = sorted(groups.items(), key=lambda item: (item[0][1], item[0][0]), reverse=True)
        return [
            {
                "monthId": f"{month} {year}",
                "totalSpent": _money(sum(e.amount for e in members)),
                "expenses": [e.to_summary() for e in members],
            }
            for (month, year), members in ordered
        ]

    @staticmethod
    def parse_month_id(period_id: str) -> tuple[str, int]:
        """Split "August 2025" into ("August", 2025)."""
        parts = period_id.split()
        if len(parts) != 2:
            raise InvalidArgument(f"Monthly period must look like 'August 2025', got '{period_id}'")
        month, year = parts
        try:
            return month, int(year)
        except ValueError:
            raise InvalidArgument(f"Monthly period must look like 'August 2025', got '{period_id}'")

    @staticmethod
    def delete_period(db: Session, user_id: int, kind: str, period_id: str) -> int:
        """Delete every expense filed under one week or month. Returns the count."""
        query = ExpenseService.owned(db, user_id)
        if kind == "weekly":
            query = query.filter(Expense.week == period_id)
        elif kind == "monthly":
            month, year = ReportService.parse_month_id(period_id)
            query = query.filter(Expense.month == month, Expense.year == year)
        else:
            raise InvalidArgument(f"Invalid history type '{kind}'; expected one of: {', '.join(PERIOD_KINDS)}")

        with store_guard(db, "delete_period"):
            deleted = query.delete(synchronize_session=False)
            db.commit()

        if deleted == 0:
            raise NotFound(f"No expenses found for {kind} ID: {period_id}")
        logger.info(f"Deleted {deleted} expenses for {kind} period '{period_id}' of user {user_id}")
        return deleted
