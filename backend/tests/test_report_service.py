from datetime import datetime, timezone

import pytest

from errors import InvalidArgument, NotFound
from models.expense import Expense
from services.report_service import ReportService
from tests.conftest import FIXED_NOW


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_category_summary_empty_month(db, user, add_expense):
    add_expense(user, utc(2025, 7, 10))
    assert ReportService.category_summary(db, user.id, now=FIXED_NOW) == []


def test_category_summary_totals_and_shares(db, user, other_user, add_expense):
    add_expense(user, utc(2025, 8, 2), amount=30, category="food")
    add_expense(user, utc(2025, 8, 3), amount=20, category="food")
    add_expense(user, utc(2025, 8, 4), amount=10, category="travel")
    add_expense(user, utc(2025, 7, 4), amount=500, category="bills")
    add_expense(other_user, utc(2025, 8, 4), amount=999, category="travel")

    summary = ReportService.category_summary(db, user.id, now=FIXED_NOW)

    assert summary == [
        {"category": "food", "totalSpent": 50.0, "percentage": 83.33},
        {"category": "travel", "totalSpent": 10.0, "percentage": 16.67},
    ]


def test_category_summary_shares_sum_to_hundred(db, user, add_expense):
    for category in ("food", "travel", "bills"):
        add_expense(user, utc(2025, 8, 5), amount=10, category=category)

    summary = ReportService.category_summary(db, user.id, now=FIXED_NOW)

    assert [s["percentage"] for s in summary] == [33.33, 33.33, 33.33]
    assert sum(s["percentage"] for s in summary) == pytest.approx(100, abs=0.02)


def test_top_spending(db, user, add_expense):
    for amount in range(1, 13):
        add_expense(user, utc(2025, 8, amount), amount=amount)
    add_expense(user, utc(2025, 7, 1), amount=1000)

    top = ReportService.top_spending(db, user.id, now=FIXED_NOW)
    assert [float(e.amount) for e in top] == [12, 11, 10, 9, 8, 7, 6, 5, 4, 3]

    top3 = ReportService.top_spending(db, user.id, now=FIXED_NOW, limit=3)
    assert [float(e.amount) for e in top3] == [12, 11, 10]


def test_top_spending_rejects_non_positive_limit(db, user):
    with pytest.raises(InvalidArgument):
        ReportService.top_spending(db, user.id, now=FIXED_NOW, limit=0)


def test_weekly_history_groups_by_label_in_string_order(db, user, add_expense):
    add_expense(user, utc(2025, 1, 2), amount=5, name="new year")
    add_expense(user, utc(2025, 2, 26), amount=7.25, name="late feb")
    add_expense(user, utc(2025, 8, 19), amount=2.5, name="a")
    add_expense(user, utc(2025, 8, 20), amount=2.5, name="b")

    history = ReportService.weekly_history(db, user.id)

    # String order, not calendar order: "Week 9" sorts above "Week 34".
    assert [h["weekId"] for h in history] == ["Week 9 (2025)", "Week 34 (2025)", "Week 1 (2025)"]
    week34 = history[1]
    assert week34["totalSpent"] == 5.0
    assert [e["name"] for e in week34["expenses"]] == ["b", "a"]
    assert set(week34["expenses"][0]) == {"id", "name", "amount", "category", "date"}


def test_monthly_history_orders_year_then_month_name(db, user, add_expense):
    add_expense(user, utc(2025, 1, 10), amount=1)
    add_expense(user, utc(2025, 9, 10), amount=2)
    add_expense(user, utc(2025, 8, 10), amount=3)
    add_expense(user, utc(2025, 8, 11), amount=4)
    add_expense(user, utc(2024, 12, 10), amount=5)

    history = ReportService.monthly_history(db, user.id)

    assert [h["monthId"] for h in history] == ["September 2025", "January 2025", "August 2025", "December 2024"]
    assert history[2]["totalSpent"] == 7.0
    assert len(history[2]["expenses"]) == 2


def test_history_is_empty_without_records(db, user):
    assert ReportService.weekly_history(db, user.id) == []
    assert ReportService.monthly_history(db, user.id) == []


def test_delete_weekly_period(db, user, other_user, add_expense):
    add_expense(user, utc(2025, 8, 18))
    add_expense(user, utc(2025, 8, 24))
    keep = add_expense(user, utc(2025, 8, 25))
    foreign = add_expense(other_user, utc(2025, 8, 19))

    assert ReportService.delete_period(db, user.id, "weekly", "Week 34 (2025)") == 2

    remaining = {e.id for e in db.query(Expense).all()}
    assert remaining == {keep.id, foreign.id}
    with pytest.raises(NotFound):
        ReportService.delete_period(db, user.id, "weekly", "Week 34 (2025)")


def test_delete_monthly_period(db, user, add_expense):
    add_expense(user, utc(2025, 8, 1))
    keep = add_expense(user, utc(2024, 8, 1))

    assert ReportService.delete_period(db, user.id, "monthly", "August 2025") == 1
    assert [e.id for e in db.query(Expense).all()] == [keep.id]


def test_delete_monthly_period_with_unknown_month_is_not_found(db, user, add_expense):
    add_expense(user, utc(2025, 8, 1))
    with pytest.raises(NotFound):
        ReportService.delete_period(db, user.id, "monthly", "Smarch 2025")


@pytest.mark.parametrize("kind, period_id", [
    ("daily", "Week 34 (2025)"),
    ("monthly", "August"),
    ("monthly", "August twenty"),
    ("monthly", "August 2025 extra"),
])
def test_delete_period_rejects_malformed_requests(db, user, add_expense, kind, period_id):
    add_expense(user, utc(2025, 8, 1))
    with pytest.raises(InvalidArgument):
        ReportService.delete_period(db, user.id, kind, period_id)
    assert db.query(Expense).count() == 1
