import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index
from database import Base

CATEGORIES = ("food", "travel", "entertainment", "bills", "shopping", "other")


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_user_week", "user_id", "week"),
        Index("ix_expenses_user_month_year", "user_id", "month", "year"),
    )

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(20), nullable=False)  # food/travel/entertainment/bills/shopping/other
    date = Column(DateTime, nullable=False, index=True)  # naive UTC
    # Frozen at creation; reporting and retention key off these, never off `date`.
    week = Column(String(30), nullable=False)  # e.g. "Week 34 (2025)"
    month = Column(String(20), nullable=False)  # e.g. "August"
    year = Column(Integer, nullable=False)
    bucket_version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount": float(self.amount),
            "category": self.category,
            "date": self.date.isoformat(),
            "week": self.week,
            "month": self.month,
            "year": self.year,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_summary(self) -> dict:
        """Projection used inside history groups."""
        return {
            "id": self.id,
            "name": self.name,
            "amount": float(self.amount),
            "category": self.category,
            "date": self.date.isoformat(),
        }
