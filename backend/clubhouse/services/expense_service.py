"""Expense tracking: per-day summaries and individual entries."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from clubhouse.models.expense import Expense
from clubhouse.platform.errors import NotFoundError, ValidationError
from clubhouse.services.pagination import Page

logger = logging.getLogger(__name__)

MAX_ITEM_LENGTH = 255


@dataclass
class DailyExpenseSummary:
    date: date
    count: int
    total: Decimal

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "count": self.count, "total": self.total}


def _validate(item: Optional[str], amount) -> Decimal:
    if not item or not item.strip():
        raise ValidationError("Item is required", {"field": "item"})
    if len(item) > MAX_ITEM_LENGTH:
        raise ValidationError("Item may not exceed 255 characters", {"field": "item"})
    if amount is None:
        raise ValidationError("Amount is required", {"field": "amount"})
    amount = Decimal(str(amount))
    if amount < 0:
        raise ValidationError("Amount cannot be negative", {"field": "amount"})
    return amount


class ExpenseService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def daily_summary(self, page: int = 1, per_page: int = 10) -> Page:
        """Expense count and total per date, newest date first."""
        page = max(1, page)
        grouped = (
            self.db.query(
                Expense.date,
                func.count(Expense.id),
                func.coalesce(func.sum(Expense.amount), 0),
            )
            .group_by(Expense.date)
        )
        total_days = self.db.query(func.count(func.distinct(Expense.date))).scalar() or 0
        rows = (
            grouped.order_by(Expense.date.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        items = [
            DailyExpenseSummary(date=day, count=count, total=Decimal(str(total)))
            for day, count, total in rows
        ]
        return Page(items=items, total=total_days, page=page, per_page=per_page)

    def expenses_on(self, day: date) -> List[Expense]:
        return (
            self.db.query(Expense)
            .filter(Expense.date == day)
            .order_by(Expense.created_at.desc())
            .all()
        )

    @staticmethod
    def total_of(expenses: List[Expense]) -> Decimal:
        return sum((Decimal(str(e.amount)) for e in expenses), Decimal("0"))

    def get_expense(self, expense_id: str) -> Expense:
        expense = self.db.get(Expense, expense_id)
        if expense is None:
            raise NotFoundError("Expense", expense_id)
        return expense

    def create(self, day: date, item: str, amount) -> Expense:
        amount = _validate(item, amount)
        expense = Expense(date=day, item=item.strip(), amount=amount)
        self.db.add(expense)
        self.db.flush()
        logger.info("Expense recorded", extra={"expense_id": expense.id, "amount": str(amount)})
        return expense

    def update(self, expense_id: str, day: date, item: str, amount) -> Expense:
        amount = _validate(item, amount)
        expense = self.get_expense(expense_id)
        expense.date = day
        expense.item = item.strip()
        expense.amount = amount
        self.db.flush()
        return expense

    def delete(self, expense_id: str) -> None:
        expense = self.get_expense(expense_id)
        self.db.delete(expense)
        self.db.flush()
        logger.info("Expense deleted", extra={"expense_id": expense_id})
