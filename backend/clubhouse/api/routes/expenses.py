"""Expense routes: daily summary, per-day detail and CRUD."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import require_roles
from clubhouse.api.schemas.expenses import ExpenseRequest
from clubhouse.database.session import get_db_session
from clubhouse.models.expense import Expense
from clubhouse.models.user import User
from clubhouse.platform.access import STAFF_ONLY
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.expense_service import ExpenseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _expense_dict(expense: Expense) -> dict:
    return {
        "id": expense.id,
        "date": expense.date.isoformat(),
        "item": expense.item,
        "amount": str(expense.amount),
        "created_at": expense.created_at.isoformat() if expense.created_at else None,
    }


@router.get("")
async def expenses_index(
    request: Request,
    on_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    """Summary by day, or the expenses of one day when a date is given."""
    service = ExpenseService(db_session)
    if on_date:
        expenses = service.expenses_on(on_date)
        props = {
            "mode": "detail",
            "date": on_date.isoformat(),
            "expenses": [_expense_dict(e) for e in expenses],
            "total": str(service.total_of(expenses)),
        }
    else:
        props = {
            "mode": "summary",
            "dailyExpenses": service.daily_summary(page).to_dict(lambda s: s.to_dict()),
        }
    return render_page("Expenses/Index", props, user=user, url=request.url.path)


@router.post("")
async def expenses_store(
    body: ExpenseRequest,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    expense = ExpenseService(db_session).create(body.date, body.item, body.amount)
    db_session.commit()
    return action_result("Expense added successfully.", expense=_expense_dict(expense))


@router.put("/{expense_id}")
async def expenses_update(
    expense_id: str,
    body: ExpenseRequest,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    expense = ExpenseService(db_session).update(expense_id, body.date, body.item, body.amount)
    db_session.commit()
    return action_result("Expense updated successfully.", expense=_expense_dict(expense))


@router.delete("/{expense_id}")
async def expenses_destroy(
    expense_id: str,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    ExpenseService(db_session).delete(expense_id)
    db_session.commit()
    return action_result("Expense deleted successfully.")
