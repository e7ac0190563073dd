"""Expense request models."""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ExpenseRequest(BaseModel):
    date: datetime.date
    item: str = Field(..., max_length=255)
    amount: Decimal = Field(..., ge=0)
