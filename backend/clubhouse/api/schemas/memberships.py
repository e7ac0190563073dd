"""Membership request models."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class MembershipPurchaseRequest(BaseModel):
    type: str = Field(..., description="annual, monthly or lifetime")
    payment_method: str = Field(..., description="cash or gcash")
    user_id: Optional[str] = Field(None, description="Member to enrol (required for staff)")


class MembershipUpdateRequest(BaseModel):
    type: str = Field(..., description="annual, monthly or lifetime")
    start_date: date
    end_date: Optional[date] = Field(None, description="Ignored for lifetime plans")
