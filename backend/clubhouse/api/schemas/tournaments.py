"""Tournament request models."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TournamentRequest(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    start_date: date
    end_date: date
    registration_fee: Decimal = Field(..., ge=0)
    max_participants: Optional[int] = Field(None, ge=1, description="Empty for unlimited")
    status: str = Field("open", description="open, ongoing or completed")


class TournamentRegisterRequest(BaseModel):
    payment_method: str = Field(..., description="cash or gcash")
