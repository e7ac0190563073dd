"""Court booking request models."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class BookingCreateRequest(BaseModel):
    """
    New court booking.

    user_id and guest_name are only honoured for staff; everyone else
    always books for themselves.
    """

    schedule_type: str = Field(..., description="day or night")
    booking_date: date = Field(..., description="Date of play")
    games_count: int = Field(..., ge=1, le=4, description="Number of games, 1 to 4")
    payment_method: str = Field(..., description="cash or gcash")
    with_trainer: bool = False
    user_id: Optional[str] = Field(None, description="Booked user (staff only)")
    guest_name: Optional[str] = Field(None, max_length=255, description="Walk-in guest name (staff only)")
    category: Optional[str] = Field(None, description="single or double")
    priest_count: int = Field(0, ge=0)
    picker_selection: Optional[List[bool]] = Field(None, description="Ball picker flag per game")
