"""Court booking model."""

from sqlalchemy import (
    Boolean, Column, Date, ForeignKey, Index, Integer, JSON, Numeric, String
)
from sqlalchemy.orm import relationship

from clubhouse.db_base import Base
from clubhouse.models.base import TimestampMixin, generate_uuid

SCHEDULE_TYPES = ("day", "night")
BOOKING_CATEGORIES = ("single", "double")
PAYMENT_METHODS = ("cash", "gcash")


class CourtBooking(Base, TimestampMixin):
    """
    A booking of one or more games on a court for a single date.

    Guests have no user_id. user_type_at_booking snapshots the booker's
    role so reports stay correct after the role changes.
    """
    __tablename__ = "court_bookings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    staff_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    guest_name = Column(String(255), nullable=True)
    schedule_type = Column(String(10), nullable=False)
    category = Column(String(10), nullable=True)
    booking_date = Column(Date, nullable=False)
    games_count = Column(Integer, nullable=False, default=1)
    with_trainer = Column(Boolean, nullable=False, default=False)
    picker_selection = Column(JSON, nullable=True)
    priest_count = Column(Integer, nullable=False, default=0)
    user_type_at_booking = Column(String(20), nullable=True)
    payment_method = Column(String(20), nullable=False)
    payment_reference = Column(String(32), nullable=False, unique=True)
    payment_status = Column(String(20), nullable=False, default="pending")
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_applied = Column(Numeric(10, 2), nullable=False, default=0)

    user = relationship("User", foreign_keys=[user_id], back_populates="bookings")
    staff = relationship("User", foreign_keys=[staff_id])

    __table_args__ = (
        Index("ix_court_bookings_booking_date", "booking_date"),
        Index("ix_court_bookings_payment_status", "payment_status"),
    )

    @property
    def pickers_used(self) -> int:
        return sum(1 for value in (self.picker_selection or []) if value is True)

    def __repr__(self) -> str:
        return f"<CourtBooking(id={self.id}, ref={self.payment_reference}, date={self.booking_date})>"
