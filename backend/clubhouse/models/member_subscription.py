"""
Membership subscription model.

A subscription belongs to one user. Lifetime subscriptions have no end
date; every other plan ends on or after its start date.
"""

from sqlalchemy import (
    Column, Date, ForeignKey, Index, Numeric, String
)
from sqlalchemy.orm import relationship, validates

from clubhouse.db_base import Base
from clubhouse.models.base import TimestampMixin, generate_uuid

SUBSCRIPTION_TYPES = ("annual", "monthly", "lifetime")


class MemberSubscription(Base, TimestampMixin):
    __tablename__ = "member_subscriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Staff member who recorded the purchase, if any
    staff_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    type = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    payment_method = Column(String(20), nullable=False, default="cash")
    payment_reference = Column(String(64), nullable=True)
    payment_status = Column(String(20), nullable=False, default="paid")
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)

    user = relationship(
        "User", foreign_keys=[user_id], back_populates="subscriptions"
    )
    staff = relationship("User", foreign_keys=[staff_id])

    __table_args__ = (
        Index("ix_member_subscriptions_end_date", "end_date"),
    )

    @validates("type")
    def _validate_type(self, key, value):
        if value not in SUBSCRIPTION_TYPES:
            raise ValueError(f"Invalid subscription type: {value}")
        return value

    @validates("end_date")
    def _validate_end_date(self, key, value):
        if value is not None and self.start_date is not None and value < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return value

    @property
    def is_lifetime(self) -> bool:
        return self.end_date is None

    def __repr__(self) -> str:
        return (
            f"<MemberSubscription(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, end_date={self.end_date})>"
        )
