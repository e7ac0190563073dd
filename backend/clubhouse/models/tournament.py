"""Tournament and tournament registration models."""

from sqlalchemy import (
    Column, Date, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from clubhouse.db_base import Base
from clubhouse.models.base import TimestampMixin, generate_uuid

TOURNAMENT_STATUSES = ("open", "ongoing", "completed")


class Tournament(Base, TimestampMixin):
    __tablename__ = "tournaments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    registration_fee = Column(Numeric(10, 2), nullable=False, default=0)
    # None means unlimited
    max_participants = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="open")

    registrations = relationship(
        "TournamentRegistration",
        back_populates="tournament",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name={self.name}, status={self.status})>"


class TournamentRegistration(Base, TimestampMixin):
    __tablename__ = "tournament_registrations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tournament_id = Column(
        String(36),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    staff_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    payment_method = Column(String(20), nullable=False)
    payment_reference = Column(String(32), nullable=False, unique=True)
    payment_status = Column(String(20), nullable=False, default="unpaid")
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)

    tournament = relationship("Tournament", back_populates="registrations")
    user = relationship("User", foreign_keys=[user_id], back_populates="registrations")
    staff = relationship("User", foreign_keys=[staff_id])

    __table_args__ = (
        UniqueConstraint("tournament_id", "user_id", name="uq_tournament_registration_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<TournamentRegistration(id={self.id}, tournament_id={self.tournament_id}, "
            f"user_id={self.user_id}, status={self.payment_status})>"
        )
