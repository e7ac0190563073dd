"""Club expense entries."""

from sqlalchemy import Column, Date, Index, Numeric, String

from clubhouse.db_base import Base
from clubhouse.models.base import TimestampMixin, generate_uuid


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    date = Column(Date, nullable=False)
    item = Column(String(255), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        Index("ix_expenses_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, date={self.date}, amount={self.amount})>"
