"""
ORM models.

Importing this package registers every table on Base.metadata.
"""

from clubhouse.models.base import TimestampMixin, generate_uuid
from clubhouse.models.user import User
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.tournament import Tournament, TournamentRegistration
from clubhouse.models.expense import Expense
from clubhouse.models.notification import Notification
from clubhouse.models.activity_log import ActivityLog
from clubhouse.models.setting import Setting

__all__ = [
    "ActivityLog",
    "CourtBooking",
    "Expense",
    "MemberSubscription",
    "Notification",
    "Setting",
    "TimestampMixin",
    "Tournament",
    "TournamentRegistration",
    "User",
    "generate_uuid",
]
