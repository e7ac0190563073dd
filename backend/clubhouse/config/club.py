"""
Club pricing and fee configuration.

Court rates are fixed per user type. Fees that staff can change at runtime
live in the settings table and are seeded from DEFAULT_SETTINGS.
"""

from decimal import Decimal
from typing import Dict, Optional, Tuple

# (key, value, description)
DEFAULT_SETTINGS: Tuple[Tuple[str, str, str], ...] = (
    ("fee_membership_annual", "1000", "Annual membership fee"),
    ("fee_membership_monthly", "100", "Monthly membership fee"),
    ("fee_membership_lifetime", "5000", "Lifetime membership fee"),
    ("fee_court_day", "100", "Court fee (day)"),
    ("fee_court_night", "150", "Court fee (night)"),
    ("fee_trainer", "200", "Trainer fee per game"),
    ("fee_tournament_base", "500", "Base tournament registration fee"),
    ("discount_member_rate", "0.10", "Member discount rate"),
    ("fee_picker", "80", "Ball picker fee per game"),
)

MEMBERSHIP_FEE_KEYS = {
    "annual": "fee_membership_annual",
    "monthly": "fee_membership_monthly",
    "lifetime": "fee_membership_lifetime",
}

# Per-game court rates by user type at booking time
MEMBER_DAY_RATE = Decimal("75")
MEMBER_NIGHT_RATE = Decimal("85")
STUDENT_RATE = Decimal("45")
NON_MEMBER_RATE = Decimal("150")

MIN_GAMES_PER_BOOKING = 1
MAX_GAMES_PER_BOOKING = 4

# Hidden from the settings page; managed through its own upload flow
QR_CODE_SETTING_KEY = "gcash_qr_code"

_DEFAULTS_BY_KEY: Dict[str, str] = {key: value for key, value, _ in DEFAULT_SETTINGS}


def get_default_setting(key: str) -> Optional[str]:
    """Return the seeded default for a setting key, or None if unknown."""
    return _DEFAULTS_BY_KEY.get(key)
