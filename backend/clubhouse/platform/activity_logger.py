"""
Activity logging for staff-visible audit trails.

Entries are append-only. A failure to persist an entry propagates to the
caller; the surrounding unit of work decides whether to roll back.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from clubhouse.models.activity_log import ActivityLog
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import ValidationError

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    actor: ActorContext,
    action: str,
    description: Optional[str] = None,
    subject=None,
) -> ActivityLog:
    """
    Record an activity log entry.

    Args:
        db: Database session (flushed, not committed)
        actor: Acting user and client address
        action: Short action identifier, e.g. "tournament_join"
        description: Human-readable description
        subject: Optional model instance the action was performed on

    Returns:
        The new ActivityLog row

    Raises:
        ValidationError: If action is empty
    """
    if not action or not action.strip():
        raise ValidationError("Activity action is required")

    entry = ActivityLog(
        user_id=actor.user_id,
        action=action,
        description=description,
        subject_type=type(subject).__name__ if subject is not None else None,
        subject_id=str(subject.id) if subject is not None else None,
        ip_address=actor.ip_address,
    )
    db.add(entry)
    db.flush()

    logger.info(
        "Activity logged",
        extra={
            "action": action,
            "user_id": actor.user_id,
            "subject_type": entry.subject_type,
            "subject_id": entry.subject_id,
        },
    )
    return entry
