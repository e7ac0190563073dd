"""Read side of the activity log: filtered, newest-first listing."""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from clubhouse.config.settings import ACTIVITY_LOG_PAGE_SIZE
from clubhouse.models.activity_log import ActivityLog
from clubhouse.models.user import User
from clubhouse.services.pagination import Page, paginate


def activity_log_row(entry: ActivityLog) -> dict:
    return {
        "id": entry.id,
        "user": {
            "id": entry.user.id,
            "name": entry.user.name,
            "type": entry.user.role,
        } if entry.user else None,
        "action": entry.action,
        "description": entry.description,
        "subject_type": entry.subject_type,
        "subject_id": entry.subject_id,
        "ip_address": entry.ip_address,
        "created_at": entry.created_at.strftime("%Y-%m-%d %H:%M:%S"),
    }


class ActivityLogService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def list_entries(
        self,
        on_date: Optional[date] = None,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = ACTIVITY_LOG_PAGE_SIZE,
    ) -> Page:
        query = self.db.query(ActivityLog).outerjoin(User, ActivityLog.user_id == User.id)
        if on_date:
            start = datetime.combine(on_date, time.min)
            query = query.filter(
                ActivityLog.created_at >= start,
                ActivityLog.created_at < start + timedelta(days=1),
            )
        if user_id:
            query = query.filter(ActivityLog.user_id == user_id)
        if action:
            query = query.filter(ActivityLog.action == action)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    ActivityLog.description.ilike(pattern),
                    ActivityLog.action.ilike(pattern),
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )
        return paginate(query.order_by(ActivityLog.created_at.desc()), page, per_page)

    def distinct_actions(self) -> List[str]:
        rows = self.db.query(ActivityLog.action).distinct().order_by(ActivityLog.action).all()
        return [action for (action,) in rows]
