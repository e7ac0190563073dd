"""
Pydantic schemas for the notifications API.

The notification payload is passed through unchanged in `data`.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    """Response model for a single notification."""

    id: str = Field(..., description="Unique notification identifier")
    data: dict[str, Any] = Field(default_factory=dict, description="Title, message, action_url and type")
    created_at: Optional[datetime] = Field(None, description="When the notification was created")
    read_at: Optional[datetime] = Field(None, description="When the notification was read")

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """One page of notifications."""

    data: List[NotificationResponse] = Field(..., description="Notifications, newest first")
    total: int = Field(..., description="Total count of matching notifications")
    current_page: int = Field(..., description="1-based page number")
    per_page: int = Field(..., description="Page size")
    last_page: int = Field(..., description="Number of the last page")
    unread_count: int = Field(..., description="Count of unread notifications")


class UnreadCountResponse(BaseModel):
    count: int = Field(..., description="Number of unread notifications")


class MarkReadResponse(BaseModel):
    success: bool = Field(..., description="Whether operation succeeded")


class MarkAllReadResponse(BaseModel):
    marked_count: int = Field(..., description="Number of notifications marked as read")
