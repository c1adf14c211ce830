from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field

from app.common.schemas import ApiModel


class NotificationIn(ApiModel):
    target_type: str
    target_value: Optional[str] = None
    title: str = Field(min_length=1)
    message: str = Field(min_length=1, validation_alias=AliasChoices("message", "content"))


class SendResultOut(ApiModel):
    message: str
    notification_id: str
    recipients: int


class NotificationOut(ApiModel):
    id: str
    title: str
    content: str
    type: Optional[str] = None
    created_at: Optional[datetime] = None
    read: bool = False


class NotificationPage(ApiModel):
    notifications: List[NotificationOut]
    total: int
    total_pages: int
    current_page: int


class NotificationCount(ApiModel):
    total: int
    unread: int
