"""
Notification schemas.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel

from crm_backend.schemas.common import FormPayload


class NotificationCreate(FormPayload):
    title: Optional[str] = None
    message: Optional[str] = None
    type: Optional[str] = None
    related_id: Optional[uuid.UUID] = None
    related_type: Optional[str] = None


class NotificationResponse(BaseModel):
    id: uuid.UUID
    title: str
    message: str
    type: str
    related_id: Optional[uuid.UUID]
    related_type: Optional[str]
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int
