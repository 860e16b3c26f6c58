"""
Notification model - in-app notices shown in the notification panel.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from crm_backend.models.base import AwareDateTime, utcnow


class Notification(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)

    title: str
    message: str
    type: str = Field(default="info", index=True)  # info, warning, lead_assigned, lead_updated

    # Entity the notice points at
    related_id: Optional[uuid.UUID] = None
    related_type: Optional[str] = None

    is_read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)


class NotificationTypes:
    INFO = "info"
    WARNING = "warning"
    LEAD_ASSIGNED = "lead_assigned"
    LEAD_UPDATED = "lead_updated"
