"""
Activity log model - audit trail for all CRM writes.
Feeds the dashboard activity feed.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from crm_backend.models.base import AwareDateTime, JSONType, utcnow


class ActivityLog(SQLModel, table=True):
    """
    Activity log for tracking all significant actions.
    """
    __tablename__ = "activity_log"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    actor_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)

    # Action details
    action: str = Field(index=True)
    entity_type: str = Field(index=True)  # contact, company, lead, task, user
    entity_id: Optional[uuid.UUID] = None

    # Human-readable description
    description: Optional[str] = None

    # Additional metadata
    meta_data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))
    # Example: {"old_stage": "New", "new_stage": "Qualify"}

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)


# Action constants for consistency
class Actions:
    # Company actions
    COMPANY_CREATED = "company_created"
    COMPANY_UPDATED = "company_updated"
    COMPANY_DELETED = "company_deleted"

    # Contact actions
    CONTACT_CREATED = "contact_created"
    CONTACT_UPDATED = "contact_updated"
    CONTACT_DELETED = "contact_deleted"

    # Lead actions
    LEAD_CREATED = "lead_created"
    LEAD_UPDATED = "lead_updated"
    LEAD_DELETED = "lead_deleted"
    LEAD_ASSIGNED = "lead_assigned"
    LEAD_COMMENTED = "lead_commented"

    # Task actions
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"

    # User actions
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"
    MEMBER_INVITED = "member_invited"
    MEMBER_UPDATED = "member_updated"
