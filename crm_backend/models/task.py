"""
Task model - follow-up work items attached to a contact, company or lead.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field

from crm_backend.models.base import AwareDateTime, utcnow


class TaskStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    ALL = (PENDING, IN_PROGRESS, COMPLETED)


class TaskPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    ALL = (LOW, MEDIUM, HIGH)


class TaskHoldState:
    HOLD = "hold"
    DROPPED = "dropped"

    ALL = (HOLD, DROPPED)


class Task(SQLModel, table=True):
    """
    Task entity. Criticality, amount and hold state are columns of their own.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)

    # Subject (at least one is set)
    contact_id: Optional[uuid.UUID] = Field(default=None, foreign_key="contact.id", index=True)
    company_id: Optional[uuid.UUID] = Field(default=None, foreign_key="company.id", index=True)
    lead_id: Optional[uuid.UUID] = Field(default=None, foreign_key="lead.id", index=True)

    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(default=None, sa_type=AwareDateTime)

    priority: str = Field(default=TaskPriority.MEDIUM)
    status: str = Field(default=TaskStatus.PENDING, index=True)

    is_critical: bool = Field(default=False)
    amount: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=2)
    hold_state: Optional[str] = None  # hold, dropped

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
