"""
Lead models - sales opportunities, their comments and the tenant's lead sources.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

from crm_backend.models.base import AwareDateTime, utcnow


class LeadStage(str, Enum):
    NEW = "New"
    QUALIFY = "Qualify"
    PROPOSAL = "Proposal"
    REVIEW = "Review"
    COMPLETED = "Completed"
    WON = "WON"
    DROP = "DROP"
    EXPIRED = "Expired"


# Closed stages are not time-tracked
CLOSED_STAGES = frozenset({LeadStage.WON.value, LeadStage.DROP.value})


class LeadPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Lead(SQLModel, table=True):
    """
    Lead entity - a deal in the pipeline.
    Scoped to organization, optionally linked to a contact and a company.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)

    assignment_name: str = Field(index=True)
    contact_id: Optional[uuid.UUID] = Field(default=None, foreign_key="contact.id", index=True)
    company_id: Optional[uuid.UUID] = Field(default=None, foreign_key="company.id", index=True)

    # Pipeline
    stage: str = Field(default=LeadStage.NEW.value, index=True)
    priority: str = Field(default=LeadPriority.MEDIUM.value, index=True)
    service: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=2)

    # Follow-up timestamp, drives the TAT status
    closing_date: Optional[datetime] = Field(default=None, sa_type=AwareDateTime)

    source: Optional[str] = Field(default=None, index=True)
    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)
    description: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)


class LeadComment(SQLModel, table=True):
    """Free-text comment on a lead."""
    __tablename__ = "lead_comment"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    lead_id: uuid.UUID = Field(foreign_key="lead.id", index=True)
    author_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    content: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)


class LeadSource(SQLModel, table=True):
    """Per-tenant list of lead sources offered on the lead form."""
    __tablename__ = "lead_source"
    __table_args__ = (
        UniqueConstraint("org_id", "name", name="uq_lead_source_org_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    name: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)


DEFAULT_LEAD_SOURCES = [
    "Website",
    "Referral",
    "Social Media",
    "Cold Call",
    "Email Campaign",
    "Trade Show",
    "Partner",
]
