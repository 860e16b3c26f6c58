"""
Contact model - people the tenant does business with.
"""
import uuid
from datetime import date, datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from crm_backend.models.base import AwareDateTime, utcnow


class Contact(SQLModel, table=True):
    """
    Contact entity, optionally linked to a Company.
    first_name and last_name are never empty once persisted.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    display_id: str = Field(index=True)
    company_id: Optional[uuid.UUID] = Field(default=None, foreign_key="company.id", index=True)

    # Basic info
    title: Optional[str] = None
    first_name: str = Field(index=True)
    last_name: str = Field(index=True)

    # Contact info
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = Field(default=None, index=True)
    mobile: Optional[str] = Field(default=None, index=True)

    description: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_of_anniversary: Optional[date] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
