"""
Company model - organizations that contacts and leads belong to.
"""
import uuid
from datetime import date, datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

from crm_backend.models.base import AwareDateTime, utcnow


class Company(SQLModel, table=True):
    """
    Company entity.
    `name` is the resolution key: exact, case-sensitive match within a tenant.
    """
    __table_args__ = (
        UniqueConstraint("org_id", "name", name="uq_company_org_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    display_id: str = Field(index=True)

    # Basic info
    name: str = Field(index=True)
    type: Optional[str] = None
    registration_number: Optional[str] = Field(default=None, index=True)
    incorporation_date: Optional[date] = None

    # Contact info
    phone: Optional[str] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, index=True)
    website: Optional[str] = None

    # Address
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    description: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
