"""
Tag models - labels attached to contacts and companies.
"""
import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

from crm_backend.models.base import AwareDateTime, utcnow


class TagTypes:
    CONTACT = "contact_tag"
    COMPANY = "company_tag"

    ALL = (CONTACT, COMPANY)


class Tag(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("org_id", "type", "name", name="uq_tag_org_type_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)
    name: str = Field(index=True)
    type: str = Field(index=True)  # contact_tag, company_tag
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)


class ContactTagAssignment(SQLModel, table=True):
    __tablename__ = "contact_tag_assignment"

    contact_id: uuid.UUID = Field(foreign_key="contact.id", primary_key=True)
    tag_id: uuid.UUID = Field(foreign_key="tag.id", primary_key=True)


class CompanyTagAssignment(SQLModel, table=True):
    __tablename__ = "company_tag_assignment"

    company_id: uuid.UUID = Field(foreign_key="company.id", primary_key=True)
    tag_id: uuid.UUID = Field(foreign_key="tag.id", primary_key=True)
