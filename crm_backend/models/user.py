"""
User and Organization models.
Core entities for multi-tenant support with many-to-many relationship.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Dict

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column

from crm_backend.models.base import AwareDateTime, JSONType, utcnow


class Organization(SQLModel, table=True):
    """
    Organization/Tenant model.
    All CRM resources are scoped to an organization.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    domain: Optional[str] = Field(default=None, index=True)

    # Settings
    timezone: str = Field(default="UTC")

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)

    # Relationships
    members: List["OrganizationMember"] = Relationship(back_populates="organization")


class OrganizationMember(SQLModel, table=True):
    """
    Junction table for User-Organization many-to-many relationship.
    Carries the member's role and module permission grants.
    """
    __tablename__ = "organization_member"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    org_id: uuid.UUID = Field(foreign_key="organization.id", index=True)

    # Role in this organization
    role: str = Field(default="member")  # owner, admin, member, viewer

    # Module grants, e.g. {"leads": ["enable_disable", "view_assigned", "edit"]}
    permissions: Dict[str, List[str]] = Field(default={}, sa_column=Column(JSONType))

    # Status
    is_active: bool = Field(default=True)

    # Timestamps
    joined_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    invited_by: Optional[uuid.UUID] = None

    # Relationships
    user: "User" = Relationship(back_populates="memberships")
    organization: Organization = Relationship(back_populates="members")


class User(SQLModel, table=True):
    """
    User (agent) model with authentication and profile info.
    Users can belong to multiple organizations via OrganizationMember.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Current active organization (for API scoping)
    current_org_id: Optional[uuid.UUID] = Field(default=None, foreign_key="organization.id", index=True)

    # Auth
    email: str = Field(unique=True, index=True)
    password_hash: str

    # Profile
    full_name: Optional[str] = None
    username: Optional[str] = Field(default=None, index=True)

    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=AwareDateTime)
    last_login_at: Optional[datetime] = Field(default=None, sa_type=AwareDateTime)

    # Relationships
    memberships: List[OrganizationMember] = Relationship(back_populates="user")
