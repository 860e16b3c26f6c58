"""
Organization schemas for API requests/responses.
"""
import uuid
from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class InviteUserRequest(BaseModel):
    """
    Request to invite an existing user to the organization.
    Members without explicit permissions get the default member grants.
    """
    email: EmailStr
    role: str = Field(default="member", pattern="^(admin|member|viewer)$")
    permissions: Optional[Dict[str, List[str]]] = None


class UpdateMemberRequest(BaseModel):
    """Request to update a member's role and/or permission grants."""
    role: Optional[str] = Field(None, pattern="^(admin|member|viewer)$")
    permissions: Optional[Dict[str, List[str]]] = None
    is_active: Optional[bool] = None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrganizationWithRoleResponse(BaseModel):
    """Organization with user's role in it."""
    id: uuid.UUID
    name: str
    domain: Optional[str] = None
    role: str
    joined_at: datetime
    is_active: bool


class OrganizationListResponse(BaseModel):
    """List of user's organizations."""
    organizations: List[OrganizationWithRoleResponse]
    count: int
    current_org_id: Optional[uuid.UUID] = None


class MemberResponse(BaseModel):
    """Member of an organization."""
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    role: str
    permissions: Dict[str, List[str]]
    joined_at: datetime
    is_active: bool


class MemberListResponse(BaseModel):
    """List of organization members."""
    members: List[MemberResponse]
    count: int


class SwitchOrgResponse(BaseModel):
    """Response after switching organization."""
    message: str
    org_id: uuid.UUID
    access_token: str
    token_type: str = "bearer"
