"""
Organization API routes.
Handles multi-org operations: list, switch, manage members.
"""
import uuid
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.org_service import OrganizationService
from crm_backend.schemas.organization import (
    InviteUserRequest,
    UpdateMemberRequest,
    OrganizationListResponse,
    MemberListResponse,
    MemberResponse,
    SwitchOrgResponse
)
from crm_backend.api.deps import get_current_user, get_request_context
from crm_backend.core.context import RequestContext
from crm_backend.models.user import User

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


@router.get("/", response_model=OrganizationListResponse)
async def list_my_organizations(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    List all organizations the current user belongs to.
    """
    org_service = OrganizationService(session)
    orgs = await org_service.get_user_organizations(current_user.id)
    return {
        "organizations": orgs,
        "count": len(orgs),
        "current_org_id": current_user.current_org_id
    }


@router.post("/switch/{org_id}", response_model=SwitchOrgResponse)
async def switch_organization(
    org_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """
    Switch to a different organization.
    Returns a new access token with the new org_id.
    """
    org_service = OrganizationService(session)
    return await org_service.switch_organization(current_user, org_id)


@router.get("/{org_id}/members", response_model=MemberListResponse)
async def list_organization_members(
    org_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    """
    List all members of an organization.
    Requires user to be a member of the organization.
    """
    org_service = OrganizationService(session)
    members = await org_service.get_organization_members(ctx, org_id)
    return {
        "members": members,
        "count": len(members)
    }


@router.post("/{org_id}/invite", response_model=MemberResponse, status_code=201)
async def invite_user(
    org_id: uuid.UUID,
    request: InviteUserRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    """
    Invite an existing user to the organization.
    Requires admin or owner role.
    """
    org_service = OrganizationService(session)
    return await org_service.invite_user_to_org(
        ctx,
        org_id,
        invitee_email=request.email,
        role=request.role,
        permissions=request.permissions
    )


@router.patch("/{org_id}/members/{user_id}", response_model=MemberResponse)
async def update_member(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    request: UpdateMemberRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    """
    Update a member's role, permissions or active flag.
    Requires admin or owner role.
    """
    org_service = OrganizationService(session)
    return await org_service.update_member(
        ctx,
        org_id,
        user_id,
        role=request.role,
        permissions=request.permissions,
        is_active=request.is_active
    )
