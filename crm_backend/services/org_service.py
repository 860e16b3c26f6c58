"""
Organization service - memberships, roles and permission grants.
"""
import logging
import uuid
from typing import Optional, List, Dict

from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.security import create_access_token
from crm_backend.core.exceptions import (
    AlreadyExistsError,
    ForbiddenError,
    NotFoundError,
    ValidationError
)
from crm_backend.core.permissions import (
    DEFAULT_MEMBER_PERMISSIONS,
    FULL_ACCESS_ROLES,
    PermissionSet,
    validate_grants
)
from crm_backend.models.activity import Actions
from crm_backend.models.user import OrganizationMember, User
from crm_backend.repositories.user_repo import UserRepository, OrganizationMemberRepository
from crm_backend.services.activity_service import ActivityService

logger = logging.getLogger(__name__)


def _checked_grants(grants: Dict[str, List[str]]) -> Dict[str, List[str]]:
    try:
        return validate_grants(grants)
    except ValueError as exc:
        raise ValidationError(str(exc), field="permissions") from exc


def _member_dict(membership: OrganizationMember, user: User) -> dict:
    return {
        "id": membership.id,
        "user_id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "username": user.username,
        "role": membership.role,
        "permissions": PermissionSet.for_member(membership.role, membership.permissions).to_grants(),
        "joined_at": membership.joined_at,
        "is_active": membership.is_active
    }


class OrganizationService:
    """Service for organization management."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.member_repo = OrganizationMemberRepository(session)
        self.activity = ActivityService(session)

    @staticmethod
    def _require_admin(ctx: RequestContext, org_id: uuid.UUID, action: str):
        if org_id != ctx.org_id:
            raise ForbiddenError("You can only manage your current organization")
        if ctx.role not in FULL_ACCESS_ROLES:
            raise ForbiddenError(f"Only admins can {action}")

    async def get_user_organizations(self, user_id: uuid.UUID) -> List[dict]:
        """Get all organizations user belongs to."""
        rows = await self.member_repo.get_user_memberships(user_id)
        return [
            {
                "id": org.id,
                "name": org.name,
                "domain": org.domain,
                "role": membership.role,
                "joined_at": membership.joined_at,
                "is_active": membership.is_active
            }
            for membership, org in rows
        ]

    async def switch_organization(self, user: User, org_id: uuid.UUID) -> dict:
        """
        Switch the user's active organization.

        Returns:
            New access token with updated org_id
        """
        membership = await self.member_repo.get_membership(user.id, org_id)
        if not membership or not membership.is_active:
            raise ForbiddenError("You are not a member of this organization")

        await self.user_repo.update(user.id, {"current_org_id": org_id})
        token_data = {
            "sub": user.email,
            "user_id": str(user.id),
            "org_id": str(org_id)
        }
        return {
            "message": "Switched organization",
            "org_id": org_id,
            "access_token": create_access_token(token_data),
            "token_type": "bearer"
        }

    async def get_organization_members(self, ctx: RequestContext, org_id: uuid.UUID) -> List[dict]:
        if org_id != ctx.org_id:
            raise ForbiddenError("You are not a member of this organization")
        rows = await self.member_repo.get_org_members(org_id)
        return [_member_dict(membership, user) for membership, user in rows]

    async def invite_user_to_org(
        self,
        ctx: RequestContext,
        org_id: uuid.UUID,
        invitee_email: str,
        role: str = "member",
        permissions: Optional[Dict[str, List[str]]] = None
    ) -> dict:
        """
        Add an existing user to the organization.
        Without explicit permissions the member gets the default grants.
        """
        self._require_admin(ctx, org_id, "invite members")
        grants = _checked_grants(permissions) if permissions is not None else dict(DEFAULT_MEMBER_PERMISSIONS)

        invitee = await self.user_repo.get_by_email(invitee_email)
        if not invitee:
            raise NotFoundError("User")

        existing = await self.member_repo.get_membership(invitee.id, org_id)
        if existing and existing.is_active:
            raise AlreadyExistsError("Member", "email", invitee_email)

        if existing:
            membership = await self.member_repo.update(
                existing.id,
                {"is_active": True, "role": role, "permissions": grants}
            )
        else:
            membership = await self.member_repo.create({
                "user_id": invitee.id,
                "org_id": org_id,
                "role": role,
                "permissions": grants,
                "invited_by": ctx.user_id
            })
        logger.info("User %s joined org %s as %s", invitee.id, org_id, role)

        await self.activity.log(
            org_id=org_id,
            actor_id=ctx.user_id,
            action=Actions.MEMBER_INVITED,
            entity_type="user",
            entity_id=invitee.id,
            description=f"{invitee_email} invited as {role}"
        )
        return _member_dict(membership, invitee)

    async def update_member(
        self,
        ctx: RequestContext,
        org_id: uuid.UUID,
        target_user_id: uuid.UUID,
        role: Optional[str] = None,
        permissions: Optional[Dict[str, List[str]]] = None,
        is_active: Optional[bool] = None
    ) -> dict:
        """Update a member's role, grants or active flag."""
        self._require_admin(ctx, org_id, "update members")

        membership = await self.member_repo.get_membership(target_user_id, org_id)
        if not membership:
            raise NotFoundError("Membership")
        if membership.role == "owner":
            raise ForbiddenError("Cannot change the owner's membership")

        changes = {}
        if role is not None:
            changes["role"] = role
        if permissions is not None:
            changes["permissions"] = _checked_grants(permissions)
        if is_active is not None:
            changes["is_active"] = is_active
        if not changes:
            raise ValidationError("No fields to update")

        membership = await self.member_repo.update(membership.id, changes)
        user = await self.user_repo.get(target_user_id)

        await self.activity.log(
            org_id=org_id,
            actor_id=ctx.user_id,
            action=Actions.MEMBER_UPDATED,
            entity_type="user",
            entity_id=target_user_id,
            meta_data={"changes": sorted(changes)}
        )
        return _member_dict(membership, user)
