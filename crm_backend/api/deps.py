"""
API dependencies - shared across all routes.
"""
import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.config import settings
from crm_backend.core.context import RequestContext
from crm_backend.core.security import verify_token
from crm_backend.core.exceptions import raise_unauthorized, raise_forbidden
from crm_backend.core.permissions import PermissionActions, PermissionSet
from crm_backend.models.user import User
from crm_backend.repositories.user_repo import UserRepository, OrganizationMemberRepository


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    payload = verify_token(token)
    if not payload:
        raise_unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise_unauthorized("Could not validate credentials")

    user_repo = UserRepository(session)
    user = await user_repo.get(uuid.UUID(user_id))

    if not user:
        raise_unauthorized("User not found")

    if not user.is_active:
        raise_unauthorized("User account is deactivated")

    return user


async def get_request_context(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> RequestContext:
    """Resolve the caller's membership in their current organization into a permission set."""
    if not current_user.current_org_id:
        raise_forbidden("No active organization")

    member_repo = OrganizationMemberRepository(session)
    membership = await member_repo.get_membership(current_user.id, current_user.current_org_id)
    if not membership or not membership.is_active:
        raise_forbidden("You are not a member of this organization")

    return RequestContext(
        user_id=current_user.id,
        org_id=current_user.current_org_id,
        role=membership.role,
        permissions=PermissionSet.for_member(membership.role, membership.permissions)
    )


def require_permission(module: str, action: str = PermissionActions.ACCESS):
    """Dependency factory: the caller must hold `module.action`."""

    async def checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if not ctx.can(module, action):
            if ctx.can(module, PermissionActions.ACCESS):
                raise_forbidden(f"You don't have permission to {action.replace('_', ' ')} {module}")
            raise_forbidden(f"Access denied: {module} module disabled")
        return ctx

    return checker
