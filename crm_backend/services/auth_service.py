"""
Authentication service - registration, login and the caller profile.
"""
import logging
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.config import settings
from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import AlreadyExistsError, UnauthorizedError
from crm_backend.core.security import get_password_hash, verify_password, create_access_token
from crm_backend.models.activity import Actions
from crm_backend.models.user import User
from crm_backend.repositories.user_repo import UserRepository
from crm_backend.services.activity_service import ActivityService

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.activity = ActivityService(session)

    async def register(
        self,
        email: str,
        password: str,
        org_name: str,
        full_name: Optional[str] = None,
        username: Optional[str] = None
    ) -> dict:
        """Register a new user together with a new organization they own."""
        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise AlreadyExistsError("User", "email", email)

        user, org, membership = await self.user_repo.create_with_org(
            email=email,
            password_hash=get_password_hash(password),
            org_name=org_name,
            full_name=full_name,
            username=username
        )
        logger.info("Registered user %s with organization %s", user.id, org.id)

        await self.activity.log(
            org_id=org.id,
            actor_id=user.id,
            action=Actions.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            description=f"User {email} registered"
        )

        return {
            "message": "User registered successfully",
            "user_id": user.id,
            "org_id": org.id
        }

    async def login(self, email: str, password: str) -> dict:
        """Authenticate a user and return a bearer token for their current organization."""
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise UnauthorizedError("Incorrect email or password")

        if not user.is_active:
            raise UnauthorizedError("User account is deactivated")

        access_token = create_access_token({
            "sub": user.email,
            "user_id": str(user.id),
            "org_id": str(user.current_org_id) if user.current_org_id else None
        })

        await self.user_repo.update_last_login(user.id)
        if user.current_org_id:
            await self.activity.log(
                org_id=user.current_org_id,
                actor_id=user.id,
                action=Actions.USER_LOGGED_IN,
                entity_type="user",
                entity_id=user.id
            )

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    @staticmethod
    def describe(user: User, ctx: RequestContext) -> dict:
        return {
            "id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "username": user.username,
            "org_id": ctx.org_id,
            "role": ctx.role,
            "permissions": ctx.permissions.to_grants()
        }
