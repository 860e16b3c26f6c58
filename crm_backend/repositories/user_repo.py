"""
User and Organization repositories.
"""
import uuid
from typing import Optional, List, Tuple

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.models.base import utcnow
from crm_backend.models.user import User, Organization, OrganizationMember
from crm_backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        query = select(User).where(User.email == email)
        result = await self.session.exec(query)
        return result.first()

    async def create_with_org(
        self,
        email: str,
        password_hash: str,
        org_name: str,
        full_name: Optional[str] = None,
        username: Optional[str] = None
    ) -> Tuple[User, Organization, OrganizationMember]:
        """Create user with a new organization and owner membership."""
        org = Organization(name=org_name)
        self.session.add(org)
        await self.session.flush()  # Get org.id without committing

        user = User(
            email=email,
            password_hash=password_hash,
            current_org_id=org.id,
            full_name=full_name,
            username=username
        )
        self.session.add(user)
        await self.session.flush()

        membership = OrganizationMember(
            user_id=user.id,
            org_id=org.id,
            role="owner"
        )
        self.session.add(membership)

        await self.session.commit()
        await self.session.refresh(org)
        await self.session.refresh(user)
        await self.session.refresh(membership)

        return user, org, membership

    async def update_last_login(self, user_id: uuid.UUID) -> None:
        """Update user's last login timestamp."""
        user = await self.get(user_id)
        if user:
            user.last_login_at = utcnow()
            self.session.add(user)
            await self.session.commit()

    async def get_many(self, user_ids: List[uuid.UUID]) -> List[User]:
        if not user_ids:
            return []
        result = await self.session.exec(select(User).where(User.id.in_(user_ids)))
        return result.all()


class OrganizationMemberRepository(BaseRepository[OrganizationMember]):
    """Repository for organization memberships."""

    def __init__(self, session: AsyncSession):
        super().__init__(OrganizationMember, session)

    async def get_membership(self, user_id: uuid.UUID, org_id: uuid.UUID) -> Optional[OrganizationMember]:
        """Get a user's membership in an organization."""
        query = select(OrganizationMember).where(
            OrganizationMember.user_id == user_id,
            OrganizationMember.org_id == org_id
        )
        result = await self.session.exec(query)
        return result.first()

    async def get_user_memberships(self, user_id: uuid.UUID) -> List[Tuple[OrganizationMember, Organization]]:
        """All active memberships of a user, with their organizations."""
        query = select(OrganizationMember, Organization).join(
            Organization, Organization.id == OrganizationMember.org_id
        ).where(
            OrganizationMember.user_id == user_id,
            OrganizationMember.is_active == True  # noqa: E712
        )
        result = await self.session.exec(query)
        return result.all()

    async def get_org_members(self, org_id: uuid.UUID) -> List[Tuple[OrganizationMember, User]]:
        """All members of an organization, with their users."""
        query = select(OrganizationMember, User).join(
            User, User.id == OrganizationMember.user_id
        ).where(OrganizationMember.org_id == org_id).order_by(OrganizationMember.joined_at)
        result = await self.session.exec(query)
        return result.all()
