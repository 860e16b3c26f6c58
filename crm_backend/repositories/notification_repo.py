"""
Notification repository.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import update

from crm_backend.models.notification import Notification
from crm_backend.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def notify(
        self,
        org_id: uuid.UUID,
        title: str,
        message: str,
        type: str = "info",
        related_id: Optional[uuid.UUID] = None,
        related_type: Optional[str] = None
    ) -> Notification:
        """Create a notification entry."""
        notification = Notification(
            org_id=org_id,
            title=title,
            message=message,
            type=type,
            related_id=related_id,
            related_type=related_type
        )
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def get_recent(self, org_id: uuid.UUID, limit: int = 10, unread_only: bool = False) -> List[Notification]:
        query = select(Notification).where(Notification.org_id == org_id)
        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def count_unread(self, org_id: uuid.UUID) -> int:
        return await self.count(org_id, {"is_read": False})

    async def mark_all_read(self, org_id: uuid.UUID) -> None:
        await self.session.exec(
            update(Notification).where(
                Notification.org_id == org_id,
                Notification.is_read == False  # noqa: E712
            ).values(is_read=True)
        )
        await self.session.commit()
