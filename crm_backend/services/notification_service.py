"""
Notification service - the tenant's notification panel.
"""
import uuid

from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.exceptions import NotFoundError, ValidationError
from crm_backend.models.notification import Notification, NotificationTypes
from crm_backend.repositories.notification_repo import NotificationRepository
from crm_backend.schemas.notification import NotificationCreate


class NotificationService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notification_repo = NotificationRepository(session)

    async def list(self, org_id: uuid.UUID, limit: int = 20, unread_only: bool = False) -> dict:
        notifications = await self.notification_repo.get_recent(org_id, limit, unread_only)
        unread_count = await self.notification_repo.count_unread(org_id)
        return {"notifications": notifications, "unread_count": unread_count}

    async def create(self, org_id: uuid.UUID, payload: NotificationCreate) -> Notification:
        if not payload.title or not payload.message:
            raise ValidationError("Title and message are required")
        return await self.notification_repo.notify(
            org_id=org_id,
            title=payload.title,
            message=payload.message,
            type=payload.type or NotificationTypes.INFO,
            related_id=payload.related_id,
            related_type=payload.related_type
        )

    async def mark_read(self, org_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self.notification_repo.get_in_org(org_id, notification_id)
        if not notification:
            raise NotFoundError("Notification", str(notification_id))
        return await self.notification_repo.update(notification.id, {"is_read": True})

    async def mark_all_read(self, org_id: uuid.UUID) -> None:
        await self.notification_repo.mark_all_read(org_id)
