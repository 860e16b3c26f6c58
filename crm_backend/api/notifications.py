"""
Notifications API routes.
"""
import uuid
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.notification_service import NotificationService
from crm_backend.schemas.notification import (
    NotificationCreate, NotificationResponse, NotificationListResponse
)
from crm_backend.schemas.common import MessageResponse
from crm_backend.core.context import RequestContext
from crm_backend.api.deps import get_request_context

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread: bool = False,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    """Recent notifications with the unread count."""
    notification_service = NotificationService(session)
    return await notification_service.list(ctx.org_id, limit, unread)


@router.post("/", response_model=NotificationResponse, status_code=201)
async def create_notification(
    payload: NotificationCreate,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    return await notification_service.create(ctx.org_id, payload)


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    await notification_service.mark_all_read(ctx.org_id)
    return MessageResponse(message="All notifications marked as read")


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    return await notification_service.mark_read(ctx.org_id, notification_id)
