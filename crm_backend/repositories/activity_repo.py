"""
Activity log repository.
"""
import uuid
from typing import Optional, List

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.models.activity import ActivityLog
from crm_backend.models.task import Task
from crm_backend.repositories.base import BaseRepository
from crm_backend.repositories.lead_repo import assigned_lead_ids
from crm_backend.repositories.task_repo import lead_visibility_clause


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for ActivityLog operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ActivityLog, session)

    async def log(
        self,
        org_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: Optional[uuid.UUID] = None,
        actor_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        meta_data: Optional[dict] = None
    ) -> ActivityLog:
        """Create an activity log entry."""
        activity = ActivityLog(
            org_id=org_id,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            meta_data=meta_data or {}
        )
        self.session.add(activity)
        await self.session.commit()
        await self.session.refresh(activity)
        return activity

    async def get_recent(
        self,
        org_id: uuid.UUID,
        limit: int = 10,
        entity_types: Optional[List[str]] = None,
        leads_visible: bool = True,
        lead_assignee: Optional[uuid.UUID] = None
    ) -> List[ActivityLog]:
        """
        Get recent activity for an organization, limited to the given entity
        types. Lead and task entries follow the caller's lead visibility.
        """
        query = select(ActivityLog).where(ActivityLog.org_id == org_id)
        if entity_types is not None:
            query = query.where(ActivityLog.entity_type.in_(entity_types))
        if lead_assignee:
            query = query.where(or_(
                ActivityLog.entity_type != "lead",
                ActivityLog.entity_id.in_(assigned_lead_ids(lead_assignee))
            ))
        visible_tasks = lead_visibility_clause(leads_visible, lead_assignee)
        if visible_tasks is not None:
            query = query.where(or_(
                ActivityLog.entity_type != "task",
                ActivityLog.entity_id.in_(select(Task.id).where(visible_tasks))
            ))
        query = query.order_by(ActivityLog.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def get_by_entity(
        self,
        org_id: uuid.UUID,
        entity_type: str,
        entity_id: uuid.UUID,
        limit: int = 50
    ) -> List[ActivityLog]:
        """Get activity for a specific entity."""
        query = select(ActivityLog).where(
            ActivityLog.org_id == org_id,
            ActivityLog.entity_type == entity_type,
            ActivityLog.entity_id == entity_id
        ).order_by(ActivityLog.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()
