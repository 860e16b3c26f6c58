"""
Task repository.
"""
import uuid
from typing import Optional, List

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete

from crm_backend.models.task import Task
from crm_backend.repositories.base import BaseRepository
from crm_backend.repositories.lead_repo import assigned_lead_ids


def lead_visibility_clause(leads_visible: bool, lead_assignee: Optional[uuid.UUID]):
    """Filter that drops tasks on leads the caller cannot see. None when every task is visible."""
    if not leads_visible:
        return Task.lead_id.is_(None)
    if lead_assignee:
        return or_(Task.lead_id.is_(None), Task.lead_id.in_(assigned_lead_ids(lead_assignee)))
    return None


class TaskRepository(BaseRepository[Task]):
    """Repository for Task operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Task, session)

    async def list_for_subject(
        self,
        org_id: uuid.UUID,
        contact_id: Optional[uuid.UUID] = None,
        company_id: Optional[uuid.UUID] = None,
        lead_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        leads_visible: bool = True,
        lead_assignee: Optional[uuid.UUID] = None
    ) -> List[Task]:
        """
        List tasks, newest first, narrowed by whichever subject ids are given.
        Tasks on leads the caller cannot see are left out.
        """
        query = select(Task).where(Task.org_id == org_id)
        visibility = lead_visibility_clause(leads_visible, lead_assignee)
        if visibility is not None:
            query = query.where(visibility)
        if contact_id:
            query = query.where(Task.contact_id == contact_id)
        if company_id:
            query = query.where(Task.company_id == company_id)
        if lead_id:
            query = query.where(Task.lead_id == lead_id)
        if status:
            query = query.where(Task.status == status)
        result = await self.session.exec(query.order_by(Task.created_at.desc()))
        return result.all()

    async def delete_for_subject(
        self,
        contact_id: Optional[uuid.UUID] = None,
        company_id: Optional[uuid.UUID] = None,
        lead_id: Optional[uuid.UUID] = None
    ) -> None:
        """Remove the tasks of a record that is about to be deleted. Does not commit."""
        query = delete(Task)
        if contact_id:
            query = query.where(Task.contact_id == contact_id)
        elif company_id:
            query = query.where(Task.company_id == company_id)
        elif lead_id:
            query = query.where(Task.lead_id == lead_id)
        else:
            return
        await self.session.exec(query)
