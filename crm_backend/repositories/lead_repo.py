"""
Lead repository with search, comments, sources and pipeline stats.
"""
import uuid
from typing import Optional, List, Dict

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, update, delete

from crm_backend.models.lead import Lead, LeadComment, LeadSource, CLOSED_STAGES
from crm_backend.repositories.base import BaseRepository
from crm_backend.schemas.lead import LeadFilter


def assigned_lead_ids(assigned_to: uuid.UUID):
    """Subquery of the ids of leads assigned to one user."""
    return select(Lead.id).where(Lead.assigned_to == assigned_to)


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    async def search(
        self,
        org_id: uuid.UUID,
        filters: Optional[LeadFilter] = None,
        restrict_to_assignee: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """Search leads with filtering, newest first."""
        query = select(Lead).where(Lead.org_id == org_id)

        if restrict_to_assignee:
            query = query.where(Lead.assigned_to == restrict_to_assignee)

        if filters:
            if filters.stage:
                query = query.where(Lead.stage == filters.stage)
            if filters.priority:
                query = query.where(Lead.priority == filters.priority)
            if filters.source:
                query = query.where(Lead.source == filters.source)
            if filters.assigned_to:
                query = query.where(Lead.assigned_to == filters.assigned_to)
            if filters.company_id:
                query = query.where(Lead.company_id == filters.company_id)
            if filters.contact_id:
                query = query.where(Lead.contact_id == filters.contact_id)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Lead.assignment_name.ilike(search_term),
                        Lead.description.ilike(search_term),
                        Lead.service.ilike(search_term)
                    )
                )

        query = query.order_by(Lead.created_at.desc())
        return await self.paginate(query, page, limit)

    async def list_open(self, org_id: uuid.UUID, assigned_to: Optional[uuid.UUID] = None) -> List[Lead]:
        """Leads whose stage is still time-tracked."""
        closed = sorted(CLOSED_STAGES)
        query = select(Lead).where(
            Lead.org_id == org_id,
            Lead.stage.not_in(closed)
        )
        if assigned_to:
            query = query.where(Lead.assigned_to == assigned_to)
        result = await self.session.exec(query)
        return result.all()

    async def count_by_stage(self, org_id: uuid.UUID, assigned_to: Optional[uuid.UUID] = None) -> Dict[str, int]:
        query = select(Lead.stage, func.count()).where(Lead.org_id == org_id)
        if assigned_to:
            query = query.where(Lead.assigned_to == assigned_to)
        result = await self.session.exec(query.group_by(Lead.stage))
        return {stage: count for stage, count in result.all()}

    async def unlink_company(self, company_id: uuid.UUID) -> None:
        """Detach leads from a company that is about to be deleted. Does not commit."""
        await self.session.exec(
            update(Lead).where(Lead.company_id == company_id).values(company_id=None)
        )


class LeadCommentRepository(BaseRepository[LeadComment]):
    """Repository for lead comments."""

    def __init__(self, session: AsyncSession):
        super().__init__(LeadComment, session)

    async def list_for_lead(self, lead_id: uuid.UUID) -> List[LeadComment]:
        query = select(LeadComment).where(
            LeadComment.lead_id == lead_id
        ).order_by(LeadComment.created_at.desc())
        result = await self.session.exec(query)
        return result.all()

    async def delete_for_lead(self, lead_id: uuid.UUID) -> None:
        await self.session.exec(delete(LeadComment).where(LeadComment.lead_id == lead_id))


class LeadSourceRepository(BaseRepository[LeadSource]):
    """Repository for the per-tenant lead source list."""

    def __init__(self, session: AsyncSession):
        super().__init__(LeadSource, session)

    async def list_for_org(self, org_id: uuid.UUID) -> List[LeadSource]:
        query = select(LeadSource).where(
            LeadSource.org_id == org_id
        ).order_by(LeadSource.created_at, LeadSource.name)
        result = await self.session.exec(query)
        return result.all()

    async def get_by_name(self, org_id: uuid.UUID, name: str) -> Optional[LeadSource]:
        query = select(LeadSource).where(
            LeadSource.org_id == org_id,
            LeadSource.name == name
        )
        result = await self.session.exec(query)
        return result.first()

    async def bulk_create(self, org_id: uuid.UUID, names: List[str]) -> List[LeadSource]:
        sources = [LeadSource(org_id=org_id, name=name) for name in names]
        for source in sources:
            self.session.add(source)
        await self.session.commit()
        for source in sources:
            await self.session.refresh(source)
        return sources
