"""
Company repository with name lookup and duplicate detection.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from crm_backend.models.company import Company
from crm_backend.models.contact import Contact
from crm_backend.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """Repository for Company operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Company, session)

    async def get_by_name(self, org_id: uuid.UUID, name: str) -> Optional[Company]:
        """Exact, case-sensitive name match within the organization."""
        query = select(Company).where(
            Company.org_id == org_id,
            Company.name == name
        )
        result = await self.session.exec(query)
        return result.first()

    async def list_by_name(self, org_id: uuid.UUID, search: Optional[str] = None) -> List[Company]:
        query = select(Company).where(Company.org_id == org_id)
        if search:
            query = query.where(Company.name.ilike(f"%{search}%"))
        result = await self.session.exec(query.order_by(Company.name))
        return result.all()

    async def get_many(self, company_ids: List[uuid.UUID]) -> List[Company]:
        if not company_ids:
            return []
        result = await self.session.exec(select(Company).where(Company.id.in_(company_ids)))
        return result.all()

    async def find_duplicate_fields(
        self,
        org_id: uuid.UUID,
        candidates: dict,
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[str]:
        """
        Return "<Label> (<value>)" for each candidate field whose value is
        already used by another company in the organization.
        """
        duplicates = []
        for field, (label, value) in candidates.items():
            if not value:
                continue
            query = select(Company.id).where(
                Company.org_id == org_id,
                getattr(Company, field) == value
            )
            if exclude_id:
                query = query.where(Company.id != exclude_id)
            result = await self.session.exec(query)
            if result.first():
                duplicates.append(f"{label} ({value})")
        return duplicates

    async def count_contacts(self, company_id: uuid.UUID) -> int:
        """Number of contacts still linked to a company."""
        query = select(func.count()).select_from(Contact).where(Contact.company_id == company_id)
        result = await self.session.exec(query)
        return result.one()
