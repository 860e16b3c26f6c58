"""
Contact repository with search and duplicate detection.
"""
import uuid
from typing import Optional, List

from sqlmodel import select, or_
from sqlalchemy import update
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.models.contact import Contact
from crm_backend.models.lead import Lead
from crm_backend.repositories.base import BaseRepository


class ContactRepository(BaseRepository[Contact]):
    """Repository for Contact operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Contact, session)

    async def search(
        self,
        org_id: uuid.UUID,
        search: Optional[str] = None,
        company_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """Search contacts, ordered by first then last name."""
        query = select(Contact).where(Contact.org_id == org_id)

        if company_id:
            query = query.where(Contact.company_id == company_id)
        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    Contact.first_name.ilike(search_term),
                    Contact.last_name.ilike(search_term),
                    Contact.email.ilike(search_term),
                    Contact.phone.ilike(search_term),
                    Contact.mobile.ilike(search_term)
                )
            )

        query = query.order_by(Contact.first_name, Contact.last_name)
        return await self.paginate(query, page, limit)

    async def list_by_company(self, org_id: uuid.UUID, company_id: uuid.UUID) -> List[Contact]:
        query = select(Contact).where(
            Contact.org_id == org_id,
            Contact.company_id == company_id
        ).order_by(Contact.first_name, Contact.last_name)
        result = await self.session.exec(query)
        return result.all()

    async def get_many(self, contact_ids: List[uuid.UUID]) -> List[Contact]:
        if not contact_ids:
            return []
        result = await self.session.exec(select(Contact).where(Contact.id.in_(contact_ids)))
        return result.all()

    async def find_duplicate_fields(
        self,
        org_id: uuid.UUID,
        candidates: dict,
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[str]:
        """
        Return "<Label> (<value>)" for each candidate field whose value is
        already used by another contact in the organization.
        """
        duplicates = []
        for field, (label, value) in candidates.items():
            if not value:
                continue
            query = select(Contact.id).where(
                Contact.org_id == org_id,
                getattr(Contact, field) == value
            )
            if exclude_id:
                query = query.where(Contact.id != exclude_id)
            result = await self.session.exec(query)
            if result.first():
                duplicates.append(f"{label} ({value})")
        return duplicates

    async def unlink_leads(self, contact_id: uuid.UUID) -> None:
        """Detach leads from a contact that is about to be deleted."""
        await self.session.exec(
            update(Lead).where(Lead.contact_id == contact_id).values(contact_id=None)
        )
