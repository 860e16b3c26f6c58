"""
Tag repository: tag catalogue plus contact/company assignments.
"""
import uuid
from typing import Optional, List, Dict

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete

from crm_backend.models.tag import Tag, ContactTagAssignment, CompanyTagAssignment, TagTypes
from crm_backend.repositories.base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """Repository for Tag operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Tag, session)

    async def list_for_org(self, org_id: uuid.UUID, tag_type: Optional[str] = None) -> List[Tag]:
        query = select(Tag).where(Tag.org_id == org_id)
        if tag_type:
            query = query.where(Tag.type == tag_type)
        result = await self.session.exec(query.order_by(Tag.type, Tag.name))
        return result.all()

    async def get_by_name(self, org_id: uuid.UUID, name: str, tag_type: str) -> Optional[Tag]:
        query = select(Tag).where(
            Tag.org_id == org_id,
            Tag.name == name,
            Tag.type == tag_type
        )
        result = await self.session.exec(query)
        return result.first()

    async def get_many(self, org_id: uuid.UUID, tag_ids: List[uuid.UUID], tag_type: str) -> List[Tag]:
        if not tag_ids:
            return []
        query = select(Tag).where(
            Tag.org_id == org_id,
            Tag.type == tag_type,
            Tag.id.in_(tag_ids)
        )
        result = await self.session.exec(query)
        return result.all()

    async def replace_contact_tags(self, contact_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> None:
        """Replace the full tag set of a contact."""
        await self.session.exec(
            delete(ContactTagAssignment).where(ContactTagAssignment.contact_id == contact_id)
        )
        for tag_id in tag_ids:
            self.session.add(ContactTagAssignment(contact_id=contact_id, tag_id=tag_id))
        await self.session.commit()

    async def replace_company_tags(self, company_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> None:
        """Replace the full tag set of a company."""
        await self.session.exec(
            delete(CompanyTagAssignment).where(CompanyTagAssignment.company_id == company_id)
        )
        for tag_id in tag_ids:
            self.session.add(CompanyTagAssignment(company_id=company_id, tag_id=tag_id))
        await self.session.commit()

    async def names_for_contacts(self, contact_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[str]]:
        """Map contact id -> sorted tag names."""
        if not contact_ids:
            return {}
        query = select(ContactTagAssignment.contact_id, Tag.name).join(
            Tag, Tag.id == ContactTagAssignment.tag_id
        ).where(
            ContactTagAssignment.contact_id.in_(contact_ids),
            Tag.type == TagTypes.CONTACT
        ).order_by(Tag.name)
        result = await self.session.exec(query)
        names: Dict[uuid.UUID, List[str]] = {}
        for contact_id, name in result.all():
            names.setdefault(contact_id, []).append(name)
        return names

    async def names_for_companies(self, company_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[str]]:
        """Map company id -> sorted tag names."""
        if not company_ids:
            return {}
        query = select(CompanyTagAssignment.company_id, Tag.name).join(
            Tag, Tag.id == CompanyTagAssignment.tag_id
        ).where(
            CompanyTagAssignment.company_id.in_(company_ids),
            Tag.type == TagTypes.COMPANY
        ).order_by(Tag.name)
        result = await self.session.exec(query)
        names: Dict[uuid.UUID, List[str]] = {}
        for company_id, name in result.all():
            names.setdefault(company_id, []).append(name)
        return names

    async def clear_assignments(self, tag_id: uuid.UUID) -> None:
        """Drop every assignment of a tag before deleting it."""
        await self.session.exec(delete(ContactTagAssignment).where(ContactTagAssignment.tag_id == tag_id))
        await self.session.exec(delete(CompanyTagAssignment).where(CompanyTagAssignment.tag_id == tag_id))

    async def clear_contact(self, contact_id: uuid.UUID) -> None:
        await self.session.exec(delete(ContactTagAssignment).where(ContactTagAssignment.contact_id == contact_id))

    async def clear_company(self, company_id: uuid.UUID) -> None:
        await self.session.exec(delete(CompanyTagAssignment).where(CompanyTagAssignment.company_id == company_id))
