"""
Lead source service - per-tenant list of lead sources.
"""
import logging
import uuid
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.exceptions import AlreadyExistsError, NotFoundError, ValidationError
from crm_backend.models.lead import LeadSource, DEFAULT_LEAD_SOURCES
from crm_backend.repositories.lead_repo import LeadSourceRepository

logger = logging.getLogger(__name__)


class LeadSourceService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.source_repo = LeadSourceRepository(session)

    async def list(self, org_id: uuid.UUID) -> List[LeadSource]:
        """List sources, seeding the defaults for a tenant that has none."""
        sources = await self.source_repo.list_for_org(org_id)
        if not sources:
            logger.info("Seeding default lead sources for org %s", org_id)
            sources = await self.source_repo.bulk_create(org_id, DEFAULT_LEAD_SOURCES)
        return sources

    async def create(self, org_id: uuid.UUID, name: str) -> LeadSource:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Source name is required")
        if await self.source_repo.get_by_name(org_id, name):
            raise AlreadyExistsError("Lead source", "name", name)
        try:
            return await self.source_repo.create({"org_id": org_id, "name": name})
        except IntegrityError as exc:
            # Lost a race with a concurrent insert of the same name
            await self.session.rollback()
            logger.warning("Duplicate lead source %r in org %s: %s", name, org_id, exc.orig)
            raise AlreadyExistsError("Lead source", "name", name) from exc

    async def delete(self, org_id: uuid.UUID, source_id: uuid.UUID) -> bool:
        source = await self.source_repo.get_in_org(org_id, source_id)
        if not source:
            raise NotFoundError("Lead source", str(source_id))
        return await self.source_repo.delete(source.id)
