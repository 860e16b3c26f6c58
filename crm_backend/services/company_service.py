"""
Company service - explicit company management.
Implicit creation from contact/lead forms goes through CompanyResolver.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import (
    CreationError,
    DeleteBlockedError,
    DuplicateRecordError,
    NotFoundError,
    ReferenceNotFoundError,
    ValidationError
)
from crm_backend.core.identifiers import generate_display_id
from crm_backend.models.activity import Actions
from crm_backend.models.company import Company
from crm_backend.models.tag import TagTypes
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.repositories.lead_repo import LeadRepository
from crm_backend.repositories.tag_repo import TagRepository
from crm_backend.repositories.task_repo import TaskRepository
from crm_backend.schemas.company import CompanyPayload
from crm_backend.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

COMPANY_FIELDS = (
    "type",
    "registration_number",
    "incorporation_date",
    "phone",
    "email",
    "website",
    "description",
    "address",
    "city",
    "state",
    "country",
    "postal_code",
)


class CompanyService:
    """Service for company operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.company_repo = CompanyRepository(session)
        self.lead_repo = LeadRepository(session)
        self.tag_repo = TagRepository(session)
        self.task_repo = TaskRepository(session)
        self.activity = ActivityService(session)

    async def save(
        self,
        ctx: RequestContext,
        payload: CompanyPayload,
        company_id: Optional[uuid.UUID] = None
    ) -> dict:
        """Create a company, or fully replace an existing one."""
        if not payload.name:
            raise ValidationError("Company name is required")
        name = payload.name.strip()

        existing_id = None
        if company_id:
            existing = await self.company_repo.get_in_org(ctx.org_id, company_id)
            if not existing:
                raise NotFoundError("Company", str(company_id))
            existing_id = existing.id

        duplicates = await self.company_repo.find_duplicate_fields(
            ctx.org_id,
            {
                "name": ("Name", name),
                "email": ("Email", payload.email),
                "phone": ("Phone", payload.phone),
                "registration_number": ("Registration Number", payload.registration_number),
            },
            exclude_id=existing_id
        )
        if duplicates:
            logger.info("Rejected duplicate company in org %s: %s", ctx.org_id, duplicates)
            raise DuplicateRecordError("Company", duplicates)

        data = {field: getattr(payload, field) for field in COMPANY_FIELDS}
        data["name"] = name

        try:
            if existing_id:
                company = await self.company_repo.update(existing_id, data, partial=False)
            else:
                data["org_id"] = ctx.org_id
                data["display_id"] = generate_display_id()
                company = await self.company_repo.create(data)
        except IntegrityError as exc:
            await self.session.rollback()
            logger.error("Company write failed in org %s: %s", ctx.org_id, exc.orig)
            raise CreationError("company", str(exc.orig)) from exc

        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.COMPANY_UPDATED if existing_id else Actions.COMPANY_CREATED,
            entity_type="company",
            entity_id=company.id,
            description=f"Company '{company.name}' {'updated' if existing_id else 'created'}"
        )

        rows = await self._serialize([company])
        return rows[0]

    async def get(self, ctx: RequestContext, company_id: uuid.UUID) -> dict:
        company = await self._get_company(ctx, company_id)
        rows = await self._serialize([company])
        return rows[0]

    async def list(self, ctx: RequestContext, search: Optional[str] = None) -> List[dict]:
        companies = await self.company_repo.list_by_name(ctx.org_id, search)
        return await self._serialize(companies)

    async def delete(self, ctx: RequestContext, company_id: uuid.UUID) -> bool:
        """Delete a company. Refused while contacts still reference it."""
        company = await self._get_company(ctx, company_id)
        linked = await self.company_repo.count_contacts(company.id)
        if linked:
            raise DeleteBlockedError(
                f"Cannot delete company: {linked} contact(s) are still linked to it",
                dependents=linked
            )

        name = company.name
        await self.lead_repo.unlink_company(company.id)
        await self.task_repo.delete_for_subject(company_id=company.id)
        await self.tag_repo.clear_company(company.id)
        await self.company_repo.delete(company.id)

        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.COMPANY_DELETED,
            entity_type="company",
            entity_id=company_id,
            description=f"Company '{name}' deleted"
        )
        return True

    async def set_tags(self, ctx: RequestContext, company_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> dict:
        company = await self._get_company(ctx, company_id)
        wanted = set(tag_ids)
        tags = await self.tag_repo.get_many(ctx.org_id, list(wanted), TagTypes.COMPANY)
        if len(tags) != len(wanted):
            raise ReferenceNotFoundError("tag_ids", "tag")

        await self.tag_repo.replace_company_tags(company.id, [tag.id for tag in tags])
        rows = await self._serialize([company])
        return rows[0]

    async def _get_company(self, ctx: RequestContext, company_id: uuid.UUID) -> Company:
        company = await self.company_repo.get_in_org(ctx.org_id, company_id)
        if not company:
            raise NotFoundError("Company", str(company_id))
        return company

    async def _serialize(self, companies: List[Company]) -> List[dict]:
        tags = await self.tag_repo.names_for_companies([c.id for c in companies])
        rows = []
        for company in companies:
            data = company.model_dump()
            data["tags"] = tags.get(company.id, [])
            rows.append(data)
        return rows
