"""
Contact service - contact writer, listing with PII masking, tags.
"""
import logging
import uuid
from typing import Optional, List

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import (
    CreationError,
    DuplicateRecordError,
    NotFoundError,
    ReferenceNotFoundError,
    ValidationError
)
from crm_backend.core.identifiers import generate_display_id
from crm_backend.core.masking import mask_contact_fields
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.models.activity import Actions
from crm_backend.models.contact import Contact
from crm_backend.models.tag import TagTypes
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.repositories.contact_repo import ContactRepository
from crm_backend.repositories.tag_repo import TagRepository
from crm_backend.repositories.task_repo import TaskRepository
from crm_backend.schemas.contact import ContactPayload
from crm_backend.services.activity_service import ActivityService
from crm_backend.services.company_resolver import CompanyResolver

logger = logging.getLogger(__name__)

# Nullable columns written on every save (full replacement)
CONTACT_FIELDS = (
    "title",
    "email",
    "phone",
    "mobile",
    "description",
    "date_of_birth",
    "date_of_anniversary",
)


class ContactService:
    """Service for contact operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.company_repo = CompanyRepository(session)
        self.tag_repo = TagRepository(session)
        self.task_repo = TaskRepository(session)
        self.resolver = CompanyResolver(session)
        self.activity = ActivityService(session)

    async def save(
        self,
        ctx: RequestContext,
        payload: ContactPayload,
        contact_id: Optional[uuid.UUID] = None
    ) -> dict:
        """
        Create a contact, or fully replace an existing one.

        Required fields are checked before anything is written. The company
        is resolved (and created if needed) in the same transaction as the
        contact, so a failed write leaves neither behind.
        """
        if not payload.first_name or not payload.last_name:
            raise ValidationError("First name and last name are required")

        existing_id = None
        if contact_id:
            existing = await self.contact_repo.get_in_org(ctx.org_id, contact_id)
            if not existing:
                raise NotFoundError("Contact", str(contact_id))
            existing_id = existing.id
        else:
            duplicates = await self.contact_repo.find_duplicate_fields(
                ctx.org_id,
                {
                    "email": ("Email", payload.email),
                    "phone": ("Phone", payload.phone),
                    "mobile": ("Mobile", payload.mobile),
                }
            )
            if duplicates:
                logger.info("Rejected duplicate contact in org %s: %s", ctx.org_id, duplicates)
                raise DuplicateRecordError("Contact", duplicates)

        company_id = None
        if payload.company_name or payload.company_id:
            company_id = await self.resolver.resolve(
                ctx.org_id,
                company_name=payload.company_name,
                company_id=payload.company_id
            )

        data = {field: getattr(payload, field) for field in CONTACT_FIELDS}
        data["first_name"] = payload.first_name.strip()
        data["last_name"] = payload.last_name.strip()
        data["company_id"] = company_id

        try:
            if existing_id:
                contact = await self.contact_repo.update(existing_id, data, partial=False)
            else:
                data["org_id"] = ctx.org_id
                data["display_id"] = generate_display_id()
                contact = await self.contact_repo.create(data)
        except IntegrityError as exc:
            await self.session.rollback()
            logger.error("Contact write failed in org %s: %s", ctx.org_id, exc.orig)
            raise CreationError("contact", str(exc.orig)) from exc

        action = Actions.CONTACT_UPDATED if existing_id else Actions.CONTACT_CREATED
        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=action,
            entity_type="contact",
            entity_id=contact.id,
            description=f"Contact '{contact.first_name} {contact.last_name}' {'updated' if existing_id else 'created'}",
            meta_data={"company_id": str(company_id) if company_id else None}
        )

        rows = await self._serialize(ctx, [contact])
        return rows[0]

    async def get(self, ctx: RequestContext, contact_id: uuid.UUID) -> dict:
        contact = await self._get_contact(ctx, contact_id)
        rows = await self._serialize(ctx, [contact])
        return rows[0]

    async def list(
        self,
        ctx: RequestContext,
        search: Optional[str] = None,
        company_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """List contacts, masked unless the caller may see raw PII."""
        result = await self.contact_repo.search(ctx.org_id, search, company_id, page, limit)
        result["items"] = await self._serialize(ctx, result["items"])
        return result

    async def list_for_company(self, ctx: RequestContext, company_id: uuid.UUID) -> List[dict]:
        contacts = await self.contact_repo.list_by_company(ctx.org_id, company_id)
        return await self._serialize(ctx, contacts)

    async def delete(self, ctx: RequestContext, contact_id: uuid.UUID) -> bool:
        """Delete a contact; leads pointing at it are kept but unlinked."""
        contact = await self._get_contact(ctx, contact_id)
        name = f"{contact.first_name} {contact.last_name}"

        await self.contact_repo.unlink_leads(contact.id)
        await self.task_repo.delete_for_subject(contact_id=contact.id)
        await self.tag_repo.clear_contact(contact.id)
        await self.contact_repo.delete(contact.id)

        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.CONTACT_DELETED,
            entity_type="contact",
            entity_id=contact_id,
            description=f"Contact '{name}' deleted"
        )
        return True

    async def set_tags(self, ctx: RequestContext, contact_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> dict:
        """Replace the contact's tags with the given contact tags."""
        contact = await self._get_contact(ctx, contact_id)
        wanted = set(tag_ids)
        tags = await self.tag_repo.get_many(ctx.org_id, list(wanted), TagTypes.CONTACT)
        if len(tags) != len(wanted):
            raise ReferenceNotFoundError("tag_ids", "tag")

        await self.tag_repo.replace_contact_tags(contact.id, [tag.id for tag in tags])
        rows = await self._serialize(ctx, [contact])
        return rows[0]

    async def _get_contact(self, ctx: RequestContext, contact_id: uuid.UUID) -> Contact:
        contact = await self.contact_repo.get_in_org(ctx.org_id, contact_id)
        if not contact:
            raise NotFoundError("Contact", str(contact_id))
        return contact

    async def _serialize(self, ctx: RequestContext, contacts: List[Contact]) -> List[dict]:
        """Attach company and tag names; mask PII for callers without view_unmasked."""
        company_ids = list({c.company_id for c in contacts if c.company_id})
        companies = {c.id: c for c in await self.company_repo.get_many(company_ids)}
        tags = await self.tag_repo.names_for_contacts([c.id for c in contacts])
        unmasked = ctx.can(Modules.CONTACTS, PermissionActions.VIEW_UNMASKED)

        rows = []
        for contact in contacts:
            data = contact.model_dump()
            company = companies.get(contact.company_id)
            data["company_name"] = company.name if company else None
            data["company_display_id"] = company.display_id if company else None
            data["tags"] = tags.get(contact.id, [])
            rows.append(data if unmasked else mask_contact_fields(data))
        return rows
