"""
Company resolver - turns a company name or id from a form into a company id.

Names are matched exactly (case-sensitive, after trimming) within the tenant.
An unknown name creates the company; an unknown id is a client error.
"""
import logging
import uuid
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.exceptions import CreationError, ReferenceNotFoundError
from crm_backend.core.identifiers import generate_display_id
from crm_backend.repositories.company_repo import CompanyRepository

logger = logging.getLogger(__name__)


def parse_uuid(value: Union[str, uuid.UUID, None], field: str, resource: str) -> Optional[uuid.UUID]:
    """Parse an id coming from a form; malformed ids count as unknown references."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        raise ReferenceNotFoundError(field, resource)


class CompanyResolver:
    """
    Resolve-or-create for companies.

    A created company is only flushed. The caller commits it together with
    the contact or lead that references it.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.company_repo = CompanyRepository(session)

    async def resolve(
        self,
        org_id: uuid.UUID,
        company_name: Optional[str] = None,
        company_id: Union[str, uuid.UUID, None] = None
    ) -> Optional[uuid.UUID]:
        name = company_name.strip() if company_name else ""
        if name:
            return await self._resolve_name(org_id, name)

        parsed_id = parse_uuid(company_id, "company_id", "company")
        if parsed_id is None:
            return None

        company = await self.company_repo.get_in_org(org_id, parsed_id)
        if not company:
            logger.info("Rejected unknown company_id %s for org %s", parsed_id, org_id)
            raise ReferenceNotFoundError("company_id", "company")
        return company.id

    async def _resolve_name(self, org_id: uuid.UUID, name: str) -> uuid.UUID:
        existing = await self.company_repo.get_by_name(org_id, name)
        if existing:
            logger.debug("Resolved company %r to %s", name, existing.id)
            return existing.id

        try:
            company = await self.company_repo.create(
                {"org_id": org_id, "name": name, "display_id": generate_display_id()},
                commit=False
            )
        except IntegrityError as exc:
            # Another writer created the same name first
            await self.session.rollback()
            logger.warning("Company %r insert conflicted in org %s, retrying lookup", name, org_id)
            existing = await self.company_repo.get_by_name(org_id, name)
            if existing:
                return existing.id
            raise CreationError("company", str(exc.orig)) from exc

        logger.info("Created company %r (%s) in org %s", name, company.id, org_id)
        return company.id
