"""
Companies API routes.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.company_service import CompanyService
from crm_backend.services.contact_service import ContactService
from crm_backend.schemas.company import CompanyPayload, CompanyResponse, TagIdsRequest
from crm_backend.schemas.contact import ContactResponse
from crm_backend.core.context import RequestContext
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.api.deps import require_permission

router = APIRouter(prefix="/api/companies", tags=["companies"])


@router.get("/", response_model=List[CompanyResponse])
async def list_companies(
    search: Optional[str] = None,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES)),
    session: AsyncSession = Depends(get_session)
):
    """List companies ordered by name."""
    company_service = CompanyService(session)
    return await company_service.list(ctx, search)


@router.post("/", response_model=CompanyResponse, status_code=201)
async def create_company(
    payload: CompanyPayload,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES, PermissionActions.CREATE)),
    session: AsyncSession = Depends(get_session)
):
    company_service = CompanyService(session)
    return await company_service.save(ctx, payload)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES)),
    session: AsyncSession = Depends(get_session)
):
    company_service = CompanyService(session)
    return await company_service.get(ctx, company_id)


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: uuid.UUID,
    payload: CompanyPayload,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    """Replace a company. Omitted optional fields are cleared."""
    company_service = CompanyService(session)
    return await company_service.save(ctx, payload, company_id)


@router.delete("/{company_id}", status_code=204)
async def delete_company(
    company_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES, PermissionActions.DELETE)),
    session: AsyncSession = Depends(get_session)
):
    """Delete a company. Rejected while contacts are still linked to it."""
    company_service = CompanyService(session)
    await company_service.delete(ctx, company_id)


@router.get("/{company_id}/contacts", response_model=List[ContactResponse])
async def list_company_contacts(
    company_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES)),
    session: AsyncSession = Depends(get_session)
):
    company_service = CompanyService(session)
    company = await company_service.get(ctx, company_id)
    contact_service = ContactService(session)
    return await contact_service.list_for_company(ctx, company["id"])


@router.put("/{company_id}/tags", response_model=CompanyResponse)
async def set_company_tags(
    company_id: uuid.UUID,
    request: TagIdsRequest,
    ctx: RequestContext = Depends(require_permission(Modules.COMPANIES, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    company_service = CompanyService(session)
    return await company_service.set_tags(ctx, company_id, request.tag_ids)
