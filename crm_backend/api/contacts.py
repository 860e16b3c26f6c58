"""
Contacts API routes.
"""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.contact_service import ContactService
from crm_backend.schemas.contact import ContactPayload, ContactResponse
from crm_backend.schemas.company import TagIdsRequest
from crm_backend.core.context import RequestContext
from crm_backend.core.pagination import PaginatedResponse
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.api.deps import require_permission

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.get("/", response_model=PaginatedResponse[ContactResponse])
async def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    company_id: Optional[uuid.UUID] = None,
    ctx: RequestContext = Depends(require_permission(Modules.CONTACTS)),
    session: AsyncSession = Depends(get_session)
):
    """List contacts. Email and phone numbers are masked without view_unmasked."""
    contact_service = ContactService(session)
    return await contact_service.list(ctx, search, company_id, page, limit)


@router.post("/", response_model=ContactResponse, status_code=201)
async def create_contact(
    payload: ContactPayload,
    ctx: RequestContext = Depends(require_permission(Modules.CONTACTS, PermissionActions.CREATE)),
    session: AsyncSession = Depends(get_session)
):
    """Create a contact, resolving or creating its company by name."""
    contact_service = ContactService(session)
    return await contact_service.save(ctx, payload)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.CONTACTS)),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return await contact_service.get(ctx, contact_id)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: uuid.UUID,
    payload: ContactPayload,
    ctx: RequestContext = Depends(require_permission(Modules.CONTACTS, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    """Replace a contact. Omitted optional fields are cleared."""
    contact_service = ContactService(session)
    return await contact_service.save(ctx, payload, contact_id)


@router.delete("/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.CONTACTS, PermissionActions.DELETE)),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    await contact_service.delete(ctx, contact_id)


@router.put("/{contact_id}/tags", response_model=ContactResponse)
async def set_contact_tags(
    contact_id: uuid.UUID,
    request: TagIdsRequest,
    ctx: RequestContext = Depends(require_permission(Modules.CONTACTS, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    contact_service = ContactService(session)
    return await contact_service.set_tags(ctx, contact_id, request.tag_ids)
