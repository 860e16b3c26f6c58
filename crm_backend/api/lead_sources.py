"""
Lead source API routes.
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.lead_source_service import LeadSourceService
from crm_backend.schemas.lead import LeadSourceCreate, LeadSourceResponse
from crm_backend.core.context import RequestContext
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.api.deps import require_permission

router = APIRouter(prefix="/api/lead-sources", tags=["lead-sources"])


@router.get("/", response_model=List[LeadSourceResponse])
async def list_lead_sources(
    ctx: RequestContext = Depends(require_permission(Modules.LEADS)),
    session: AsyncSession = Depends(get_session)
):
    """List the organization's lead sources."""
    source_service = LeadSourceService(session)
    return await source_service.list(ctx.org_id)


@router.post("/", response_model=LeadSourceResponse, status_code=201)
async def create_lead_source(
    request: LeadSourceCreate,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    source_service = LeadSourceService(session)
    return await source_service.create(ctx.org_id, request.name)


@router.delete("/{source_id}", status_code=204)
async def delete_lead_source(
    source_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    source_service = LeadSourceService(session)
    await source_service.delete(ctx.org_id, source_id)
