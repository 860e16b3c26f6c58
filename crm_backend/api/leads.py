"""
Leads API routes.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.lead_service import LeadService
from crm_backend.schemas.lead import (
    LeadPayload, LeadPatch, LeadResponse, LeadFilter,
    LeadCommentCreate, LeadCommentResponse, LeadStatsResponse
)
from crm_backend.core.context import RequestContext
from crm_backend.core.pagination import PaginatedResponse
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.api.deps import require_permission

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.post("/", response_model=LeadResponse, status_code=201)
async def create_lead(
    payload: LeadPayload,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS, PermissionActions.CREATE)),
    session: AsyncSession = Depends(get_session)
):
    """Create a new lead, resolving or creating its company by name."""
    lead_service = LeadService(session)
    return await lead_service.save(ctx, payload)


@router.get("/", response_model=PaginatedResponse[LeadResponse])
async def list_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    stage: Optional[str] = None,
    priority: Optional[str] = None,
    source: Optional[str] = None,
    assigned_to: Optional[uuid.UUID] = None,
    company_id: Optional[uuid.UUID] = None,
    contact_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS)),
    session: AsyncSession = Depends(get_session)
):
    """
    List leads with filtering and pagination.
    Callers with only view_assigned see their own leads.
    """
    filters = LeadFilter(
        stage=stage,
        priority=priority,
        source=source,
        assigned_to=assigned_to,
        company_id=company_id,
        contact_id=contact_id,
        search=search
    )

    lead_service = LeadService(session)
    return await lead_service.list(ctx, filters, page, limit)


@router.get("/stats", response_model=LeadStatsResponse)
async def get_lead_stats(
    ctx: RequestContext = Depends(require_permission(Modules.LEADS, PermissionActions.VIEW_ALL)),
    session: AsyncSession = Depends(get_session)
):
    """Get lead statistics."""
    lead_service = LeadService(session)
    return await lead_service.stats(ctx.org_id)


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS)),
    session: AsyncSession = Depends(get_session)
):
    """Get a lead by ID."""
    lead_service = LeadService(session)
    return await lead_service.get(ctx, lead_id)


@router.put("/{lead_id}", response_model=LeadResponse)
async def replace_lead(
    lead_id: uuid.UUID,
    payload: LeadPayload,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    """Replace a lead. Changing the assignee also needs transfer_lead."""
    lead_service = LeadService(session)
    return await lead_service.save(ctx, payload, lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: uuid.UUID,
    patch: LeadPatch,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS)),
    session: AsyncSession = Depends(get_session)
):
    """Update only the given fields of a lead."""
    lead_service = LeadService(session)
    return await lead_service.patch(ctx, lead_id, patch)


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS, PermissionActions.DELETE)),
    session: AsyncSession = Depends(get_session)
):
    """Delete a lead."""
    lead_service = LeadService(session)
    await lead_service.delete(ctx, lead_id)


@router.get("/{lead_id}/comments", response_model=List[LeadCommentResponse])
async def list_comments(
    lead_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS)),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.list_comments(ctx, lead_id)


@router.post("/{lead_id}/comments", response_model=LeadCommentResponse, status_code=201)
async def add_comment(
    lead_id: uuid.UUID,
    request: LeadCommentCreate,
    ctx: RequestContext = Depends(require_permission(Modules.LEADS)),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.add_comment(ctx, lead_id, request.content)
