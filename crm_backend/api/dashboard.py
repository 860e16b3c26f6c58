"""
Dashboard API routes.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.activity_service import ActivityService
from crm_backend.services.lead_service import LeadService
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.repositories.contact_repo import ContactRepository
from crm_backend.core.context import RequestContext
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.api.deps import get_request_context

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_dashboard_stats(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    """
    Get dashboard statistics.

    Figures for a module the caller cannot read are null. Lead figures cover
    only the caller's own leads when they may view assigned leads only.
    """
    org_id = ctx.org_id

    total_contacts = None
    if ctx.can(Modules.CONTACTS, PermissionActions.ACCESS):
        total_contacts = await ContactRepository(session).count(org_id)

    total_companies = None
    if ctx.can(Modules.COMPANIES, PermissionActions.ACCESS):
        total_companies = await CompanyRepository(session).count(org_id)

    # Lead stats, TAT computed over open leads
    lead_stats = {"total": None, "by_stage": None, "tat": None}
    leads_visible, assignee = ctx.lead_visibility()
    if leads_visible:
        lead_stats = await LeadService(session).stats(org_id, assigned_to=assignee)

    return {
        "total_contacts": total_contacts,
        "total_companies": total_companies,
        "total_leads": lead_stats["total"],
        "leads_by_stage": lead_stats["by_stage"],
        "tat": lead_stats["tat"]
    }


@router.get("/activity")
async def get_activity(
    limit: int = Query(10, ge=1, le=50),
    entity_type: Optional[str] = None,
    entity_id: Optional[uuid.UUID] = None,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    """
    Get recent activity, or the history of one record when entity_type and
    entity_id are given. Entries the caller could not read directly are left out.
    """
    activity_service = ActivityService(session)
    if entity_type and entity_id:
        activities = await activity_service.get_by_entity(ctx, entity_type, entity_id, limit)
    else:
        activities = await activity_service.get_recent(ctx, limit)
    return {"items": activities, "total": len(activities)}
