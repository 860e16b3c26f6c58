"""
Tags API routes.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.tag_service import TagService
from crm_backend.schemas.tag import TagCreate, TagResponse
from crm_backend.core.context import RequestContext
from crm_backend.api.deps import get_request_context

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("/", response_model=List[TagResponse])
async def list_tags(
    type: Optional[str] = Query(None, description="contact_tag or company_tag"),
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    tag_service = TagService(session)
    return await tag_service.list(ctx, type)


@router.post("/", response_model=TagResponse, status_code=201)
async def create_tag(
    request: TagCreate,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    tag_service = TagService(session)
    return await tag_service.create(ctx, request.name, request.type)


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(
    tag_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session)
):
    tag_service = TagService(session)
    await tag_service.delete(ctx, tag_id)
