"""
Tasks API routes.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.task_service import TaskService
from crm_backend.schemas.task import TaskPayload, TaskResponse
from crm_backend.core.context import RequestContext
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.api.deps import require_permission

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    contact_id: Optional[uuid.UUID] = None,
    company_id: Optional[uuid.UUID] = None,
    lead_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    ctx: RequestContext = Depends(require_permission(Modules.TASKS)),
    session: AsyncSession = Depends(get_session)
):
    """List tasks, optionally for one contact, company or lead."""
    task_service = TaskService(session)
    return await task_service.list(ctx, contact_id, company_id, lead_id, status)


@router.post("/", response_model=TaskResponse, status_code=201)
async def create_task(
    payload: TaskPayload,
    ctx: RequestContext = Depends(require_permission(Modules.TASKS, PermissionActions.CREATE)),
    session: AsyncSession = Depends(get_session)
):
    task_service = TaskService(session)
    return await task_service.create(ctx, payload)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.TASKS)),
    session: AsyncSession = Depends(get_session)
):
    task_service = TaskService(session)
    return await task_service.get(ctx, task_id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    payload: TaskPayload,
    ctx: RequestContext = Depends(require_permission(Modules.TASKS, PermissionActions.EDIT)),
    session: AsyncSession = Depends(get_session)
):
    """Replace a task. mark_as="completed" completes it."""
    task_service = TaskService(session)
    return await task_service.update(ctx, task_id, payload)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    ctx: RequestContext = Depends(require_permission(Modules.TASKS, PermissionActions.DELETE)),
    session: AsyncSession = Depends(get_session)
):
    task_service = TaskService(session)
    await task_service.delete(ctx, task_id)
