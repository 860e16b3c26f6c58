"""
Task service - follow-up tasks on contacts, companies and leads.
"""
import uuid
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import ForbiddenError, NotFoundError, ReferenceNotFoundError, ValidationError
from crm_backend.models.activity import Actions
from crm_backend.models.task import Task, TaskHoldState, TaskPriority, TaskStatus
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.repositories.contact_repo import ContactRepository
from crm_backend.repositories.lead_repo import LeadRepository
from crm_backend.repositories.task_repo import TaskRepository
from crm_backend.schemas.task import TaskPayload
from crm_backend.services.activity_service import ActivityService

MARK_COMPLETED = "completed"


class TaskService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.task_repo = TaskRepository(session)
        self.contact_repo = ContactRepository(session)
        self.company_repo = CompanyRepository(session)
        self.lead_repo = LeadRepository(session)
        self.activity = ActivityService(session)

    async def _check_lead(self, ctx: RequestContext, lead_id: uuid.UUID) -> None:
        """Tasks on a lead follow the lead's own visibility."""
        visible, assignee = ctx.lead_visibility()
        if not visible:
            raise ForbiddenError("You don't have permission to view leads")
        if assignee:
            lead = await self.lead_repo.get_in_org(ctx.org_id, lead_id)
            if lead and lead.assigned_to != assignee:
                raise ForbiddenError("You can only access leads assigned to you")

    async def _validate(self, ctx: RequestContext, payload: TaskPayload) -> dict:
        """Check the payload and return the column values to store."""
        if not payload.title:
            raise ValidationError("Task title is required")
        if not (payload.contact_id or payload.company_id or payload.lead_id):
            raise ValidationError("A task must belong to a contact, company or lead")

        subjects = (
            ("contact_id", "contact", self.contact_repo),
            ("company_id", "company", self.company_repo),
            ("lead_id", "lead", self.lead_repo),
        )
        for field, resource, repo in subjects:
            value = getattr(payload, field)
            if value and not await repo.get_in_org(ctx.org_id, value):
                raise ReferenceNotFoundError(field, resource)
        if payload.lead_id:
            await self._check_lead(ctx, payload.lead_id)

        priority = payload.priority or TaskPriority.MEDIUM
        if priority not in TaskPriority.ALL:
            raise ValidationError(f"Invalid priority. Must be one of: {list(TaskPriority.ALL)}", field="priority")

        status = payload.status or TaskStatus.PENDING
        if payload.mark_as == MARK_COMPLETED:
            status = TaskStatus.COMPLETED
        if status not in TaskStatus.ALL:
            raise ValidationError(f"Invalid status. Must be one of: {list(TaskStatus.ALL)}", field="status")

        if payload.hold_state and payload.hold_state not in TaskHoldState.ALL:
            raise ValidationError(f"Invalid hold state. Must be one of: {list(TaskHoldState.ALL)}", field="hold_state")

        return {
            "title": payload.title.strip(),
            "description": payload.description,
            "contact_id": payload.contact_id,
            "company_id": payload.company_id,
            "lead_id": payload.lead_id,
            "due_date": payload.due_date,
            "priority": priority,
            "status": status,
            "is_critical": payload.is_critical,
            "amount": payload.amount,
            "hold_state": payload.hold_state,
        }

    async def create(self, ctx: RequestContext, payload: TaskPayload) -> Task:
        data = await self._validate(ctx, payload)
        data["org_id"] = ctx.org_id
        data["created_by"] = ctx.user_id
        task = await self.task_repo.create(data)

        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.TASK_CREATED,
            entity_type="task",
            entity_id=task.id,
            description=f"Task '{task.title}' created"
        )
        return task

    async def update(self, ctx: RequestContext, task_id: uuid.UUID, payload: TaskPayload) -> Task:
        """Fully replace a task's editable fields."""
        existing = await self.get(ctx, task_id)
        data = await self._validate(ctx, payload)
        task = await self.task_repo.update(existing.id, data, partial=False)

        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.TASK_UPDATED,
            entity_type="task",
            entity_id=task.id,
            description=f"Task '{task.title}' updated",
            meta_data={"status": task.status}
        )
        return task

    async def get(self, ctx: RequestContext, task_id: uuid.UUID) -> Task:
        task = await self.task_repo.get_in_org(ctx.org_id, task_id)
        if not task:
            raise NotFoundError("Task", str(task_id))
        if task.lead_id:
            await self._check_lead(ctx, task.lead_id)
        return task

    async def list(
        self,
        ctx: RequestContext,
        contact_id: Optional[uuid.UUID] = None,
        company_id: Optional[uuid.UUID] = None,
        lead_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None
    ) -> List[Task]:
        if lead_id:
            await self._check_lead(ctx, lead_id)
        visible, assignee = ctx.lead_visibility()
        return await self.task_repo.list_for_subject(
            ctx.org_id,
            contact_id,
            company_id,
            lead_id,
            status,
            leads_visible=visible,
            lead_assignee=assignee
        )

    async def delete(self, ctx: RequestContext, task_id: uuid.UUID) -> bool:
        task = await self.get(ctx, task_id)
        title = task.title
        await self.task_repo.delete(task.id)
        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.TASK_DELETED,
            entity_type="task",
            entity_id=task_id,
            description=f"Task '{title}' deleted"
        )
        return True
