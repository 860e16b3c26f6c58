"""
Activity service - activity logging and the permission-filtered activity feed.
"""
import uuid
from typing import Optional, List, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import ForbiddenError, ValidationError
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.repositories.activity_repo import ActivityLogRepository
from crm_backend.repositories.lead_repo import LeadRepository
from crm_backend.repositories.task_repo import TaskRepository
from crm_backend.models.activity import ActivityLog

ENTITY_TYPES = ("contact", "company", "lead", "task", "user")

# Entity types readable with plain module access
MODULE_ENTITIES = (
    ("contact", Modules.CONTACTS),
    ("company", Modules.COMPANIES),
    ("task", Modules.TASKS),
)


class ActivityService:
    """Service for activity logging."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity_repo = ActivityLogRepository(session)

    async def log(
        self,
        org_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: Optional[uuid.UUID] = None,
        actor_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        meta_data: Optional[dict] = None
    ) -> ActivityLog:
        """Log an activity."""
        return await self.activity_repo.log(
            org_id=org_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            description=description,
            meta_data=meta_data
        )

    def visible_entity_types(self, ctx: RequestContext) -> Tuple[List[str], bool, Optional[uuid.UUID]]:
        """Entity types the caller may read, plus their lead visibility."""
        types = ["user"]
        for entity_type, module in MODULE_ENTITIES:
            if ctx.can(module, PermissionActions.ACCESS):
                types.append(entity_type)
        leads_visible, lead_assignee = ctx.lead_visibility()
        if leads_visible:
            types.append("lead")
        return types, leads_visible, lead_assignee

    async def get_recent(self, ctx: RequestContext, limit: int = 10) -> List[ActivityLog]:
        """Get recent activity for dashboard."""
        types, leads_visible, lead_assignee = self.visible_entity_types(ctx)
        return await self.activity_repo.get_recent(
            ctx.org_id,
            limit,
            entity_types=types,
            leads_visible=leads_visible,
            lead_assignee=lead_assignee
        )

    async def get_by_entity(
        self,
        ctx: RequestContext,
        entity_type: str,
        entity_id: uuid.UUID,
        limit: int = 50
    ) -> List[ActivityLog]:
        """Get activity for a specific entity the caller can see."""
        if entity_type not in ENTITY_TYPES:
            raise ValidationError(f"Invalid entity type. Must be one of: {list(ENTITY_TYPES)}", field="entity_type")

        types, leads_visible, lead_assignee = self.visible_entity_types(ctx)
        if entity_type not in types:
            raise ForbiddenError(f"You don't have permission to view {entity_type} activity")

        lead_id = None
        if entity_type == "lead":
            lead_id = entity_id
        elif entity_type == "task" and not (leads_visible and lead_assignee is None):
            task = await TaskRepository(self.session).get_in_org(ctx.org_id, entity_id)
            if not task:
                raise ForbiddenError("You can only view activity of tasks you can access")
            lead_id = task.lead_id
            if lead_id and not leads_visible:
                raise ForbiddenError("You don't have permission to view leads")

        if lead_id and lead_assignee:
            lead = await LeadRepository(self.session).get_in_org(ctx.org_id, lead_id)
            if not lead or lead.assigned_to != lead_assignee:
                raise ForbiddenError("You can only access leads assigned to you")

        return await self.activity_repo.get_by_entity(ctx.org_id, entity_type, entity_id, limit)
