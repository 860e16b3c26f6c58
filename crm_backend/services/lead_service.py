"""
Lead service - lead writer, visibility rules, TAT status, comments and
assignment notifications.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional, List, Union

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import (
    CreationError,
    ForbiddenError,
    NotFoundError,
    ReferenceNotFoundError,
    ValidationError
)
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.models.activity import Actions
from crm_backend.models.lead import Lead, LeadPriority, LeadStage
from crm_backend.models.notification import NotificationTypes
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.repositories.contact_repo import ContactRepository
from crm_backend.repositories.lead_repo import LeadRepository, LeadCommentRepository
from crm_backend.repositories.notification_repo import NotificationRepository
from crm_backend.repositories.task_repo import TaskRepository
from crm_backend.repositories.user_repo import UserRepository, OrganizationMemberRepository
from crm_backend.schemas.lead import LeadFilter, LeadPatch, LeadPayload
from crm_backend.services.activity_service import ActivityService
from crm_backend.services.company_resolver import CompanyResolver, parse_uuid
from crm_backend.services.lead_status import TatStatus, classify_lead_status

logger = logging.getLogger(__name__)

LEAD_STAGES = [stage.value for stage in LeadStage]
LEAD_PRIORITIES = [priority.value for priority in LeadPriority]

# Nullable columns copied as-is on a full replacement
LEAD_FIELDS = ("service", "amount", "closing_date", "source", "description")


def validate_stage(stage: Optional[str]) -> str:
    if not stage or not stage.strip():
        raise ValidationError("Stage is required")
    stage = stage.strip()
    if stage not in LEAD_STAGES:
        raise ValidationError(f"Invalid stage. Must be one of: {LEAD_STAGES}", field="stage")
    return stage


def validate_priority(priority: Optional[str]) -> str:
    if not priority:
        return LeadPriority.MEDIUM.value
    priority = priority.strip()
    if priority not in LEAD_PRIORITIES:
        raise ValidationError(f"Invalid priority. Must be one of: {LEAD_PRIORITIES}", field="priority")
    return priority


class LeadService:
    """Service for lead operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.comment_repo = LeadCommentRepository(session)
        self.contact_repo = ContactRepository(session)
        self.company_repo = CompanyRepository(session)
        self.user_repo = UserRepository(session)
        self.member_repo = OrganizationMemberRepository(session)
        self.notification_repo = NotificationRepository(session)
        self.task_repo = TaskRepository(session)
        self.resolver = CompanyResolver(session)
        self.activity = ActivityService(session)

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def visible_assignee(self, ctx: RequestContext) -> Optional[uuid.UUID]:
        """
        None when the caller sees every lead, the caller's id when only
        assigned leads are visible. Raises when neither is granted.
        """
        visible, assignee = ctx.lead_visibility()
        if visible:
            return assignee
        raise ForbiddenError("You don't have permission to view leads")

    async def _get_lead(self, ctx: RequestContext, lead_id: uuid.UUID) -> Lead:
        lead = await self.lead_repo.get_in_org(ctx.org_id, lead_id)
        if not lead:
            raise NotFoundError("Lead", str(lead_id))
        assignee = self.visible_assignee(ctx)
        if assignee and lead.assigned_to != assignee:
            raise ForbiddenError("You can only access leads assigned to you")
        return lead

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, ctx: RequestContext, lead_id: uuid.UUID, now: Optional[datetime] = None) -> dict:
        lead = await self._get_lead(ctx, lead_id)
        rows = await self._serialize([lead], now)
        return rows[0]

    async def list(
        self,
        ctx: RequestContext,
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20,
        now: Optional[datetime] = None
    ) -> dict:
        """List leads visible to the caller, each with its TAT status."""
        result = await self.lead_repo.search(
            ctx.org_id,
            filters,
            restrict_to_assignee=self.visible_assignee(ctx),
            page=page,
            limit=limit
        )
        result["items"] = await self._serialize(result["items"], now)
        return result

    async def stats(
        self,
        org_id: uuid.UUID,
        now: Optional[datetime] = None,
        assigned_to: Optional[uuid.UUID] = None
    ) -> dict:
        """Pipeline totals plus the TAT breakdown of open leads, optionally for one assignee."""
        by_stage = await self.lead_repo.count_by_stage(org_id, assigned_to)
        tat = {status: 0 for status in TatStatus.ALL}
        for lead in await self.lead_repo.list_open(org_id, assigned_to):
            tat[classify_lead_status(lead.stage, lead.closing_date, now)] += 1
        return {
            "total": sum(by_stage.values()),
            "by_stage": by_stage,
            "tat": tat
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(
        self,
        ctx: RequestContext,
        payload: LeadPayload,
        lead_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None
    ) -> dict:
        """
        Create a lead, or fully replace an existing one.

        assignment_name and stage are checked before anything is written.
        Changing the assignee of an existing lead also needs transfer_lead.
        """
        if not payload.assignment_name:
            raise ValidationError("Assignment name is required")
        stage = validate_stage(payload.stage)
        priority = validate_priority(payload.priority)

        current = None
        if lead_id:
            lead = await self._get_lead(ctx, lead_id)
            current = {
                "id": lead.id,
                "assignment_name": lead.assignment_name,
                "assigned_to": lead.assigned_to
            }

        assigned_to = await self._resolve_assignee(ctx, payload.assigned_to)
        if current and assigned_to != current["assigned_to"]:
            if not ctx.can(Modules.LEADS, PermissionActions.TRANSFER_LEAD):
                raise ForbiddenError("You don't have permission to transfer leads")

        contact_id = await self._resolve_contact(ctx, payload.contact_id)

        company_id = None
        if payload.company_name or payload.company_id:
            company_id = await self.resolver.resolve(
                ctx.org_id,
                company_name=payload.company_name,
                company_id=payload.company_id
            )

        data = {field: getattr(payload, field) for field in LEAD_FIELDS}
        data.update(
            assignment_name=payload.assignment_name.strip(),
            stage=stage,
            priority=priority,
            contact_id=contact_id,
            company_id=company_id,
            assigned_to=assigned_to
        )

        try:
            if current:
                lead = await self.lead_repo.update(current["id"], data, partial=False)
            else:
                data["org_id"] = ctx.org_id
                lead = await self.lead_repo.create(data)
        except IntegrityError as exc:
            await self.session.rollback()
            logger.error("Lead write failed in org %s: %s", ctx.org_id, exc.orig)
            raise CreationError("lead", str(exc.orig)) from exc

        if current:
            await self._notify_replaced(ctx, lead, current["assigned_to"])
        elif lead.assigned_to:
            agent = await self._agent_label(lead.assigned_to)
            await self._notify(
                ctx, lead, "New Lead Assigned",
                f'Lead "{lead.assignment_name}" has been assigned to {agent}',
                NotificationTypes.LEAD_ASSIGNED
            )

        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.LEAD_UPDATED if current else Actions.LEAD_CREATED,
            entity_type="lead",
            entity_id=lead.id,
            description=f"Lead '{lead.assignment_name}' {'updated' if current else 'created'}",
            meta_data={"stage": lead.stage, "company_id": str(company_id) if company_id else None}
        )

        rows = await self._serialize([lead], now)
        return rows[0]

    async def patch(
        self,
        ctx: RequestContext,
        lead_id: uuid.UUID,
        patch: LeadPatch,
        now: Optional[datetime] = None
    ) -> dict:
        """
        Apply only the fields present in the request.
        assigned_to needs transfer_lead, every other field needs edit.
        """
        fields = set(patch.model_fields_set)
        if not fields:
            raise ValidationError("No fields to update")
        if "assigned_to" in fields and not ctx.can(Modules.LEADS, PermissionActions.TRANSFER_LEAD):
            raise ForbiddenError("You don't have permission to transfer leads")
        if fields - {"assigned_to"} and not ctx.can(Modules.LEADS, PermissionActions.EDIT):
            raise ForbiddenError("You don't have permission to edit leads")

        lead = await self._get_lead(ctx, lead_id)
        before = {
            "id": lead.id,
            "assignment_name": lead.assignment_name,
            "assigned_to": lead.assigned_to,
            "stage": lead.stage,
            "priority": lead.priority
        }

        changes = {}
        for field in fields:
            value = getattr(patch, field)
            if field == "assignment_name":
                if not value:
                    raise ValidationError("Assignment name is required")
                changes[field] = value.strip()
            elif field == "stage":
                changes[field] = validate_stage(value)
            elif field == "priority":
                changes[field] = validate_priority(value)
            elif field == "assigned_to":
                changes[field] = await self._resolve_assignee(ctx, value)
            elif field == "contact_id":
                changes[field] = await self._resolve_contact(ctx, value)
            elif field == "company_id":
                changes[field] = await self.resolver.resolve(ctx.org_id, company_id=value)
            else:
                changes[field] = value

        try:
            lead = await self.lead_repo.update(before["id"], changes, partial=False)
        except IntegrityError as exc:
            await self.session.rollback()
            logger.error("Lead patch failed in org %s: %s", ctx.org_id, exc.orig)
            raise CreationError("lead", str(exc.orig)) from exc

        await self._notify_patched(ctx, lead, before, changes)
        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.LEAD_ASSIGNED if fields == {"assigned_to"} else Actions.LEAD_UPDATED,
            entity_type="lead",
            entity_id=lead.id,
            description=f"Lead '{lead.assignment_name}' updated",
            meta_data={"changes": sorted(fields)}
        )

        rows = await self._serialize([lead], now)
        return rows[0]

    async def delete(self, ctx: RequestContext, lead_id: uuid.UUID) -> bool:
        lead = await self._get_lead(ctx, lead_id)
        name = lead.assignment_name

        await self.comment_repo.delete_for_lead(lead.id)
        await self.task_repo.delete_for_subject(lead_id=lead.id)
        await self.lead_repo.delete(lead.id)

        await self.notification_repo.notify(
            org_id=ctx.org_id,
            title="Lead Deleted",
            message=f'Lead "{name}" has been deleted',
            type=NotificationTypes.WARNING,
            related_id=lead_id,
            related_type="lead"
        )
        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.LEAD_DELETED,
            entity_type="lead",
            entity_id=lead_id,
            description=f"Lead '{name}' deleted"
        )
        return True

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def list_comments(self, ctx: RequestContext, lead_id: uuid.UUID):
        lead = await self._get_lead(ctx, lead_id)
        return await self.comment_repo.list_for_lead(lead.id)

    async def add_comment(self, ctx: RequestContext, lead_id: uuid.UUID, content: Optional[str]):
        if not content or not content.strip():
            raise ValidationError("Comment content is required")
        lead = await self._get_lead(ctx, lead_id)

        comment = await self.comment_repo.create({
            "org_id": ctx.org_id,
            "lead_id": lead.id,
            "author_id": ctx.user_id,
            "content": content.strip()
        })
        await self.activity.log(
            org_id=ctx.org_id,
            actor_id=ctx.user_id,
            action=Actions.LEAD_COMMENTED,
            entity_type="lead",
            entity_id=lead.id
        )
        return comment

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_contact(
        self,
        ctx: RequestContext,
        contact_id: Union[str, uuid.UUID, None]
    ) -> Optional[uuid.UUID]:
        parsed = parse_uuid(contact_id, "contact_id", "contact")
        if parsed is None:
            return None
        contact = await self.contact_repo.get_in_org(ctx.org_id, parsed)
        if not contact:
            raise ReferenceNotFoundError("contact_id", "contact")
        return contact.id

    async def _resolve_assignee(
        self,
        ctx: RequestContext,
        user_id: Union[str, uuid.UUID, None]
    ) -> Optional[uuid.UUID]:
        """An assignee must be an active member of the organization."""
        parsed = parse_uuid(user_id, "assigned_to", "agent")
        if parsed is None:
            return None
        membership = await self.member_repo.get_membership(parsed, ctx.org_id)
        if not membership or not membership.is_active:
            raise ReferenceNotFoundError("assigned_to", "agent")
        return parsed

    async def _agent_label(self, user_id: uuid.UUID) -> str:
        user = await self.user_repo.get(user_id)
        if not user:
            return "an agent"
        return user.full_name or user.username or user.email

    async def _notify(self, ctx: RequestContext, lead: Lead, title: str, message: str, type: str):
        await self.notification_repo.notify(
            org_id=ctx.org_id,
            title=title,
            message=message,
            type=type,
            related_id=lead.id,
            related_type="lead"
        )

    async def _notify_replaced(self, ctx: RequestContext, lead: Lead, previous_assignee: Optional[uuid.UUID]):
        if lead.assigned_to and lead.assigned_to != previous_assignee:
            agent = await self._agent_label(lead.assigned_to)
            await self._notify(
                ctx, lead, "Lead Updated & Assigned",
                f'Lead "{lead.assignment_name}" has been updated and assigned to {agent}',
                NotificationTypes.LEAD_ASSIGNED
            )
        elif not lead.assigned_to and previous_assignee:
            await self._notify(
                ctx, lead, "Lead Updated & Unassigned",
                f'Lead "{lead.assignment_name}" has been updated and unassigned',
                NotificationTypes.LEAD_UPDATED
            )
        else:
            await self._notify(
                ctx, lead, "Lead Updated",
                f'Lead "{lead.assignment_name}" has been updated',
                NotificationTypes.LEAD_UPDATED
            )

    async def _notify_patched(self, ctx: RequestContext, lead: Lead, before: dict, changes: dict):
        name = before["assignment_name"]
        if "assigned_to" in changes:
            if changes["assigned_to"] and changes["assigned_to"] != before["assigned_to"]:
                agent = await self._agent_label(changes["assigned_to"])
                await self._notify(
                    ctx, lead, "Lead Assigned",
                    f'Lead "{name}" has been assigned to {agent}',
                    NotificationTypes.LEAD_ASSIGNED
                )
            elif not changes["assigned_to"] and before["assigned_to"]:
                await self._notify(
                    ctx, lead, "Lead Unassigned",
                    f'Lead "{name}" has been unassigned',
                    NotificationTypes.LEAD_UPDATED
                )
        if "stage" in changes and changes["stage"] != before["stage"]:
            await self._notify(
                ctx, lead, "Lead Stage Updated",
                f'Lead "{name}" stage changed from "{before["stage"]}" to "{changes["stage"]}"',
                NotificationTypes.LEAD_UPDATED
            )
        if "priority" in changes and changes["priority"] != before["priority"]:
            await self._notify(
                ctx, lead, "Lead Priority Updated",
                f'Lead "{name}" priority changed from "{before["priority"]}" to "{changes["priority"]}"',
                NotificationTypes.LEAD_UPDATED
            )

    async def _serialize(self, leads: List[Lead], now: Optional[datetime] = None) -> List[dict]:
        """Attach display names and the derived TAT status."""
        contacts = {
            c.id: c for c in await self.contact_repo.get_many(
                list({lead.contact_id for lead in leads if lead.contact_id})
            )
        }
        companies = {
            c.id: c for c in await self.company_repo.get_many(
                list({lead.company_id for lead in leads if lead.company_id})
            )
        }
        agents = {
            u.id: u for u in await self.user_repo.get_many(
                list({lead.assigned_to for lead in leads if lead.assigned_to})
            )
        }

        rows = []
        for lead in leads:
            data = lead.model_dump()
            contact = contacts.get(lead.contact_id)
            company = companies.get(lead.company_id)
            agent = agents.get(lead.assigned_to)
            data["contact_name"] = f"{contact.first_name} {contact.last_name}" if contact else None
            data["company_name"] = company.name if company else None
            data["assigned_agent_name"] = agent.full_name if agent else None
            data["assigned_agent_username"] = agent.username if agent else None
            data["tat_status"] = classify_lead_status(lead.stage, lead.closing_date, now)
            rows.append(data)
        return rows
