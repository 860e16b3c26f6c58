"""
Tag service - contact and company tag catalogue.
Managing a tag needs edit on the module its type belongs to.
"""
import uuid
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.core.context import RequestContext
from crm_backend.core.exceptions import AlreadyExistsError, ForbiddenError, NotFoundError, ValidationError
from crm_backend.core.permissions import Modules, PermissionActions
from crm_backend.models.tag import Tag, TagTypes
from crm_backend.repositories.tag_repo import TagRepository

TAG_MODULES = {
    TagTypes.CONTACT: Modules.CONTACTS,
    TagTypes.COMPANY: Modules.COMPANIES,
}


class TagService:

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tag_repo = TagRepository(session)

    @staticmethod
    def _require_edit(ctx: RequestContext, tag_type: str):
        module = TAG_MODULES[tag_type]
        if not ctx.can(module, PermissionActions.EDIT):
            raise ForbiddenError(f"You don't have permission to manage {module} tags")

    async def list(self, ctx: RequestContext, tag_type: Optional[str] = None) -> List[Tag]:
        if tag_type and tag_type not in TagTypes.ALL:
            raise ValidationError(f"Invalid tag type. Must be one of: {list(TagTypes.ALL)}", field="type")
        return await self.tag_repo.list_for_org(ctx.org_id, tag_type)

    async def create(self, ctx: RequestContext, name: str, tag_type: str) -> Tag:
        self._require_edit(ctx, tag_type)
        name = name.strip()
        if not name:
            raise ValidationError("Tag name is required")
        if await self.tag_repo.get_by_name(ctx.org_id, name, tag_type):
            raise AlreadyExistsError("Tag", "name", name)
        return await self.tag_repo.create({"org_id": ctx.org_id, "name": name, "type": tag_type})

    async def delete(self, ctx: RequestContext, tag_id: uuid.UUID) -> bool:
        tag = await self.tag_repo.get_in_org(ctx.org_id, tag_id)
        if not tag:
            raise NotFoundError("Tag", str(tag_id))
        self._require_edit(ctx, tag.type)
        await self.tag_repo.clear_assignments(tag.id)
        return await self.tag_repo.delete(tag.id)
