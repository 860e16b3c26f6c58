"""
Base repository with generic CRUD operations.
"""
import uuid
from typing import TypeVar, Generic, Type, Optional

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from crm_backend.core.pagination import create_paginated_response
from crm_backend.models.base import utcnow

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with CRUD operations.
    Inherit and specify the model class.

    Writes commit by default. Pass commit=False to only flush, so that
    several writes can be committed together by the caller.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def _save(self, db_obj: ModelType, commit: bool) -> ModelType:
        self.session.add(db_obj)
        if commit:
            await self.session.commit()
            await self.session.refresh(db_obj)
        else:
            await self.session.flush()
        return db_obj

    async def create(self, obj_in: dict, commit: bool = True) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        return await self._save(db_obj, commit)

    async def get(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID."""
        return await self.session.get(self.model, id)

    async def get_in_org(self, org_id: uuid.UUID, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by ID, only if it belongs to the organization."""
        db_obj = await self.get(id)
        if db_obj is None or getattr(db_obj, "org_id", None) != org_id:
            return None
        return db_obj

    def _filtered(self, query, org_id: Optional[uuid.UUID], filters: Optional[dict]):
        # Filter by organization if model has org_id
        if org_id and hasattr(self.model, 'org_id'):
            query = query.where(self.model.org_id == org_id)

        # Apply additional filters
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)
        return query

    async def paginate(self, query, page: int = 1, limit: int = 20) -> dict:
        """Count and slice an already filtered and ordered query."""
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total_result = await self.session.exec(count_query)
        total = total_result.one()

        offset = (page - 1) * limit
        result = await self.session.exec(query.offset(offset).limit(limit))
        items = result.all()

        return create_paginated_response(items, total, page, limit)

    async def update(
        self,
        id: uuid.UUID,
        obj_in: dict,
        partial: bool = True,
        commit: bool = True
    ) -> Optional[ModelType]:
        """
        Update a record.

        With partial=True, None values are skipped (patch semantics).
        With partial=False every given field is written, None included.
        """
        db_obj = await self.get(id)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            if not hasattr(db_obj, field):
                continue
            if partial and value is None:
                continue
            setattr(db_obj, field, value)

        # Update timestamp if exists
        if hasattr(db_obj, 'updated_at'):
            db_obj.updated_at = utcnow()

        return await self._save(db_obj, commit)

    async def delete(self, id: uuid.UUID, commit: bool = True) -> bool:
        """Delete a record."""
        db_obj = await self.get(id)
        if not db_obj:
            return False

        await self.session.delete(db_obj)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()
        return True

    async def count(self, org_id: Optional[uuid.UUID] = None, filters: Optional[dict] = None) -> int:
        """Count records."""
        query = self._filtered(select(func.count()).select_from(self.model), org_id, filters)
        result = await self.session.exec(query)
        return result.one()
