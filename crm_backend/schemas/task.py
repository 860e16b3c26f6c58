"""
Task schemas.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from crm_backend.schemas.common import FormPayload, UTCDateTime


class TaskPayload(FormPayload):
    """
    Create or update a task.

    mark_as="completed" is a shortcut that forces the status to completed.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    contact_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    lead_id: Optional[uuid.UUID] = None
    due_date: Optional[UTCDateTime] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    is_critical: bool = False
    amount: Optional[Decimal] = None
    hold_state: Optional[str] = None
    mark_as: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Send revised quote",
                "lead_id": "3f1c2a4e-8d2b-4b6a-9a51-0f7f7f0e6b11",
                "due_date": "2026-10-20T10:00:00Z",
                "priority": "high",
                "is_critical": True
            }
        }


class TaskResponse(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    contact_id: Optional[uuid.UUID]
    company_id: Optional[uuid.UUID]
    lead_id: Optional[uuid.UUID]
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    priority: str
    status: str
    is_critical: bool
    amount: Optional[Decimal]
    hold_state: Optional[str]
    created_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
