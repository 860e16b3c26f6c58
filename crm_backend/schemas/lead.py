"""
Lead schemas.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel

from crm_backend.schemas.common import FormPayload, UTCDateTime


class LeadPayload(FormPayload):
    """Create or fully replace a lead."""
    assignment_name: Optional[str] = None
    stage: Optional[str] = None
    contact_id: Optional[str] = None
    company_id: Optional[str] = None
    company_name: Optional[str] = None
    service: Optional[str] = None
    amount: Optional[Decimal] = None
    closing_date: Optional[UTCDateTime] = None
    source: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    description: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "assignment_name": "Website redesign",
                "stage": "New",
                "company_name": "Acme Inc",
                "amount": "150000",
                "closing_date": "2026-10-20T10:00:00Z",
                "priority": "High"
            }
        }


class LeadPatch(FormPayload):
    """
    Partial lead update. Only the fields present in the request body are
    applied; assigned_to alone is a transfer.
    """
    assignment_name: Optional[str] = None
    stage: Optional[str] = None
    contact_id: Optional[str] = None
    company_id: Optional[str] = None
    service: Optional[str] = None
    amount: Optional[Decimal] = None
    closing_date: Optional[UTCDateTime] = None
    source: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    description: Optional[str] = None


class LeadResponse(BaseModel):
    """Lead response with display names and the derived TAT status."""
    id: uuid.UUID
    org_id: uuid.UUID
    assignment_name: str
    contact_id: Optional[uuid.UUID]
    contact_name: Optional[str] = None
    company_id: Optional[uuid.UUID]
    company_name: Optional[str] = None
    stage: str
    service: Optional[str]
    amount: Optional[Decimal]
    closing_date: Optional[datetime]
    source: Optional[str]
    priority: str
    assigned_to: Optional[uuid.UUID]
    assigned_agent_name: Optional[str] = None
    assigned_agent_username: Optional[str] = None
    description: Optional[str]
    tat_status: str = ""
    created_at: datetime
    updated_at: datetime


class LeadFilter(BaseModel):
    """Lead filtering options."""
    stage: Optional[str] = None
    priority: Optional[str] = None
    source: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    contact_id: Optional[uuid.UUID] = None
    search: Optional[str] = None  # Search in assignment name, service, description


class LeadCommentCreate(BaseModel):
    content: Optional[str] = None


class LeadCommentResponse(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    author_id: Optional[uuid.UUID]
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class LeadSourceCreate(BaseModel):
    name: str


class LeadSourceResponse(BaseModel):
    id: uuid.UUID
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class LeadStatsResponse(BaseModel):
    total: int
    by_stage: dict
    tat: dict
