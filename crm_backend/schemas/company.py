"""
Company schemas.
"""
import uuid
from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel

from crm_backend.schemas.common import FormPayload


class CompanyPayload(FormPayload):
    """Create or fully replace a company."""
    name: Optional[str] = None
    type: Optional[str] = None
    registration_number: Optional[str] = None
    incorporation_date: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Inc",
                "type": "Private Limited",
                "email": "hello@acme.example",
                "city": "Pune"
            }
        }


class CompanyResponse(BaseModel):
    """Company response."""
    id: uuid.UUID
    org_id: uuid.UUID
    display_id: str
    name: str
    type: Optional[str]
    registration_number: Optional[str]
    incorporation_date: Optional[date]
    phone: Optional[str]
    email: Optional[str]
    website: Optional[str]
    description: Optional[str]
    address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    postal_code: Optional[str]
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TagIdsRequest(BaseModel):
    """Replace the tag set of a contact or company."""
    tag_ids: List[uuid.UUID]
