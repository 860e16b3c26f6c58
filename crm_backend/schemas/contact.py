"""
Contact schemas.
"""
import uuid
from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel

from crm_backend.schemas.common import FormPayload


class ContactPayload(FormPayload):
    """
    Create or fully replace a contact.

    Company linkage is given either by company_name (resolved, created when
    unknown) or by company_id (must exist). company_name wins when both are set.
    """
    title: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    company_id: Optional[str] = None
    company_name: Optional[str] = None
    description: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_of_anniversary: Optional[date] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Mr",
                "first_name": "John",
                "last_name": "Doe",
                "email": "john@acme.example",
                "company_name": "Acme Inc"
            }
        }


class ContactResponse(BaseModel):
    """Contact response with resolved company and tags."""
    id: uuid.UUID
    org_id: uuid.UUID
    display_id: str
    title: Optional[str]
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    mobile: Optional[str]
    company_id: Optional[uuid.UUID]
    company_name: Optional[str] = None
    company_display_id: Optional[str] = None
    description: Optional[str]
    date_of_birth: Optional[date]
    date_of_anniversary: Optional[date]
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime
