"""
Tag schemas.
"""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., pattern="^(contact_tag|company_tag)$")


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    created_at: datetime

    class Config:
        from_attributes = True
