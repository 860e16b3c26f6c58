"""
Authentication schemas.
"""
import uuid
from typing import Optional, Dict, List
from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """User registration request."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    org_name: str = Field(..., min_length=1, max_length=100)
    full_name: Optional[str] = None
    username: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@company.com",
                "password": "securepassword123",
                "org_name": "Acme Corp",
                "full_name": "John Doe"
            }
        }


class RegisterResponse(BaseModel):
    message: str
    user_id: uuid.UUID
    org_id: uuid.UUID


class TokenResponse(BaseModel):
    """Token response after login."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class MeResponse(BaseModel):
    """The caller, their role and effective permissions in the current org."""
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    org_id: uuid.UUID
    role: str
    permissions: Dict[str, List[str]]
