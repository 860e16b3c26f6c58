"""
Common schemas used across multiple endpoints.
"""
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, model_validator


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str

    class Config:
        json_schema_extra = {"example": {"message": "Operation successful"}}


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str

    class Config:
        json_schema_extra = {"example": {"detail": "An error occurred"}}


class FormPayload(BaseModel):
    """
    Base for form-style payloads.
    Blank strings are received as None so optional columns are stored as NULL.
    """

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data):
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored in UTC. A value without an offset is taken as UTC."""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]
