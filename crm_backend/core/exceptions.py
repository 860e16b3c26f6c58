"""
Custom exceptions for the CRM API.
Provides consistent error handling across the application.

Every exception carries the HTTP status it maps to; a single handler
registered in main.py renders them as {"detail": message}.
"""
from typing import Optional

from fastapi import HTTPException, status


class CRMException(Exception):
    """Base exception for the CRM"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(CRMException):
    """Resource not found"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class ReferenceNotFoundError(NotFoundError):
    """A payload referenced a related record that does not exist (client fault)"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, resource: str):
        CRMException.__init__(self, f"Invalid {field}: {resource} not found")
        self.field = field


class AlreadyExistsError(CRMException):
    """Resource already exists"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class DuplicateRecordError(AlreadyExistsError):
    """One or more unique contact fields collide with an existing record"""

    def __init__(self, resource: str, duplicates: list):
        self.duplicates = duplicates
        CRMException.__init__(
            self,
            f"Duplicate detected: {resource} with same {', '.join(duplicates)} already exists."
        )


class CreationError(CRMException):
    """The store rejected an insert"""

    def __init__(self, resource: str = "Resource", reason: Optional[str] = None):
        message = f"Failed to create {resource}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnauthorizedError(CRMException):
    """Authentication failed"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ForbiddenError(CRMException):
    """Access denied"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class ValidationError(CRMException):
    """Validation failed"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Validation failed", field: str = None):
        self.field = field
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class DeleteBlockedError(CRMException):
    """Delete refused because dependent records still exist"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, dependents: int = 0):
        self.dependents = dependents
        super().__init__(message)


# HTTP Exception helpers
def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise 401 HTTPException"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def raise_forbidden(message: str = "You don't have permission to access this resource"):
    """Raise 403 HTTPException"""
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
