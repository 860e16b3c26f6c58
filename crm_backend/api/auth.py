"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from crm_backend.database import get_session
from crm_backend.services.auth_service import AuthService
from crm_backend.schemas.auth import RegisterRequest, RegisterResponse, TokenResponse, MeResponse
from crm_backend.api.deps import get_current_user, get_request_context
from crm_backend.core.context import RequestContext
from crm_backend.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session)
):
    """Register a new user with organization."""
    auth_service = AuthService(session)
    return await auth_service.register(
        email=request.email,
        password=request.password,
        org_name=request.org_name,
        full_name=request.full_name,
        username=request.username
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session)
):
    """Login and get a bearer access token."""
    auth_service = AuthService(session)
    return await auth_service.login(email=form_data.username, password=form_data.password)


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context)
):
    """The caller with role and effective permissions."""
    return AuthService.describe(current_user, ctx)
