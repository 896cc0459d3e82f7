"""
Account routes: registration, login and the current-user lookup.

Login returns a bearer token valid for JWT_EXPIRE_HOURS (3h by default).
"""

from fastapi import APIRouter, Depends

from writerid_portal.dependencies import get_auth_service, get_current_user, get_unit_of_work
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from writerid_portal.schemas.common import ErrorResponse
from writerid_portal.services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=201,
    responses={
        400: {"description": "Invalid registration data", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    body: RegisterRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    auth: AuthService = Depends(get_auth_service),
) -> UserResponse:
    return await auth.register(uow, body)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for a bearer token",
)
async def login(
    body: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await auth.login(uow, body.email, body.password)


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Current user profile",
)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)
