"""
PeopleDesk HR - Authentication Router

Login with work email and password, and introspection of the caller.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_route
from app.schemas.auth import CurrentUserResponse, LoginRequest, TokenResponse
from app.services.auth_service import AuthService
from app.services.employee_service import EmployeeService
from app.utils.error_handling import AuthenticationException

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Login",
    description="Authenticate with work email and password and receive a JWT.",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
):
    auth_service = AuthService(db)
    employee = await auth_service.authenticate_employee(request.email, request.password)
    if not employee:
        raise AuthenticationException("Incorrect email or password")
    return await auth_service.create_tokens(employee)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current caller",
    description="Token claims of the caller and the roles currently in effect.",
)
async def me(
    auth: AuthContext = Depends(require_route("auth.me")),
    db: AsyncSession = Depends(get_async_session),
):
    effective_roles = auth.roles
    if auth.employee_id and not auth.is_candidate:
        assignment = await EmployeeService(db).get_active_role_assignment(auth.employee_id)
        effective_roles = list(assignment.roles) if assignment else []

    return CurrentUserResponse(
        subject=str(auth.subject or ""),
        employee_id=auth.employee_id,
        token_roles=auth.roles,
        effective_roles=effective_roles,
    )
