"""
PeopleDesk HR - FastAPI Dependencies

Shared dependencies for authentication and route authorization.

This module provides dependency injection for:
1. Token authentication (Bearer header, access_token cookie, token cookie)
2. Route authorization against the ROUTE_ROLES table
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.employee import SystemRole
from app.services.employee_service import EmployeeService
from app.utils.error_handling import AuthenticationException, AuthorizationException, ErrorCode
from app.utils.permissions import Open, get_route_requirement, is_role_allowed
from app.utils.security import verify_access_token

logger = logging.getLogger(__name__)


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)

EMPLOYEE_ID_COOKIES = ("employeeid", "employeeId")


@dataclass
class AuthContext:
    """Verified token claims attached to the request."""
    subject: Optional[str]
    roles: List[str]
    claims: Dict[str, Any] = field(default_factory=dict)
    employee_id: Optional[uuid.UUID] = None

    @property
    def is_candidate(self) -> bool:
        return SystemRole.JOB_CANDIDATE.value in self.roles


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Authorization header, then access_token cookie, then token cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials

    for cookie_name in ("access_token", "token"):
        token = request.cookies.get(cookie_name)
        if token:
            if token.startswith("Bearer "):
                token = token[7:]
            return token
    return None


def _token_roles(payload: Dict[str, Any]) -> List[str]:
    roles = payload.get("roles")
    if isinstance(roles, list):
        return [str(role) for role in roles if role]
    role = payload.get("role")
    return [str(role)] if role else []


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthContext:
    """
    Authenticate the request from its bearer token.

    Raises:
        AuthenticationException: "Not authenticated" when no token is
            present, "Invalid or expired token" when verification fails.
    """
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationException("Not authenticated")

    payload = verify_access_token(token)
    if not payload:
        raise AuthenticationException("Invalid or expired token", code=ErrorCode.TOKEN_INVALID)

    context = AuthContext(
        subject=payload.get("sub"),
        roles=_token_roles(payload),
        claims=payload,
    )
    return replace(context, employee_id=resolve_employee_id(request, context))


def resolve_employee_id(request: Request, auth: AuthContext) -> Optional[uuid.UUID]:
    """Employee id from the employeeid/employeeId cookie, then the token claim."""
    for cookie_name in EMPLOYEE_ID_COOKIES:
        value = request.cookies.get(cookie_name)
        if value:
            return _parse_uuid(value)
    return _parse_uuid(auth.claims.get("employeeId"))


def _has_employee_id_input(request: Request, auth: AuthContext) -> bool:
    return any(request.cookies.get(name) for name in EMPLOYEE_ID_COOKIES) or bool(
        auth.claims.get("employeeId")
    )


async def resolve_effective_roles(
    request: Request,
    auth: AuthContext,
    db: AsyncSession,
) -> List[str]:
    """
    Roles used for an authorization decision.

    Candidates keep the roles fixed in their token. Anyone else who
    presents an employee id is judged on the live role assignment; the
    token roles are only consulted when no employee id is present.
    """
    if auth.is_candidate:
        return auth.roles

    if _has_employee_id_input(request, auth):
        if auth.employee_id is None:
            logger.warning("Authorization denied: malformed employee id")
            raise AuthorizationException()

        assignment = await EmployeeService(db).get_active_role_assignment(auth.employee_id)
        if not assignment or not assignment.roles:
            logger.warning(f"Authorization denied: no active roles for employee {auth.employee_id}")
            raise AuthorizationException()
        return list(assignment.roles)

    return auth.roles


def require_route(route_id: str):
    """
    Dependency factory for route authorization.

    Usage:
        @router.post("/generate-draft")
        async def generate(auth: AuthContext = Depends(require_route("payroll.generate_draft"))):
            ...
    """
    requirement = get_route_requirement(route_id)

    async def route_guard(
        request: Request,
        auth: AuthContext = Depends(get_auth_context),
        db: AsyncSession = Depends(get_async_session),
    ) -> AuthContext:
        if isinstance(requirement, Open):
            return auth

        roles = await resolve_effective_roles(request, auth, db)
        if not is_role_allowed(requirement, roles):
            logger.warning(f"Authorization denied for route {route_id}: roles={roles}")
            raise AuthorizationException()
        return auth

    return route_guard


def require_employee(auth: AuthContext) -> uuid.UUID:
    """Employee id of the caller, for routes that act on the caller's own data."""
    if auth.employee_id is None:
        raise AuthorizationException()
    return auth.employee_id
