"""
PeopleDesk HR - Employees Router

Employee profiles and system role assignments.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_route
from app.models.employee import EmployeeStatus
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeResponse,
    RoleAssignmentRequest,
    RoleAssignmentResponse,
)
from app.services.employee_service import EmployeeService
from app.utils.error_handling import NotFoundException

router = APIRouter()


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create employee",
)
async def create_employee(
    request: EmployeeCreate,
    auth: AuthContext = Depends(require_route("employees.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).create_employee(request.model_dump())


@router.get(
    "",
    response_model=List[EmployeeResponse],
    summary="List employees",
)
async def list_employees(
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    department_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("employees.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).list_employees(status=status_filter, department_id=department_id)


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Get employee",
)
async def get_employee(
    employee_id: UUID,
    auth: AuthContext = Depends(require_route("employees.get")),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_employee_or_404(employee_id)


@router.put(
    "/{employee_id}/roles",
    response_model=RoleAssignmentResponse,
    summary="Assign system roles",
    description="Replace the employee's active role assignment.",
)
async def assign_roles(
    employee_id: UUID,
    request: RoleAssignmentRequest,
    auth: AuthContext = Depends(require_route("employees.assign_roles")),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).assign_roles(employee_id, request.roles, request.permissions)


@router.get(
    "/{employee_id}/roles",
    response_model=RoleAssignmentResponse,
    summary="Get active role assignment",
)
async def get_roles(
    employee_id: UUID,
    auth: AuthContext = Depends(require_route("employees.get_roles")),
    db: AsyncSession = Depends(get_async_session),
):
    service = EmployeeService(db)
    await service.get_employee_or_404(employee_id)
    assignment = await service.get_active_role_assignment(employee_id)
    if not assignment:
        raise NotFoundException("Role assignment", message="No active role assignment")
    return assignment
