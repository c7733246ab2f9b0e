"""
PeopleDesk HR - Authentication Service

Business logic for employee login and token issuance.
"""

import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import EmployeeProfile, EmployeeStatus
from app.services.employee_service import EmployeeService
from app.utils.security import create_access_token, verify_password


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)

    async def authenticate_employee(
        self, email: str, password: str
    ) -> Optional[EmployeeProfile]:
        """
        Authenticate an employee with work email and password.

        Returns:
            EmployeeProfile if authentication successful, None otherwise
        """
        employee = await self.employees.get_employee_by_email(email)

        if not employee or not employee.hashed_password:
            return None

        if not verify_password(password, employee.hashed_password):
            return None

        if employee.status in (EmployeeStatus.TERMINATED, EmployeeStatus.INACTIVE):
            return None

        return employee

    async def get_roles(self, employee_id: uuid.UUID) -> List[str]:
        assignment = await self.employees.get_active_role_assignment(employee_id)
        return list(assignment.roles) if assignment else []

    async def create_tokens(self, employee: EmployeeProfile) -> dict:
        """
        Issue an access token.

        Roles are embedded for convenience only; the authorization guard
        re-reads the live role assignment for employee callers.
        """
        roles = await self.get_roles(employee.id)
        access_token = create_access_token(
            data={
                "sub": str(employee.id),
                "employeeId": str(employee.id),
                "roles": roles,
            }
        )
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "employee_id": str(employee.id),
            "roles": roles,
        }
