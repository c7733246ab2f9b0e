"""
PeopleDesk HR - Employee Service

Employee profiles and system role assignments.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import (
    EmployeeProfile,
    EmployeeStatus,
    EmployeeSystemRole,
    SystemRole,
)
from app.utils.error_handling import (
    BadRequestException,
    ConflictException,
    EmployeeNotFoundException,
)
from app.utils.permissions import normalize_roles
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)


class EmployeeService:
    """Service for employee profile and role assignment operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # EMPLOYEE PROFILES
    # ===========================================

    async def create_employee(self, data: Dict[str, Any]) -> EmployeeProfile:
        """Create an employee profile. A plain password is hashed before storing."""
        existing = await self.get_employee_by_email(data["work_email"])
        if existing:
            raise ConflictException(
                f"Employee with email '{data['work_email']}' already exists",
                resource_type="Employee",
            )

        payload = dict(data)
        payload["work_email"] = payload["work_email"].lower()
        password = payload.pop("password", None)
        if password:
            payload["hashed_password"] = get_password_hash(password)

        employee = EmployeeProfile(**payload)
        self.db.add(employee)
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Created employee {employee.employee_number} ({employee.id})")
        return employee

    async def get_employee(self, employee_id: uuid.UUID) -> Optional[EmployeeProfile]:
        return await self.db.get(EmployeeProfile, employee_id)

    async def get_employee_or_404(self, employee_id: uuid.UUID) -> EmployeeProfile:
        employee = await self.get_employee(employee_id)
        if not employee:
            raise EmployeeNotFoundException(employee_id)
        return employee

    async def get_employee_by_email(self, email: str) -> Optional[EmployeeProfile]:
        result = await self.db.execute(
            select(EmployeeProfile).where(EmployeeProfile.work_email == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_employee_by_number(self, employee_number: str) -> Optional[EmployeeProfile]:
        result = await self.db.execute(
            select(EmployeeProfile).where(EmployeeProfile.employee_number == employee_number)
        )
        return result.scalar_one_or_none()

    async def list_employees(
        self,
        status: Optional[EmployeeStatus] = None,
        department_id: Optional[uuid.UUID] = None,
    ) -> List[EmployeeProfile]:
        query = select(EmployeeProfile).order_by(EmployeeProfile.employee_number)
        if status:
            query = query.where(EmployeeProfile.status == status)
        if department_id:
            query = query.where(EmployeeProfile.primary_department_id == department_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_status(
        self,
        employee_id: uuid.UUID,
        status: EmployeeStatus,
        commit: bool = True,
    ) -> EmployeeProfile:
        """Change employment status and stamp the effective date."""
        employee = await self.get_employee_or_404(employee_id)
        employee.status = status
        employee.status_effective_from = datetime.utcnow()
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()
        logger.info(f"Employee {employee_id} status set to {status.value}")
        return employee

    # ===========================================
    # ROLE ASSIGNMENTS
    # ===========================================

    async def get_active_role_assignment(
        self, employee_id: uuid.UUID
    ) -> Optional[EmployeeSystemRole]:
        """Most recent active role assignment for an employee."""
        result = await self.db.execute(
            select(EmployeeSystemRole)
            .where(
                EmployeeSystemRole.employee_id == employee_id,
                EmployeeSystemRole.is_active.is_(True),
            )
            .order_by(EmployeeSystemRole.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def assign_roles(
        self,
        employee_id: uuid.UUID,
        roles: Sequence[Union[SystemRole, str]],
        permissions: Optional[Sequence[str]] = None,
    ) -> EmployeeSystemRole:
        """Replace the employee's active role assignment."""
        await self.get_employee_or_404(employee_id)

        role_values = sorted(normalize_roles(roles))
        valid = {role.value for role in SystemRole}
        unknown = [role for role in role_values if role not in valid]
        if unknown:
            raise BadRequestException(f"Unknown roles: {', '.join(unknown)}", field="roles")

        await self.db.execute(
            update(EmployeeSystemRole)
            .where(
                EmployeeSystemRole.employee_id == employee_id,
                EmployeeSystemRole.is_active.is_(True),
            )
            .values(is_active=False)
        )

        assignment = EmployeeSystemRole(
            employee_id=employee_id,
            roles=role_values,
            permissions=list(permissions or []),
            is_active=True,
        )
        self.db.add(assignment)
        await self.db.commit()
        await self.db.refresh(assignment)

        logger.info(f"Assigned roles {role_values} to employee {employee_id}")
        return assignment

    async def get_employee_ids_with_roles(
        self, roles: Sequence[Union[SystemRole, str]]
    ) -> List[uuid.UUID]:
        """Employees whose active role assignment holds any of the given roles."""
        wanted = normalize_roles(roles)
        if not wanted:
            return []

        result = await self.db.execute(
            select(EmployeeSystemRole)
            .where(EmployeeSystemRole.is_active.is_(True))
            .order_by(EmployeeSystemRole.created_at)
        )
        employee_ids: List[uuid.UUID] = []
        for assignment in result.scalars().all():
            if wanted & set(assignment.roles or []) and assignment.employee_id not in employee_ids:
                employee_ids.append(assignment.employee_id)
        return employee_ids

    async def get_employee_ids_in_departments(
        self, department_ids: Sequence[uuid.UUID]
    ) -> List[uuid.UUID]:
        if not department_ids:
            return []
        result = await self.db.execute(
            select(EmployeeProfile.id)
            .where(EmployeeProfile.primary_department_id.in_(list(department_ids)))
            .order_by(EmployeeProfile.employee_number)
        )
        return list(result.scalars().all())
