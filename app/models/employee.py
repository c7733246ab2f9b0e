"""
PeopleDesk HR - Employee Models

Employee profiles and the system role assignment store used by the
authorization guard.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, JSON, String, Uuid, Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class SystemRole(str, Enum):
    """System roles recognised by route authorization."""
    DEPARTMENT_EMPLOYEE = "department employee"
    DEPARTMENT_HEAD = "department head"
    HR_MANAGER = "HR Manager"
    HR_EMPLOYEE = "HR Employee"
    HR_ADMIN = "HR Admin"
    PAYROLL_SPECIALIST = "Payroll Specialist"
    PAYROLL_MANAGER = "Payroll Manager"
    SYSTEM_ADMIN = "System Admin"
    LEGAL_POLICY_ADMIN = "Legal & Policy Admin"
    RECRUITER = "Recruiter"
    FINANCE_STAFF = "Finance Staff"
    JOB_CANDIDATE = "Job Candidate"


class EmployeeStatus(str, Enum):
    """Employment status."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVE = "ON_LEAVE"
    SUSPENDED = "SUSPENDED"
    RETIRED = "RETIRED"
    TERMINATED = "TERMINATED"


class EmployeeProfile(BaseModel):
    """Employee master record."""

    __tablename__ = "employee_profiles"

    employee_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    work_email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[EmployeeStatus] = mapped_column(
        SQLEnum(EmployeeStatus),
        default=EmployeeStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    status_effective_from: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Organisation
    pay_grade_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("pay_grades.id", ondelete="SET NULL"),
        nullable=True,
    )
    primary_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )
    supervisor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
    )

    # Banking
    bank_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_account_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_name and self.bank_account_number)


class EmployeeSystemRole(BaseModel):
    """
    Role assignment for an employee.

    Assignments are append-only: a change deactivates the previous row and
    inserts a new active one. The most recent active row is authoritative.
    """

    __tablename__ = "employee_system_roles"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    roles: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
