"""
PeopleDesk HR - Employee Schemas

Pydantic schemas for employee profiles and role assignments.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.employee import EmployeeStatus, SystemRole


# ===========================================
# EMPLOYEE
# ===========================================

class EmployeeBase(BaseModel):
    employee_number: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    work_email: EmailStr
    pay_grade_id: Optional[UUID] = None
    primary_department_id: Optional[UUID] = None
    supervisor_id: Optional[UUID] = None
    bank_name: Optional[str] = Field(None, max_length=200)
    bank_account_number: Optional[str] = Field(None, max_length=50)


class EmployeeCreate(EmployeeBase):
    """Schema for creating an employee."""
    password: str = Field(..., min_length=8, max_length=100)
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not any(c.isalpha() for c in v) or not any(c.isdigit() for c in v):
            raise ValueError("Password must contain letters and digits")
        return v


class EmployeeResponse(EmployeeBase):
    id: UUID
    status: EmployeeStatus
    status_effective_from: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ===========================================
# ROLE ASSIGNMENT
# ===========================================

class RoleAssignmentRequest(BaseModel):
    roles: List[SystemRole] = Field(..., min_length=1)
    permissions: List[str] = []


class RoleAssignmentResponse(BaseModel):
    id: UUID
    employee_id: UUID
    roles: List[str]
    permissions: List[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
