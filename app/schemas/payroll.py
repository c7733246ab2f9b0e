"""
PeopleDesk HR - Payroll Execution Schemas

Pydantic schemas for payroll runs, exceptions and HR payroll events.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.payroll import AdjustmentStatus, PaymentStatus, PayrollRunStatus


# ===========================================
# PAYROLL RUN
# ===========================================

class DraftGenerationRequest(BaseModel):
    """Generate a draft payroll run for a period."""
    payroll_period: date
    entity: str = Field(..., min_length=1, max_length=200)
    employee_ids: Optional[List[UUID]] = Field(
        None, description="Limit generation to these employees"
    )


class PayrollRunResponse(BaseModel):
    id: UUID
    run_id: str
    payroll_period: date
    entity: str
    status: PayrollRunStatus
    payment_status: PaymentStatus
    employees: int
    exceptions: int
    total_net_pay: Decimal
    payroll_specialist_id: Optional[UUID] = None
    payroll_manager_id: Optional[UUID] = None
    finance_staff_id: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    unlock_reason: Optional[str] = None
    manager_approval_date: Optional[datetime] = None
    finance_approval_date: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RunDetailResponse(BaseModel):
    id: UUID
    payroll_run_id: UUID
    employee_id: UUID
    employee_number: Optional[str] = None
    employee_name: Optional[str] = None
    base_salary: Decimal
    allowances: Decimal
    bonus: Decimal
    benefit: Decimal
    gross_salary: Decimal
    tax: Decimal
    insurance: Decimal
    penalties: Decimal
    deductions: Decimal
    net_salary: Decimal
    net_pay: Decimal
    bank_status: str
    exceptions: str


class RejectRunRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class UnfreezeRunRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class EditPeriodRequest(BaseModel):
    payroll_period: date


# ===========================================
# EXCEPTIONS
# ===========================================

class PayrollExceptionResponse(BaseModel):
    id: str
    payroll_run_id: UUID
    employee_id: UUID
    employee_number: str
    employee_name: str
    type: Literal["missing-bank", "negative-pay", "salary-spike", "calculation-error"]
    severity: Literal["high", "medium", "low"]
    description: str
    status: Literal["pending", "resolved"]


class ClearExceptionsResponse(BaseModel):
    success: bool
    message: str
    modified: int


class ResolveExceptionResponse(BaseModel):
    success: bool
    message: str
    id: str
    remaining: str


# ===========================================
# HR PAYROLL EVENTS
# ===========================================

class SigningBonusCreate(BaseModel):
    employee_id: UUID
    position_name: str = Field(..., min_length=1, max_length=100)
    given_amount: Optional[Decimal] = Field(None, ge=0)


class TerminationBenefitCreate(BaseModel):
    employee_id: UUID
    benefit_name: str = Field(..., min_length=1, max_length=100)
    type: Optional[str] = Field(None, max_length=100, description="e.g. Resignation, Termination")
    reason: Optional[str] = None
    given_amount: Optional[Decimal] = Field(None, ge=0)


class AdjustmentAmountUpdate(BaseModel):
    given_amount: Decimal = Field(..., ge=0)


class SigningBonusResponse(BaseModel):
    id: UUID
    employee_id: UUID
    signing_bonus_policy_id: Optional[UUID] = None
    given_amount: Decimal
    status: AdjustmentStatus
    created_at: datetime

    class Config:
        from_attributes = True


class TerminationBenefitResponse(BaseModel):
    id: UUID
    employee_id: UUID
    benefit_policy_id: Optional[UUID] = None
    type: Optional[str] = None
    reason: Optional[str] = None
    given_amount: Decimal
    status: AdjustmentStatus
    created_at: datetime

    class Config:
        from_attributes = True


class PenaltyCreate(BaseModel):
    employee_id: UUID
    reason: str = Field(..., min_length=1, max_length=2000)
    amount: Decimal = Field(..., gt=0)


class PenaltyResponse(BaseModel):
    id: UUID
    employee_id: UUID
    reason: str
    amount: Decimal
    status: AdjustmentStatus
    created_at: datetime

    class Config:
        from_attributes = True
