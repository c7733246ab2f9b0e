"""
PeopleDesk HR - Payroll Execution Models

Payroll runs, per-employee payroll details, structured payroll exceptions
and the HR payroll events (signing bonuses, termination benefits,
penalties) that feed draft generation.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid,
    Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class PayrollRunStatus(str, Enum):
    """Payroll run lifecycle."""
    DRAFT = "draft"
    UNDER_REVIEW = "under review"
    PENDING_FINANCE_APPROVAL = "pending finance approval"
    REJECTED = "rejected"
    APPROVED = "approved"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class BankStatus(str, Enum):
    VALID = "valid"
    MISSING = "missing"


class ExceptionSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ExceptionType(str, Enum):
    MISSING_BANK = "missing-bank"
    NEGATIVE_PAY = "negative-pay"
    SALARY_SPIKE = "salary-spike"
    CALCULATION_ERROR = "calculation-error"


class ExceptionStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class AdjustmentStatus(str, Enum):
    """Approval status for signing bonuses, termination benefits and penalties."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ===========================================
# PAYROLL RUN
# ===========================================

class PayrollRun(BaseModel):
    """
    Payroll run summary.

    Detail rows are not a relationship on the run; they are queried by
    payroll_run_id.
    """

    __tablename__ = "payroll_runs"

    run_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    payroll_period: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    entity: Mapped[str] = mapped_column(String(200), nullable=False)

    status: Mapped[PayrollRunStatus] = mapped_column(
        SQLEnum(PayrollRunStatus),
        default=PayrollRunStatus.DRAFT,
        nullable=False,
        index=True,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
    )

    # Aggregates
    employees: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    exceptions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_net_pay: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"), nullable=False)

    # Actors
    payroll_specialist_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    payroll_manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    finance_staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)

    # Workflow
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unlock_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    manager_approval_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    finance_approval_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class EmployeePayrollDetail(BaseModel):
    """One row per (employee, payroll run)."""

    __tablename__ = "employee_payroll_details"
    __table_args__ = (
        UniqueConstraint("payroll_run_id", "employee_id", name="uq_payroll_detail_run_employee"),
    )

    payroll_run_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payroll_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    base_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    allowances: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    benefit: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    insurance: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    penalties: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    deductions: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)

    bank_status: Mapped[BankStatus] = mapped_column(
        SQLEnum(BankStatus),
        default=BankStatus.VALID,
        nullable=False,
    )

    # "; "-joined descriptions of pending exceptions, kept in sync with
    # PayrollExceptionEntry rows
    exceptions: Mapped[str] = mapped_column(Text, default="", nullable=False)


class PayrollExceptionEntry(BaseModel):
    """Structured payroll exception, individually resolvable."""

    __tablename__ = "payroll_exception_entries"

    detail_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_payroll_details.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payroll_run_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payroll_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[ExceptionType] = mapped_column(SQLEnum(ExceptionType), nullable=False)
    severity: Mapped[ExceptionSeverity] = mapped_column(SQLEnum(ExceptionSeverity), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ExceptionStatus] = mapped_column(
        SQLEnum(ExceptionStatus),
        default=ExceptionStatus.PENDING,
        nullable=False,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# ===========================================
# HR PAYROLL EVENTS
# ===========================================

class EmployeeSigningBonus(BaseModel):
    """Signing bonus granted to a new hire."""

    __tablename__ = "employee_signing_bonuses"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    signing_bonus_policy_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("signing_bonus_policies.id", ondelete="SET NULL"),
        nullable=True,
    )
    given_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    status: Mapped[AdjustmentStatus] = mapped_column(
        SQLEnum(AdjustmentStatus),
        default=AdjustmentStatus.PENDING,
        nullable=False,
    )


class EmployeeTerminationBenefit(BaseModel):
    """Termination or resignation benefit for an outgoing employee."""

    __tablename__ = "employee_termination_benefits"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    benefit_policy_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("termination_benefit_policies.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    given_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    status: Mapped[AdjustmentStatus] = mapped_column(
        SQLEnum(AdjustmentStatus),
        default=AdjustmentStatus.PENDING,
        nullable=False,
    )


class EmployeePenalty(BaseModel):
    """Penalty deducted from net pay once approved."""

    __tablename__ = "employee_penalties"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    status: Mapped[AdjustmentStatus] = mapped_column(
        SQLEnum(AdjustmentStatus),
        default=AdjustmentStatus.PENDING,
        nullable=False,
    )
