"""
PeopleDesk HR - Payroll Exception Detection

Flags anomalies in a calculated payroll detail and classifies exception
descriptions by severity and type.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.payroll import (
    BankStatus,
    EmployeePayrollDetail,
    ExceptionSeverity,
    ExceptionType,
    PayrollRun,
)
from app.services.payroll_calculation_service import SalaryBreakdown
from app.services.payroll_events_service import HREvent

logger = logging.getLogger(__name__)

EXCEPTION_SEPARATOR = "; "

MISSING_BANK = "Missing bank details"
MISSING_PAY_GRADE = "Pay grade not assigned"
NEGATIVE_NET_PAY = "Negative net pay"
NET_EXCEEDS_GROSS = "Net salary exceeds gross salary"
NET_PAY_EXCEEDS_NET_SALARY = "Net pay exceeds net salary"
NEW_HIRE_REVIEW = "New hire in period: verify prorated salary and signing bonus"
OFFBOARDING_REVIEW = "Offboarding in period: verify final settlement and benefits"

# (substrings, value) pairs; first match wins
_SEVERITY_RULES = (
    (("missing bank", "negative", "exceeds gross"), ExceptionSeverity.HIGH),
    (("pay grade", "exceeds net salary", "new hire", "offboarding"), ExceptionSeverity.MEDIUM),
)
_TYPE_RULES = (
    (("missing bank",), ExceptionType.MISSING_BANK),
    (("negative",), ExceptionType.NEGATIVE_PAY),
    (("exceeds gross", "salary spike", "exceeds net"), ExceptionType.SALARY_SPIKE),
)


def infer_severity(description: str) -> ExceptionSeverity:
    text = description.lower()
    for needles, severity in _SEVERITY_RULES:
        if any(needle in text for needle in needles):
            return severity
    return ExceptionSeverity.LOW


def infer_type(description: str) -> ExceptionType:
    text = description.lower()
    for needles, exception_type in _TYPE_RULES:
        if any(needle in text for needle in needles):
            return exception_type
    return ExceptionType.CALCULATION_ERROR


@dataclass
class DetectedException:
    description: str
    type: ExceptionType
    severity: ExceptionSeverity

    @classmethod
    def from_description(cls, description: str) -> "DetectedException":
        return cls(
            description=description,
            type=infer_type(description),
            severity=infer_severity(description),
        )


def split_exceptions(raw: Optional[str]) -> List[str]:
    """Split a '; '-joined exception string, dropping empty segments."""
    if not raw:
        return []
    return [segment.strip() for segment in raw.split(";") if segment.strip()]


def parse_exceptions(raw: Optional[str]) -> List[DetectedException]:
    return [DetectedException.from_description(segment) for segment in split_exceptions(raw)]


def join_exceptions(descriptions: Iterable[str]) -> str:
    return EXCEPTION_SEPARATOR.join(descriptions)


class PayrollExceptionDetector:
    """Detects payroll anomalies for one employee."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_previous_net_pay(
        self, employee_id: uuid.UUID, exclude_run_id: Optional[uuid.UUID] = None
    ) -> Optional[Decimal]:
        """Net pay from the employee's most recent earlier payroll detail."""
        query = (
            select(EmployeePayrollDetail.net_pay)
            .join(PayrollRun, PayrollRun.id == EmployeePayrollDetail.payroll_run_id)
            .where(EmployeePayrollDetail.employee_id == employee_id)
            .order_by(PayrollRun.payroll_period.desc(), EmployeePayrollDetail.created_at.desc())
            .limit(1)
        )
        if exclude_run_id:
            query = query.where(EmployeePayrollDetail.payroll_run_id != exclude_run_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def detect_exceptions(
        self,
        employee_id: uuid.UUID,
        breakdown: SalaryBreakdown,
        computed_gross: Decimal,
        hr_events: Sequence[HREvent],
        bank_status: BankStatus,
        current_run_id: Optional[uuid.UUID] = None,
    ) -> List[DetectedException]:
        """
        Flag anomalies. computed_gross is the locally derived
        base + allowances + bonus + benefit, independent of the calculator.
        """
        descriptions: List[str] = []

        if bank_status == BankStatus.MISSING:
            descriptions.append(MISSING_BANK)
        if not breakdown.has_pay_grade:
            descriptions.append(MISSING_PAY_GRADE)
        if breakdown.net_pay < 0:
            descriptions.append(NEGATIVE_NET_PAY)
        if breakdown.net_salary > computed_gross:
            descriptions.append(NET_EXCEEDS_GROSS)
        if breakdown.net_pay > breakdown.net_salary:
            descriptions.append(NET_PAY_EXCEEDS_NET_SALARY)

        previous = await self.get_previous_net_pay(employee_id, exclude_run_id=current_run_id)
        if previous and previous > 0 and breakdown.net_pay > previous * settings.salary_spike_ratio:
            descriptions.append(
                f"Salary spike detected: net pay {breakdown.net_pay} exceeds "
                f"{settings.salary_spike_ratio}x previous net pay {previous}"
            )

        if HREvent.NEW_HIRE in hr_events:
            descriptions.append(NEW_HIRE_REVIEW)
        if HREvent.RESIGNED in hr_events or HREvent.TERMINATED in hr_events:
            descriptions.append(OFFBOARDING_REVIEW)

        return [DetectedException.from_description(description) for description in descriptions]
