"""
PeopleDesk HR - Payroll Events Service

Eligible employees for a payroll run and the HR events (new hire,
resignation, termination) inferred for each employee in a pay period.
"""

import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import EmployeeProfile, EmployeeStatus
from app.models.payroll import (
    AdjustmentStatus,
    EmployeeSigningBonus,
    EmployeeTerminationBenefit,
)
from app.models.payroll_config import PayGrade

logger = logging.getLogger(__name__)


class HREvent(str, Enum):
    """Coarse life-cycle events for a pay period. Never persisted."""
    NEW_HIRE = "NEW_HIRE"
    PROBATION = "PROBATION"
    RESIGNED = "RESIGNED"
    TERMINATED = "TERMINATED"


@dataclass
class EligibleEmployee:
    """Active employee with the pay grade already loaded."""
    employee: EmployeeProfile
    pay_grade: Optional[PayGrade]


def month_range(period: date) -> Tuple[datetime, datetime]:
    """First and last instant of the period's month."""
    last_day = calendar.monthrange(period.year, period.month)[1]
    start = datetime(period.year, period.month, 1)
    end = datetime.combine(date(period.year, period.month, last_day), time.max)
    return start, end


def classify_termination(record_type: Optional[str], reason: Optional[str]) -> HREvent:
    """'resign' anywhere in type or reason means a resignation."""
    text = f"{record_type or ''} {reason or ''}".lower()
    return HREvent.RESIGNED if "resign" in text else HREvent.TERMINATED


class PayrollEventsService:
    """Eligibility and HR event inference for payroll generation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_eligible_employees(
        self, employee_ids: Optional[Sequence[uuid.UUID]] = None
    ) -> List[EligibleEmployee]:
        """
        Active employees with their pay grade.

        A non-empty employee_ids limits the result to that subset; None or an
        empty list selects every active employee.
        """
        query = (
            select(EmployeeProfile, PayGrade)
            .outerjoin(PayGrade, PayGrade.id == EmployeeProfile.pay_grade_id)
            .where(EmployeeProfile.status == EmployeeStatus.ACTIVE)
            .order_by(EmployeeProfile.employee_number)
        )
        if employee_ids:
            query = query.where(EmployeeProfile.id.in_(list(employee_ids)))

        result = await self.db.execute(query)
        return [EligibleEmployee(employee=row[0], pay_grade=row[1]) for row in result.all()]

    async def get_hr_events(self, employee_id: uuid.UUID, payroll_period: date) -> List[HREvent]:
        """
        Infer HR events for an employee in the period's month.

        NEW_HIRE comes from an approved signing bonus created in the month;
        RESIGNED/TERMINATED from an approved termination benefit created in
        the month. NEW_HIRE is listed first when both apply.
        """
        start, end = month_range(payroll_period)
        events: List[HREvent] = []

        bonus_result = await self.db.execute(
            select(EmployeeSigningBonus.id)
            .where(
                EmployeeSigningBonus.employee_id == employee_id,
                EmployeeSigningBonus.status == AdjustmentStatus.APPROVED,
                EmployeeSigningBonus.created_at >= start,
                EmployeeSigningBonus.created_at <= end,
            )
            .limit(1)
        )
        if bonus_result.first() is not None:
            events.append(HREvent.NEW_HIRE)

        termination_result = await self.db.execute(
            select(EmployeeTerminationBenefit)
            .where(
                EmployeeTerminationBenefit.employee_id == employee_id,
                EmployeeTerminationBenefit.status == AdjustmentStatus.APPROVED,
                EmployeeTerminationBenefit.created_at >= start,
                EmployeeTerminationBenefit.created_at <= end,
            )
            .order_by(EmployeeTerminationBenefit.created_at.desc())
            .limit(1)
        )
        termination = termination_result.scalar_one_or_none()
        if termination:
            events.append(classify_termination(termination.type, termination.reason))

        return events
