"""
PeopleDesk HR - Payroll Calculation Service

Salary calculation for one employee in one pay period.

    gross       = base + allowances + bonus + benefit
    tax         = gross * tax rate        (latest approved tax rule, default 10%)
    insurance   = gross * employee rate   (approved bracket containing gross, default 5%)
    net_salary  = gross - tax - insurance
    net_pay     = net_salary - penalties
    deductions  = tax + insurance + penalties
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.employee import EmployeeProfile
from app.models.payroll import (
    AdjustmentStatus,
    BankStatus,
    EmployeePenalty,
    EmployeeSigningBonus,
    EmployeeTerminationBenefit,
)
from app.models.payroll_config import (
    Allowance,
    ConfigStatus,
    InsuranceBracket,
    PayGrade,
    TaxRule,
)
from app.services.payroll_events_service import month_range

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def money(value) -> Decimal:
    """Round to 2 decimal places."""
    return Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass
class SalaryBreakdown:
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
    bank_status: BankStatus
    has_pay_grade: bool


class PayrollCalculationService:
    """Computes salary breakdowns from approved configuration and HR events."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # CONFIGURATION LOOKUPS
    # ===========================================

    async def get_total_allowances(self) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Allowance.amount), 0))
            .where(Allowance.status == ConfigStatus.APPROVED)
        )
        return money(result.scalar())

    async def get_tax_rate(self) -> Decimal:
        """Latest approved tax rule rate, as a fraction."""
        result = await self.db.execute(
            select(TaxRule.rate)
            .where(TaxRule.status == ConfigStatus.APPROVED)
            .order_by(TaxRule.created_at.desc())
            .limit(1)
        )
        rate = result.scalar_one_or_none()
        return Decimal(str(rate if rate is not None else settings.default_tax_rate)) / HUNDRED

    async def get_insurance_rate(self, gross: Decimal) -> Decimal:
        """Employee rate of the approved bracket containing gross, as a fraction."""
        result = await self.db.execute(
            select(InsuranceBracket.employee_rate)
            .where(
                InsuranceBracket.status == ConfigStatus.APPROVED,
                InsuranceBracket.min_salary <= gross,
                InsuranceBracket.max_salary >= gross,
            )
            .order_by(InsuranceBracket.min_salary)
            .limit(1)
        )
        rate = result.scalar_one_or_none()
        return Decimal(str(rate if rate is not None else settings.default_insurance_rate)) / HUNDRED

    # ===========================================
    # EMPLOYEE ADJUSTMENTS
    # ===========================================

    async def _approved_sum(self, model, amount_column, employee_id: uuid.UUID, period: date) -> Decimal:
        start, end = month_range(period)
        result = await self.db.execute(
            select(func.coalesce(func.sum(amount_column), 0))
            .where(
                model.employee_id == employee_id,
                model.status == AdjustmentStatus.APPROVED,
                model.created_at >= start,
                model.created_at <= end,
            )
        )
        return money(result.scalar())

    async def get_signing_bonus(self, employee_id: uuid.UUID, period: date) -> Decimal:
        return await self._approved_sum(
            EmployeeSigningBonus, EmployeeSigningBonus.given_amount, employee_id, period
        )

    async def get_termination_benefit(self, employee_id: uuid.UUID, period: date) -> Decimal:
        return await self._approved_sum(
            EmployeeTerminationBenefit, EmployeeTerminationBenefit.given_amount, employee_id, period
        )

    async def get_penalties(self, employee_id: uuid.UUID, period: date) -> Decimal:
        return await self._approved_sum(
            EmployeePenalty, EmployeePenalty.amount, employee_id, period
        )

    # ===========================================
    # CALCULATION
    # ===========================================

    async def calculate_salary(
        self,
        employee: EmployeeProfile,
        pay_grade: Optional[PayGrade],
        payroll_period: date,
    ) -> SalaryBreakdown:
        """
        Calculate an employee's salary for the period.

        A missing pay grade yields a zero base salary rather than an error;
        exception detection flags it.
        """
        base = money(pay_grade.base_salary) if pay_grade else ZERO
        allowances = await self.get_total_allowances()
        bonus = await self.get_signing_bonus(employee.id, payroll_period)
        benefit = await self.get_termination_benefit(employee.id, payroll_period)
        gross = money(base + allowances + bonus + benefit)

        tax = money(gross * await self.get_tax_rate())
        insurance = money(gross * await self.get_insurance_rate(gross))
        penalties = await self.get_penalties(employee.id, payroll_period)

        net_salary = money(gross - tax - insurance)
        net_pay = money(net_salary - penalties)

        return SalaryBreakdown(
            base_salary=base,
            allowances=allowances,
            bonus=bonus,
            benefit=benefit,
            gross_salary=gross,
            tax=tax,
            insurance=insurance,
            penalties=penalties,
            deductions=money(tax + insurance + penalties),
            net_salary=net_salary,
            net_pay=net_pay,
            bank_status=BankStatus.VALID if employee.has_bank_details else BankStatus.MISSING,
            has_pay_grade=pay_grade is not None,
        )
