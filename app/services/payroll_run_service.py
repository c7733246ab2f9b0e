"""
PeopleDesk HR - Payroll Run Service

Draft payroll generation and payroll run queries.

Generation processes eligible employees one at a time. Each employee runs
inside its own savepoint and yields an EmployeeRunResult; a failure is
logged, rolled back and reported without aborting the rest of the batch.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import EmployeeProfile
from app.models.payroll import (
    EmployeePayrollDetail,
    PaymentStatus,
    PayrollExceptionEntry,
    PayrollRun,
    PayrollRunStatus,
)
from app.services.payroll_calculation_service import PayrollCalculationService, money
from app.services.payroll_events_service import EligibleEmployee, PayrollEventsService
from app.services.payroll_exceptions_service import PayrollExceptionDetector, join_exceptions
from app.utils.error_handling import PayrollRunNotFoundException

logger = logging.getLogger(__name__)

NO_EMPLOYEES_MESSAGE = "No employees found for payroll generation"


def build_run_id(now: datetime) -> str:
    """PR-<year>-<MM>-<epoch millis>."""
    return f"PR-{now.year}-{now.month:02d}-{int(now.timestamp() * 1000)}"


class RunResultStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class EmployeeRunResult:
    """Outcome of processing one employee during draft generation."""
    employee_id: uuid.UUID
    status: RunResultStatus
    net_pay: Decimal = Decimal("0")
    exception_count: int = 0
    payload: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == RunResultStatus.SUCCESS


def serialize_detail(detail: EmployeePayrollDetail, employee: Optional[EmployeeProfile] = None) -> Dict[str, Any]:
    data = {
        "id": detail.id,
        "payroll_run_id": detail.payroll_run_id,
        "employee_id": detail.employee_id,
        "base_salary": detail.base_salary,
        "allowances": detail.allowances,
        "bonus": detail.bonus,
        "benefit": detail.benefit,
        "gross_salary": detail.gross_salary,
        "tax": detail.tax,
        "insurance": detail.insurance,
        "penalties": detail.penalties,
        "deductions": detail.deductions,
        "net_salary": detail.net_salary,
        "net_pay": detail.net_pay,
        "bank_status": detail.bank_status.value,
        "exceptions": detail.exceptions,
    }
    if employee is not None:
        data.update(
            employee_number=employee.employee_number,
            employee_name=employee.full_name,
        )
    return data


class PayrollRunService:
    """Service for generating and reading payroll runs."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = PayrollEventsService(db)
        self.calculator = PayrollCalculationService(db)
        self.detector = PayrollExceptionDetector(db)

    # ===========================================
    # DRAFT GENERATION
    # ===========================================

    async def generate_draft(
        self,
        payroll_period: date,
        entity: str,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
        specialist_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, Any]:
        """
        Generate a DRAFT payroll run.

        Returns an early "no employees" payload, without creating a run,
        when nothing is eligible.
        """
        eligible = await self.events.get_eligible_employees(employee_ids)
        if not eligible:
            logger.info(f"Payroll draft for {payroll_period} skipped: no eligible employees")
            return {"message": NO_EMPLOYEES_MESSAGE, "employees": []}

        run = PayrollRun(
            run_id=build_run_id(datetime.now()),
            payroll_period=payroll_period,
            entity=entity,
            status=PayrollRunStatus.DRAFT,
            payment_status=PaymentStatus.PENDING,
            payroll_specialist_id=specialist_id,
        )
        self.db.add(run)
        await self.db.flush()
        run_pk = run.id

        logger.info(f"Generating payroll run {run.run_id} for {len(eligible)} employee(s)")

        results: List[EmployeeRunResult] = []
        for item in eligible:
            results.append(await self._process_employee(run_pk, item, payroll_period))

        successes = [result for result in results if result.succeeded]
        failures = [result for result in results if not result.succeeded]

        run.employees = len(successes)
        run.exceptions = sum(result.exception_count for result in successes)
        run.total_net_pay = money(sum((result.net_pay for result in successes), Decimal("0")))

        await self.db.commit()
        await self.db.refresh(run)

        if failures:
            logger.warning(f"Payroll run {run.run_id}: {len(failures)} employee(s) failed")

        return {
            "run_id": run.run_id,
            "payroll_run_id": run.id,
            "payroll_period": run.payroll_period,
            "entity": run.entity,
            "employees_count": run.employees,
            "employees": [result.payload for result in successes],
            "exceptions": run.exceptions,
            "total_net_pay": run.total_net_pay,
            "status": run.status.value,
            "failures": [
                {"employee_id": result.employee_id, "error": result.error}
                for result in failures
            ],
        }

    async def _process_employee(
        self,
        run_pk: uuid.UUID,
        item: EligibleEmployee,
        payroll_period: date,
    ) -> EmployeeRunResult:
        employee = item.employee
        employee_id = employee.id
        try:
            async with self.db.begin_nested():
                # Order matters: events -> calculation -> detection -> persist
                hr_events = await self.events.get_hr_events(employee_id, payroll_period)
                breakdown = await self.calculator.calculate_salary(employee, item.pay_grade, payroll_period)
                computed_gross = money(
                    breakdown.base_salary + breakdown.allowances + breakdown.bonus + breakdown.benefit
                )
                detected = await self.detector.detect_exceptions(
                    employee_id,
                    breakdown,
                    computed_gross,
                    hr_events,
                    breakdown.bank_status,
                    current_run_id=run_pk,
                )
                descriptions = [exception.description for exception in detected]

                detail = EmployeePayrollDetail(
                    payroll_run_id=run_pk,
                    employee_id=employee_id,
                    base_salary=breakdown.base_salary,
                    allowances=breakdown.allowances,
                    bonus=breakdown.bonus,
                    benefit=breakdown.benefit,
                    gross_salary=breakdown.gross_salary,
                    tax=breakdown.tax,
                    insurance=breakdown.insurance,
                    penalties=breakdown.penalties,
                    deductions=breakdown.deductions,
                    net_salary=breakdown.net_salary,
                    net_pay=breakdown.net_pay,
                    bank_status=breakdown.bank_status,
                    exceptions=join_exceptions(descriptions),
                )
                self.db.add(detail)
                await self.db.flush()

                for position, exception in enumerate(detected):
                    self.db.add(PayrollExceptionEntry(
                        detail_id=detail.id,
                        payroll_run_id=run_pk,
                        employee_id=employee_id,
                        position=position,
                        type=exception.type,
                        severity=exception.severity,
                        description=exception.description,
                    ))
                await self.db.flush()

                payload = serialize_detail(detail, employee)
                payload.update(
                    payroll_detail_id=detail.id,
                    hr_events=[event.value for event in hr_events],
                    exceptions_flags=descriptions,
                    has_exceptions=bool(descriptions),
                )
        except Exception as e:
            logger.error(f"Payroll generation failed for employee {employee_id}: {e}", exc_info=True)
            return EmployeeRunResult(
                employee_id=employee_id,
                status=RunResultStatus.FAILURE,
                error=str(e),
            )

        return EmployeeRunResult(
            employee_id=employee_id,
            status=RunResultStatus.SUCCESS,
            net_pay=breakdown.net_pay,
            exception_count=len(descriptions),
            payload=payload,
        )

    # ===========================================
    # QUERIES
    # ===========================================

    async def get_all_payroll_runs(self) -> List[PayrollRun]:
        result = await self.db.execute(
            select(PayrollRun).order_by(PayrollRun.created_at.desc(), PayrollRun.run_id.desc())
        )
        return list(result.scalars().all())

    async def get_payroll_run_by_id(self, run_id: Union[uuid.UUID, str]) -> PayrollRun:
        """Look up a run by primary key or by its human-readable run id."""
        run = None
        try:
            pk = run_id if isinstance(run_id, uuid.UUID) else uuid.UUID(str(run_id))
        except ValueError:
            pk = None

        if pk is not None:
            run = await self.db.get(PayrollRun, pk)
        else:
            result = await self.db.execute(select(PayrollRun).where(PayrollRun.run_id == str(run_id)))
            run = result.scalar_one_or_none()

        if not run:
            raise PayrollRunNotFoundException(run_id)
        return run

    async def get_run_employees(
        self,
        run_id: Union[uuid.UUID, str],
        only_exceptions: bool = False,
    ) -> List[Dict[str, Any]]:
        run = await self.get_payroll_run_by_id(run_id)

        query = (
            select(EmployeePayrollDetail, EmployeeProfile)
            .join(EmployeeProfile, EmployeeProfile.id == EmployeePayrollDetail.employee_id)
            .where(EmployeePayrollDetail.payroll_run_id == run.id)
            .order_by(EmployeeProfile.employee_number)
        )
        if only_exceptions:
            query = query.where(EmployeePayrollDetail.exceptions != "")

        result = await self.db.execute(query)
        return [serialize_detail(detail, employee) for detail, employee in result.all()]
