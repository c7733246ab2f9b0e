"""
PeopleDesk HR - Payroll Run Service Tests

Draft generation, salary calculation and run queries.
"""

import re
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.models.employee import EmployeeStatus
from app.models.payroll import (
    AdjustmentStatus,
    EmployeePayrollDetail,
    EmployeePenalty,
    EmployeeSigningBonus,
    EmployeeTerminationBenefit,
    PayrollRunStatus,
)
from app.models.payroll_config import Allowance, ConfigStatus, InsuranceBracket, TaxRule
from app.services.payroll_calculation_service import PayrollCalculationService, money
from app.services.payroll_events_service import HREvent, PayrollEventsService, classify_termination
from app.services.payroll_run_service import NO_EMPLOYEES_MESSAGE, PayrollRunService, build_run_id
from app.utils.error_handling import PayrollRunNotFoundException


PERIOD = date(2025, 11, 30)
IN_PERIOD = datetime(2025, 11, 10, 9, 0, 0)


async def _detail_count(db_session, run_pk) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(EmployeePayrollDetail)
        .where(EmployeePayrollDetail.payroll_run_id == run_pk)
    )
    return result.scalar()


class TestBuildRunId:
    """Human-readable run ids."""

    def test_format(self):
        """Run id is PR-<year>-<MM>-<epoch millis>."""
        now = datetime(2025, 3, 7, 12, 0, 0)
        run_id = build_run_id(now)

        assert run_id.startswith("PR-2025-03-")
        assert re.fullmatch(r"PR-\d{4}-\d{2}-\d+", run_id)
        assert run_id.endswith(str(int(now.timestamp() * 1000)))


class TestSalaryCalculation:
    """Salary breakdown from configuration."""

    @pytest.mark.asyncio
    async def test_defaults_without_configuration(self, db_session, pay_grade, make_employee):
        """Default 10% tax and 5% insurance apply when nothing is approved."""
        employee = await make_employee(pay_grade=pay_grade)

        breakdown = await PayrollCalculationService(db_session).calculate_salary(employee, pay_grade, PERIOD)

        assert breakdown.gross_salary == Decimal("5000.00")
        assert breakdown.tax == Decimal("500.00")
        assert breakdown.insurance == Decimal("250.00")
        assert breakdown.net_salary == Decimal("4250.00")
        assert breakdown.net_pay == Decimal("4250.00")
        assert breakdown.deductions == Decimal("750.00")

    @pytest.mark.asyncio
    async def test_only_approved_configuration_counts(self, db_session, pay_grade, make_employee):
        """Draft allowances and tax rules are ignored."""
        db_session.add_all([
            Allowance(name="Housing", amount=Decimal("1000.00"), status=ConfigStatus.APPROVED),
            Allowance(name="Transport", amount=Decimal("500.00"), status=ConfigStatus.DRAFT),
            TaxRule(name="Flat", rate=Decimal("20"), status=ConfigStatus.APPROVED),
            TaxRule(name="Proposed", rate=Decimal("50"), status=ConfigStatus.DRAFT),
            InsuranceBracket(
                name="Standard",
                min_salary=Decimal("0"),
                max_salary=Decimal("100000"),
                employee_rate=Decimal("2"),
                employer_rate=Decimal("4"),
                status=ConfigStatus.APPROVED,
            ),
        ])
        await db_session.commit()
        employee = await make_employee(pay_grade=pay_grade)

        breakdown = await PayrollCalculationService(db_session).calculate_salary(employee, pay_grade, PERIOD)

        assert breakdown.allowances == Decimal("1000.00")
        assert breakdown.gross_salary == Decimal("6000.00")
        assert breakdown.tax == Decimal("1200.00")
        assert breakdown.insurance == Decimal("120.00")
        assert breakdown.net_salary == Decimal("4680.00")

    @pytest.mark.asyncio
    async def test_missing_pay_grade_yields_zero_base(self, db_session, make_employee):
        """No pay grade is not an error."""
        employee = await make_employee()

        breakdown = await PayrollCalculationService(db_session).calculate_salary(employee, None, PERIOD)

        assert breakdown.base_salary == Decimal("0")
        assert breakdown.has_pay_grade is False

    def test_money_rounds_half_up(self):
        """Money rounds to cents, half up."""
        assert money(Decimal("10.005")) == Decimal("10.01")
        assert money(None) == Decimal("0.00")


class TestHREvents:
    """HR event inference."""

    def test_classify_termination(self):
        """'resign' anywhere in type or reason is a resignation."""
        assert classify_termination("Resignation", None) == HREvent.RESIGNED
        assert classify_termination(None, "Employee resigned") == HREvent.RESIGNED
        assert classify_termination("Dismissal", "misconduct") == HREvent.TERMINATED

    @pytest.mark.asyncio
    async def test_new_hire_listed_before_offboarding(self, db_session, make_employee):
        """Both events in one month keep NEW_HIRE first."""
        employee = await make_employee()
        db_session.add_all([
            EmployeeSigningBonus(
                employee_id=employee.id,
                given_amount=Decimal("1000"),
                status=AdjustmentStatus.APPROVED,
                created_at=IN_PERIOD,
            ),
            EmployeeTerminationBenefit(
                employee_id=employee.id,
                given_amount=Decimal("500"),
                type="Termination",
                status=AdjustmentStatus.APPROVED,
                created_at=IN_PERIOD,
            ),
        ])
        await db_session.commit()

        events = await PayrollEventsService(db_session).get_hr_events(employee.id, PERIOD)

        assert events == [HREvent.NEW_HIRE, HREvent.TERMINATED]

    @pytest.mark.asyncio
    async def test_pending_bonus_is_not_an_event(self, db_session, make_employee):
        """Only approved bonuses mark a new hire."""
        employee = await make_employee()
        db_session.add(EmployeeSigningBonus(
            employee_id=employee.id,
            given_amount=Decimal("1000"),
            status=AdjustmentStatus.PENDING,
            created_at=IN_PERIOD,
        ))
        await db_session.commit()

        assert await PayrollEventsService(db_session).get_hr_events(employee.id, PERIOD) == []


class TestGenerateDraft:
    """Draft payroll generation."""

    @pytest.mark.asyncio
    async def test_new_hire_scenario(self, db_session, pay_grade, make_employee):
        """A new hire's signing bonus reaches gross pay and flags a review."""
        employee = await make_employee(pay_grade=pay_grade)
        db_session.add(EmployeeSigningBonus(
            employee_id=employee.id,
            given_amount=Decimal("1000.00"),
            status=AdjustmentStatus.APPROVED,
            created_at=IN_PERIOD,
        ))
        await db_session.commit()

        result = await PayrollRunService(db_session).generate_draft(PERIOD, "TestCo")

        assert result["entity"] == "TestCo"
        assert result["status"] == PayrollRunStatus.DRAFT.value
        assert result["employees_count"] == 1
        assert result["failures"] == []

        row = result["employees"][0]
        assert row["employee_id"] == employee.id
        assert row["hr_events"] == ["NEW_HIRE"]
        assert row["bonus"] == Decimal("1000.00")
        assert row["gross_salary"] == Decimal("6000.00")
        assert row["tax"] == Decimal("600.00")
        assert row["insurance"] == Decimal("300.00")
        assert row["net_pay"] == Decimal("5100.00")
        assert row["has_exceptions"] is True
        assert any("New hire" in flag for flag in row["exceptions_flags"])
        assert result["total_net_pay"] == Decimal("5100.00")

    @pytest.mark.asyncio
    async def test_totals_match_detail_rows(self, db_session, pay_grade, make_employee):
        """Run count equals detail rows and total equals the sum of net pay."""
        for _ in range(3):
            await make_employee(pay_grade=pay_grade)
        await make_employee(pay_grade=pay_grade, status=EmployeeStatus.TERMINATED)

        result = await PayrollRunService(db_session).generate_draft(PERIOD, "TestCo")
        run = await PayrollRunService(db_session).get_payroll_run_by_id(result["run_id"])

        assert run.employees == 3
        assert await _detail_count(db_session, run.id) == 3
        assert run.total_net_pay == money(sum(row["net_pay"] for row in result["employees"]))
        assert run.total_net_pay == Decimal("12750.00")

    @pytest.mark.asyncio
    async def test_subset_of_employees(self, db_session, pay_grade, make_employee):
        """employee_ids limits the run to that subset."""
        first = await make_employee(pay_grade=pay_grade)
        await make_employee(pay_grade=pay_grade)

        result = await PayrollRunService(db_session).generate_draft(PERIOD, "TestCo", employee_ids=[first.id])

        assert [row["employee_id"] for row in result["employees"]] == [first.id]

    @pytest.mark.asyncio
    async def test_empty_subset_means_everyone(self, db_session, pay_grade, make_employee):
        """An empty employee_ids list generates for every active employee."""
        first = await make_employee(pay_grade=pay_grade)
        second = await make_employee(pay_grade=pay_grade)
        service = PayrollRunService(db_session)

        result = await service.generate_draft(PERIOD, "TestCo", employee_ids=[])

        assert result["employees_count"] == 2
        assert {row["employee_id"] for row in result["employees"]} == {first.id, second.id}
        assert len(await service.get_all_payroll_runs()) == 1

    @pytest.mark.asyncio
    async def test_no_employees(self, db_session):
        """Nothing eligible returns a message and creates no run."""
        service = PayrollRunService(db_session)

        result = await service.generate_draft(PERIOD, "TestCo")

        assert result == {"message": NO_EMPLOYEES_MESSAGE, "employees": []}
        assert await service.get_all_payroll_runs() == []

    @pytest.mark.asyncio
    async def test_failed_employee_is_isolated(self, db_session, pay_grade, make_employee, monkeypatch):
        """One employee failing leaves the others and the run intact."""
        healthy = await make_employee(pay_grade=pay_grade)
        broken = await make_employee(pay_grade=pay_grade)

        original = PayrollCalculationService.calculate_salary

        async def flaky(self, employee, grade, period):
            if employee.id == broken.id:
                raise RuntimeError("calculation exploded")
            return await original(self, employee, grade, period)

        monkeypatch.setattr(PayrollCalculationService, "calculate_salary", flaky)

        result = await PayrollRunService(db_session).generate_draft(PERIOD, "TestCo")

        assert result["employees_count"] == 1
        assert [row["employee_id"] for row in result["employees"]] == [healthy.id]
        assert result["failures"] == [{"employee_id": broken.id, "error": "calculation exploded"}]
        assert await _detail_count(db_session, result["payroll_run_id"]) == 1
        assert result["total_net_pay"] == Decimal("4250.00")

    @pytest.mark.asyncio
    async def test_penalty_reduces_net_pay(self, db_session, pay_grade, make_employee):
        """Approved penalties are deducted after net salary."""
        employee = await make_employee(pay_grade=pay_grade)
        db_session.add(EmployeePenalty(
            employee_id=employee.id,
            reason="Late reporting",
            amount=Decimal("250.00"),
            status=AdjustmentStatus.APPROVED,
            created_at=IN_PERIOD,
        ))
        await db_session.commit()

        result = await PayrollRunService(db_session).generate_draft(PERIOD, "TestCo")
        row = result["employees"][0]

        assert row["net_salary"] == Decimal("4250.00")
        assert row["penalties"] == Decimal("250.00")
        assert row["net_pay"] == Decimal("4000.00")
        assert row["deductions"] == Decimal("1000.00")


class TestRunQueries:
    """Reading payroll runs."""

    @pytest.mark.asyncio
    async def test_reads_are_idempotent(self, db_session, pay_grade, make_employee):
        """Repeated reads return the same run and rows."""
        await make_employee(pay_grade=pay_grade)
        await make_employee(pay_grade=pay_grade, with_bank=False)
        service = PayrollRunService(db_session)
        result = await service.generate_draft(PERIOD, "TestCo")

        first = await service.get_payroll_run_by_id(result["run_id"])
        second = await service.get_payroll_run_by_id(result["payroll_run_id"])
        assert first.id == second.id

        rows_a = await service.get_run_employees(result["run_id"])
        rows_b = await service.get_run_employees(result["run_id"])
        assert rows_a == rows_b
        assert len(rows_a) == 2

    @pytest.mark.asyncio
    async def test_only_exceptions_filter(self, db_session, pay_grade, make_employee):
        """only_exceptions keeps rows with a non-empty exception text."""
        await make_employee(pay_grade=pay_grade)
        unbanked = await make_employee(pay_grade=pay_grade, with_bank=False)
        service = PayrollRunService(db_session)
        result = await service.generate_draft(PERIOD, "TestCo")

        rows = await service.get_run_employees(result["run_id"], only_exceptions=True)

        assert [row["employee_id"] for row in rows] == [unbanked.id]
        assert rows[0]["exceptions"] == "Missing bank details"

    @pytest.mark.asyncio
    async def test_unknown_run(self, db_session):
        """Unknown run ids raise PayrollRunNotFoundException."""
        with pytest.raises(PayrollRunNotFoundException):
            await PayrollRunService(db_session).get_payroll_run_by_id("PR-2025-01-1")
