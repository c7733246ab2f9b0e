"""
PeopleDesk HR - Payroll Approval Workflow Tests
"""

from datetime import date

import pytest
from sqlalchemy import select

from app.models.employee import SystemRole
from app.models.notification import Notification, NotificationRecipient
from app.models.payroll import PaymentStatus, PayrollRunStatus
from app.services.payroll_approval_service import PayrollApprovalService
from app.services.payroll_run_service import PayrollRunService
from app.utils.error_handling import BadRequestException, InvalidStateTransitionException


async def _draft_run(db_session, pay_grade, make_employee, specialist=None):
    await make_employee(pay_grade=pay_grade)
    result = await PayrollRunService(db_session).generate_draft(
        date(2025, 11, 30), "TestCo", specialist_id=specialist.id if specialist else None
    )
    return result["run_id"]


async def _notified(db_session, employee_id, title):
    result = await db_session.execute(
        select(Notification.title)
        .join(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
        .where(NotificationRecipient.employee_id == employee_id)
    )
    return title in result.scalars().all()


class TestPayrollApprovalWorkflow:
    """Run lifecycle: draft -> review -> finance -> approved -> locked."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, db_session, pay_grade, make_employee, make_user):
        """A run moves through every approval stage and is marked paid."""
        specialist = await make_user(SystemRole.PAYROLL_SPECIALIST)
        manager = await make_user(SystemRole.PAYROLL_MANAGER)
        finance = await make_user(SystemRole.FINANCE_STAFF)
        run_id = await _draft_run(db_session, pay_grade, make_employee, specialist)
        service = PayrollApprovalService(db_session)

        run = await service.publish(run_id, specialist.id)
        assert run.status == PayrollRunStatus.UNDER_REVIEW
        assert await _notified(db_session, manager.id, "Payroll Run Awaiting Review")

        run = await service.manager_approve(run_id, manager.id)
        assert run.status == PayrollRunStatus.PENDING_FINANCE_APPROVAL
        assert run.payroll_manager_id == manager.id
        assert await _notified(db_session, finance.id, "Payroll Run Awaiting Finance Approval")

        run = await service.finance_approve(run_id, finance.id)
        assert run.status == PayrollRunStatus.APPROVED
        assert run.payment_status == PaymentStatus.PAID
        assert await _notified(db_session, specialist.id, "Payroll Run Approved")

        run = await service.freeze(run_id)
        assert run.status == PayrollRunStatus.LOCKED

        run = await service.unfreeze(run_id, "Correct a bank account")
        assert run.status == PayrollRunStatus.UNLOCKED
        assert run.unlock_reason == "Correct a bank account"

    @pytest.mark.asyncio
    async def test_reject_returns_run_to_specialist(self, db_session, pay_grade, make_employee, make_user):
        """A rejected run records the reason and can be republished."""
        specialist = await make_user(SystemRole.PAYROLL_SPECIALIST)
        run_id = await _draft_run(db_session, pay_grade, make_employee, specialist)
        service = PayrollApprovalService(db_session)
        await service.publish(run_id)

        run = await service.reject(run_id, "  Wrong period  ")

        assert run.status == PayrollRunStatus.REJECTED
        assert run.rejection_reason == "Wrong period"
        assert await _notified(db_session, specialist.id, "Payroll Run Rejected")

        run = await service.publish(run_id)
        assert run.status == PayrollRunStatus.UNDER_REVIEW
        assert run.rejection_reason is None

    @pytest.mark.asyncio
    async def test_edit_period_of_rejected_run(self, db_session, pay_grade, make_employee):
        """Only a rejected run can have its period corrected."""
        run_id = await _draft_run(db_session, pay_grade, make_employee)
        service = PayrollApprovalService(db_session)

        with pytest.raises(InvalidStateTransitionException):
            await service.edit_period(run_id, date(2025, 12, 31))

        await service.publish(run_id)
        with pytest.raises(InvalidStateTransitionException):
            await service.edit_period(run_id, date(2025, 12, 31))

        await service.reject(run_id, "Wrong period")
        run = await service.edit_period(run_id, date(2025, 12, 31))

        assert run.payroll_period == date(2025, 12, 31)
        assert run.status == PayrollRunStatus.REJECTED

    @pytest.mark.asyncio
    async def test_invalid_transition(self, db_session, pay_grade, make_employee):
        """A draft cannot be finance-approved or frozen."""
        run_id = await _draft_run(db_session, pay_grade, make_employee)
        service = PayrollApprovalService(db_session)

        with pytest.raises(InvalidStateTransitionException):
            await service.finance_approve(run_id)
        with pytest.raises(InvalidStateTransitionException):
            await service.freeze(run_id)

    @pytest.mark.asyncio
    async def test_reasons_are_required(self, db_session, pay_grade, make_employee):
        """Reject and unfreeze need a non-blank reason."""
        run_id = await _draft_run(db_session, pay_grade, make_employee)
        service = PayrollApprovalService(db_session)

        with pytest.raises(BadRequestException):
            await service.reject(run_id, "   ")
        with pytest.raises(BadRequestException):
            await service.unfreeze(run_id, "")

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_block(self, db_session, pay_grade, make_employee):
        """With nobody holding the manager role, publishing still succeeds."""
        run_id = await _draft_run(db_session, pay_grade, make_employee)

        run = await PayrollApprovalService(db_session).publish(run_id)

        assert run.status == PayrollRunStatus.UNDER_REVIEW
