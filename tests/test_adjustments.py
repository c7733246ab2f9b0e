"""
PeopleDesk HR - Payroll Adjustments and Offboarding Tests
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.models.offboarding import TerminationInitiation, TerminationStatus
from app.models.payroll import AdjustmentStatus
from app.models.payroll_config import ConfigStatus, SigningBonusPolicy, TerminationBenefitPolicy
from app.services.offboarding_service import OffboardingService
from app.services.payroll_adjustment_service import PayrollAdjustmentService
from app.utils.error_handling import (
    BadRequestException,
    ForbiddenOperationException,
    NotFoundException,
)


@pytest.fixture
def policies(db_session):
    async def _create():
        db_session.add_all([
            SigningBonusPolicy(position_name="Engineer", amount=Decimal("1000.00"), status=ConfigStatus.APPROVED),
            TerminationBenefitPolicy(name="End of Service", amount=Decimal("3000.00"), status=ConfigStatus.APPROVED),
        ])
        await db_session.commit()

    return _create


class TestSigningBonuses:
    """Signing bonus review."""

    @pytest.mark.asyncio
    async def test_amount_defaults_to_policy(self, db_session, make_employee, policies):
        """Without an explicit amount the policy amount is granted."""
        await policies()
        employee = await make_employee()

        bonus = await PayrollAdjustmentService(db_session).create_signing_bonus(employee.id, "Engineer")

        assert bonus.given_amount == Decimal("1000.00")
        assert bonus.status == AdjustmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_position(self, db_session, make_employee):
        """A position without a policy is a 404."""
        employee = await make_employee()

        with pytest.raises(NotFoundException, match="Signing bonus policy not found for position: Pilot"):
            await PayrollAdjustmentService(db_session).create_signing_bonus(employee.id, "Pilot")

    @pytest.mark.asyncio
    async def test_only_pending_can_be_reviewed_or_edited(self, db_session, make_employee, policies):
        """Approved bonuses are frozen."""
        await policies()
        employee = await make_employee()
        service = PayrollAdjustmentService(db_session)
        bonus = await service.create_signing_bonus(employee.id, "Engineer")

        edited = await service.edit_signing_bonus(bonus.id, Decimal("1500.00"))
        assert edited.given_amount == Decimal("1500.00")

        approved = await service.approve_signing_bonus(bonus.id)
        assert approved.status == AdjustmentStatus.APPROVED

        with pytest.raises(ForbiddenOperationException):
            await service.reject_signing_bonus(bonus.id)
        with pytest.raises(ForbiddenOperationException):
            await service.edit_signing_bonus(bonus.id, Decimal("10.00"))

    @pytest.mark.asyncio
    async def test_negative_amount(self, db_session, make_employee, policies):
        """Negative amounts are rejected."""
        await policies()
        employee = await make_employee()

        with pytest.raises(BadRequestException):
            await PayrollAdjustmentService(db_session).create_signing_bonus(
                employee.id, "Engineer", Decimal("-1")
            )


class TestTerminationBenefitsAndPenalties:
    """Termination benefits and penalties."""

    @pytest.mark.asyncio
    async def test_termination_benefit(self, db_session, make_employee, policies):
        """Benefits come from a named policy and are filtered by status."""
        await policies()
        employee = await make_employee()
        service = PayrollAdjustmentService(db_session)

        benefit = await service.create_termination_benefit(
            employee.id, "End of Service", type="TERMINATION", reason="Restructuring"
        )
        await service.reject_termination_benefit(benefit.id)

        assert await service.list_termination_benefits(status=AdjustmentStatus.PENDING) == []
        rejected = await service.list_termination_benefits(status=AdjustmentStatus.REJECTED)
        assert [item.id for item in rejected] == [benefit.id]

    @pytest.mark.asyncio
    async def test_penalty_must_be_positive(self, db_session, make_employee):
        """Zero penalties are rejected."""
        employee = await make_employee()

        with pytest.raises(BadRequestException, match="greater than zero"):
            await PayrollAdjustmentService(db_session).create_penalty(employee.id, "Late", Decimal("0"))

    @pytest.mark.asyncio
    async def test_penalty_for_unknown_employee(self, db_session):
        """Penalties need an existing employee."""
        with pytest.raises(NotFoundException):
            await PayrollAdjustmentService(db_session).create_penalty(uuid4(), "Late", Decimal("50"))


class TestTerminationReviews:
    """Termination review lifecycle."""

    @pytest.mark.asyncio
    async def test_initiate_and_update(self, db_session, make_employee):
        """A review opens PENDING and HR can move it on."""
        employee = await make_employee()
        service = OffboardingService(db_session)

        review = await service.initiate_termination_review(
            employee.employee_number, TerminationInitiation.HR, "  Gross misconduct  "
        )
        assert review.status == TerminationStatus.PENDING
        assert review.reason == "Gross misconduct"

        updated = await service.update_status(review.id, TerminationStatus.UNDER_REVIEW, "Hearing scheduled")
        assert updated.hr_comments == "Hearing scheduled"
        assert [item.id for item in await service.list_reviews(employee_id=employee.id)] == [review.id]

    @pytest.mark.asyncio
    async def test_unknown_employee_number(self, db_session):
        """Unknown employee numbers are a 404."""
        with pytest.raises(NotFoundException, match="Employee not found: EMP-9999"):
            await OffboardingService(db_session).initiate_termination_review(
                "EMP-9999", TerminationInitiation.HR, "Reason"
            )

    @pytest.mark.asyncio
    async def test_reason_required(self, db_session, make_employee):
        """Blank reasons are rejected."""
        employee = await make_employee()

        with pytest.raises(BadRequestException):
            await OffboardingService(db_session).initiate_termination_review(
                employee.employee_number, TerminationInitiation.HR, "   "
            )
