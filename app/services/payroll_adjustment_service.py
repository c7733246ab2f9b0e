"""
PeopleDesk HR - Payroll Adjustment Service

Signing bonuses, termination/resignation benefits and penalties that feed
draft payroll generation. Only APPROVED adjustments are picked up by the
salary calculation.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll import (
    AdjustmentStatus,
    EmployeePenalty,
    EmployeeSigningBonus,
    EmployeeTerminationBenefit,
)
from app.models.payroll_config import SigningBonusPolicy, TerminationBenefitPolicy
from app.services.employee_service import EmployeeService
from app.utils.error_handling import (
    BadRequestException,
    ForbiddenOperationException,
    NotFoundException,
)

logger = logging.getLogger(__name__)


def _positive_amount(amount: Optional[Decimal], field: str) -> None:
    if amount is not None and amount < 0:
        raise BadRequestException(f"{field} must not be negative", field=field)


class PayrollAdjustmentService:
    """Create, review and edit employee payroll adjustments."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)

    # ===========================================
    # SHARED
    # ===========================================

    async def _get(self, model: Type, record_id: uuid.UUID, label: str):
        record = await self.db.get(model, record_id)
        if not record:
            raise NotFoundException(label, record_id)
        return record

    async def _list(self, model: Type, status: Optional[AdjustmentStatus], employee_id: Optional[uuid.UUID]) -> List[Any]:
        query = select(model).order_by(model.created_at.desc())
        if status:
            query = query.where(model.status == status)
        if employee_id:
            query = query.where(model.employee_id == employee_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _set_status(self, model: Type, record_id: uuid.UUID, label: str, status: AdjustmentStatus):
        record = await self._get(model, record_id, label)
        if record.status != AdjustmentStatus.PENDING:
            raise ForbiddenOperationException(
                f"Cannot change {label} with status '{record.status.value}'. Only pending records can be reviewed.",
                resource_type=label,
            )
        record.status = status
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"{label} {record.id} {status.value}")
        return record

    async def _edit_amount(self, model: Type, record_id: uuid.UUID, label: str, amount: Decimal):
        _positive_amount(amount, "given_amount")
        record = await self._get(model, record_id, label)
        if record.status != AdjustmentStatus.PENDING:
            raise ForbiddenOperationException(
                f"Cannot edit {label} with status '{record.status.value}'. Only pending records can be edited.",
                resource_type=label,
            )
        record.given_amount = amount
        await self.db.commit()
        await self.db.refresh(record)
        return record

    # ===========================================
    # SIGNING BONUSES
    # ===========================================

    async def create_signing_bonus(
        self,
        employee_id: uuid.UUID,
        position_name: str,
        given_amount: Optional[Decimal] = None,
    ) -> EmployeeSigningBonus:
        """Grant a signing bonus from the policy for a position."""
        _positive_amount(given_amount, "given_amount")
        await self.employees.get_employee_or_404(employee_id)

        result = await self.db.execute(
            select(SigningBonusPolicy).where(SigningBonusPolicy.position_name == position_name)
        )
        policy = result.scalar_one_or_none()
        if not policy:
            raise NotFoundException(
                "SigningBonusPolicy",
                message=f"Signing bonus policy not found for position: {position_name}",
            )

        bonus = EmployeeSigningBonus(
            employee_id=employee_id,
            signing_bonus_policy_id=policy.id,
            given_amount=given_amount if given_amount is not None else policy.amount,
            status=AdjustmentStatus.PENDING,
        )
        self.db.add(bonus)
        await self.db.commit()
        await self.db.refresh(bonus)
        logger.info(f"Created signing bonus {bonus.id} for employee {employee_id}")
        return bonus

    async def list_signing_bonuses(
        self, status: Optional[AdjustmentStatus] = None, employee_id: Optional[uuid.UUID] = None
    ) -> List[EmployeeSigningBonus]:
        return await self._list(EmployeeSigningBonus, status, employee_id)

    async def approve_signing_bonus(self, bonus_id: uuid.UUID) -> EmployeeSigningBonus:
        return await self._set_status(EmployeeSigningBonus, bonus_id, "Signing bonus", AdjustmentStatus.APPROVED)

    async def reject_signing_bonus(self, bonus_id: uuid.UUID) -> EmployeeSigningBonus:
        return await self._set_status(EmployeeSigningBonus, bonus_id, "Signing bonus", AdjustmentStatus.REJECTED)

    async def edit_signing_bonus(self, bonus_id: uuid.UUID, given_amount: Decimal) -> EmployeeSigningBonus:
        return await self._edit_amount(EmployeeSigningBonus, bonus_id, "Signing bonus", given_amount)

    # ===========================================
    # TERMINATION / RESIGNATION BENEFITS
    # ===========================================

    async def create_termination_benefit(
        self,
        employee_id: uuid.UUID,
        benefit_name: str,
        type: Optional[str] = None,
        reason: Optional[str] = None,
        given_amount: Optional[Decimal] = None,
    ) -> EmployeeTerminationBenefit:
        """Grant a termination or resignation benefit from a named policy."""
        _positive_amount(given_amount, "given_amount")
        await self.employees.get_employee_or_404(employee_id)

        result = await self.db.execute(
            select(TerminationBenefitPolicy).where(TerminationBenefitPolicy.name == benefit_name)
        )
        policy = result.scalar_one_or_none()
        if not policy:
            raise NotFoundException(
                "TerminationBenefitPolicy",
                message=f"Termination benefit policy not found: {benefit_name}",
            )

        benefit = EmployeeTerminationBenefit(
            employee_id=employee_id,
            benefit_policy_id=policy.id,
            type=type,
            reason=reason,
            given_amount=given_amount if given_amount is not None else policy.amount,
            status=AdjustmentStatus.PENDING,
        )
        self.db.add(benefit)
        await self.db.commit()
        await self.db.refresh(benefit)
        logger.info(f"Created termination benefit {benefit.id} for employee {employee_id}")
        return benefit

    async def list_termination_benefits(
        self, status: Optional[AdjustmentStatus] = None, employee_id: Optional[uuid.UUID] = None
    ) -> List[EmployeeTerminationBenefit]:
        return await self._list(EmployeeTerminationBenefit, status, employee_id)

    async def approve_termination_benefit(self, benefit_id: uuid.UUID) -> EmployeeTerminationBenefit:
        return await self._set_status(
            EmployeeTerminationBenefit, benefit_id, "Termination benefit", AdjustmentStatus.APPROVED
        )

    async def reject_termination_benefit(self, benefit_id: uuid.UUID) -> EmployeeTerminationBenefit:
        return await self._set_status(
            EmployeeTerminationBenefit, benefit_id, "Termination benefit", AdjustmentStatus.REJECTED
        )

    async def edit_termination_benefit(self, benefit_id: uuid.UUID, given_amount: Decimal) -> EmployeeTerminationBenefit:
        return await self._edit_amount(EmployeeTerminationBenefit, benefit_id, "Termination benefit", given_amount)

    # ===========================================
    # PENALTIES
    # ===========================================

    async def create_penalty(self, employee_id: uuid.UUID, reason: str, amount: Decimal) -> EmployeePenalty:
        if amount is None or amount <= 0:
            raise BadRequestException("Penalty amount must be greater than zero", field="amount")
        await self.employees.get_employee_or_404(employee_id)

        penalty = EmployeePenalty(
            employee_id=employee_id,
            reason=reason,
            amount=amount,
            status=AdjustmentStatus.PENDING,
        )
        self.db.add(penalty)
        await self.db.commit()
        await self.db.refresh(penalty)
        logger.info(f"Created penalty {penalty.id} for employee {employee_id}")
        return penalty

    async def list_penalties(
        self, status: Optional[AdjustmentStatus] = None, employee_id: Optional[uuid.UUID] = None
    ) -> List[EmployeePenalty]:
        return await self._list(EmployeePenalty, status, employee_id)

    async def approve_penalty(self, penalty_id: uuid.UUID) -> EmployeePenalty:
        return await self._set_status(EmployeePenalty, penalty_id, "Penalty", AdjustmentStatus.APPROVED)
