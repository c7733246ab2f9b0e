"""
PeopleDesk HR - Payroll Approval Service

Review and approval workflow for payroll runs:

    DRAFT | REJECTED | UNLOCKED --publish--> UNDER_REVIEW
    UNDER_REVIEW --manager_approve--> PENDING_FINANCE_APPROVAL
    UNDER_REVIEW | PENDING_FINANCE_APPROVAL --reject--> REJECTED
    PENDING_FINANCE_APPROVAL --finance_approve--> APPROVED (payment PAID)
    APPROVED | UNLOCKED --freeze--> LOCKED
    LOCKED --unfreeze--> UNLOCKED

    REJECTED runs may have their payroll period corrected before republishing.

Notifications are side effects: a failed delivery never blocks the
transition.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Iterable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import SystemRole
from app.models.notification import NotificationType
from app.models.payroll import PaymentStatus, PayrollRun, PayrollRunStatus
from app.services.notification_service import NotificationSink
from app.services.payroll_run_service import PayrollRunService
from app.utils.error_handling import BadRequestException, InvalidStateTransitionException

logger = logging.getLogger(__name__)

RELATED_MODULE = "Payroll"


class PayrollApprovalService:
    """Moves payroll runs through review, approval and locking."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.runs = PayrollRunService(db)
        self.notifications = NotificationSink(db)

    async def _load(
        self,
        run_id: Union[uuid.UUID, str],
        allowed: Iterable[PayrollRunStatus],
        action: str,
    ) -> PayrollRun:
        run = await self.runs.get_payroll_run_by_id(run_id)
        if run.status not in set(allowed):
            raise InvalidStateTransitionException("payroll run", run.status.value, action)
        return run

    async def _save(self, run: PayrollRun, action: str) -> PayrollRun:
        await self.db.commit()
        await self.db.refresh(run)
        logger.info(f"Payroll run {run.run_id}: {action} -> {run.status.value}")
        return run

    async def publish(self, run_id: Union[uuid.UUID, str], specialist_id: Optional[uuid.UUID] = None) -> PayrollRun:
        """Submit a run for manager review."""
        run = await self._load(
            run_id,
            (PayrollRunStatus.DRAFT, PayrollRunStatus.REJECTED, PayrollRunStatus.UNLOCKED),
            "publish",
        )
        run.status = PayrollRunStatus.UNDER_REVIEW
        run.rejection_reason = None
        if specialist_id:
            run.payroll_specialist_id = specialist_id

        await self.notifications.notify(
            "Payroll Run Awaiting Review",
            f"Payroll run {run.run_id} for {run.entity} has been submitted for review.",
            notification_type=NotificationType.INFO,
            roles=[SystemRole.PAYROLL_MANAGER],
            related_module=RELATED_MODULE,
            related_entity_id=run.id,
        )
        return await self._save(run, "publish")

    async def manager_approve(self, run_id: Union[uuid.UUID, str], manager_id: Optional[uuid.UUID] = None) -> PayrollRun:
        run = await self._load(run_id, (PayrollRunStatus.UNDER_REVIEW,), "approve")
        run.status = PayrollRunStatus.PENDING_FINANCE_APPROVAL
        run.payroll_manager_id = manager_id
        run.manager_approval_date = datetime.utcnow()

        await self.notifications.notify(
            "Payroll Run Awaiting Finance Approval",
            f"Payroll run {run.run_id} was approved by the payroll manager and awaits finance approval.",
            notification_type=NotificationType.INFO,
            roles=[SystemRole.FINANCE_STAFF],
            related_module=RELATED_MODULE,
            related_entity_id=run.id,
        )
        return await self._save(run, "manager approval")

    async def reject(
        self,
        run_id: Union[uuid.UUID, str],
        reason: str,
        rejected_by_id: Optional[uuid.UUID] = None,
    ) -> PayrollRun:
        if not reason or not reason.strip():
            raise BadRequestException("Rejection reason is required", field="reason")

        run = await self._load(
            run_id,
            (PayrollRunStatus.UNDER_REVIEW, PayrollRunStatus.PENDING_FINANCE_APPROVAL),
            "reject",
        )
        if run.status == PayrollRunStatus.PENDING_FINANCE_APPROVAL:
            run.finance_staff_id = rejected_by_id
        else:
            run.payroll_manager_id = rejected_by_id
        run.status = PayrollRunStatus.REJECTED
        run.rejection_reason = reason.strip()

        if run.payroll_specialist_id:
            await self.notifications.notify(
                "Payroll Run Rejected",
                f"Payroll run {run.run_id} was rejected: {run.rejection_reason}",
                notification_type=NotificationType.WARNING,
                recipient_ids=[run.payroll_specialist_id],
                related_module=RELATED_MODULE,
                related_entity_id=run.id,
            )
        return await self._save(run, "reject")

    async def finance_approve(self, run_id: Union[uuid.UUID, str], finance_staff_id: Optional[uuid.UUID] = None) -> PayrollRun:
        run = await self._load(run_id, (PayrollRunStatus.PENDING_FINANCE_APPROVAL,), "approve")
        run.status = PayrollRunStatus.APPROVED
        run.payment_status = PaymentStatus.PAID
        run.finance_staff_id = finance_staff_id
        run.finance_approval_date = datetime.utcnow()

        await self.notifications.notify(
            "Payroll Run Approved",
            f"Payroll run {run.run_id} has been approved by finance and marked as paid.",
            notification_type=NotificationType.INFO,
            recipient_ids=[run.payroll_specialist_id] if run.payroll_specialist_id else None,
            roles=[SystemRole.PAYROLL_MANAGER],
            related_module=RELATED_MODULE,
            related_entity_id=run.id,
        )
        return await self._save(run, "finance approval")

    async def edit_period(self, run_id: Union[uuid.UUID, str], payroll_period: date) -> PayrollRun:
        """Correct the payroll period of a rejected run."""
        run = await self._load(run_id, (PayrollRunStatus.REJECTED,), "edit period")
        run.payroll_period = payroll_period
        return await self._save(run, "edit period")

    async def freeze(self, run_id: Union[uuid.UUID, str]) -> PayrollRun:
        run = await self._load(run_id, (PayrollRunStatus.APPROVED, PayrollRunStatus.UNLOCKED), "freeze")
        run.status = PayrollRunStatus.LOCKED
        return await self._save(run, "freeze")

    async def unfreeze(self, run_id: Union[uuid.UUID, str], reason: str) -> PayrollRun:
        if not reason or not reason.strip():
            raise BadRequestException("Unlock reason is required", field="reason")
        run = await self._load(run_id, (PayrollRunStatus.LOCKED,), "unfreeze")
        run.status = PayrollRunStatus.UNLOCKED
        run.unlock_reason = reason.strip()
        return await self._save(run, "unfreeze")
