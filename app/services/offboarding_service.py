"""
PeopleDesk HR - Offboarding Service

Termination reviews opened by employees, managers, HR or the performance
module.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.offboarding import TerminationInitiation, TerminationRequest, TerminationStatus
from app.services.employee_service import EmployeeService
from app.utils.error_handling import BadRequestException, NotFoundException

logger = logging.getLogger(__name__)


class OffboardingService:
    """Service for termination reviews."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)

    async def initiate_termination_review(
        self,
        employee_number: str,
        initiator: TerminationInitiation,
        reason: str,
        hr_comments: Optional[str] = None,
        commit: bool = True,
    ) -> TerminationRequest:
        """
        Open a termination review for an employee.

        Raises:
            NotFoundException: no employee with that number
        """
        if not reason or not reason.strip():
            raise BadRequestException("Termination reason is required", field="reason")

        employee = await self.employees.get_employee_by_number(employee_number)
        if not employee:
            raise NotFoundException(
                "Employee",
                message=f"Employee not found: {employee_number}",
            )

        request = TerminationRequest(
            employee_id=employee.id,
            initiator=initiator,
            reason=reason.strip(),
            hr_comments=hr_comments,
            status=TerminationStatus.PENDING,
        )
        self.db.add(request)
        if commit:
            await self.db.commit()
            await self.db.refresh(request)
        else:
            await self.db.flush()

        logger.info(
            f"Termination review {request.id} opened for {employee_number} by {initiator.value}"
        )
        return request

    async def list_reviews(
        self,
        status: Optional[TerminationStatus] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> List[TerminationRequest]:
        query = select(TerminationRequest).order_by(TerminationRequest.created_at.desc())
        if status:
            query = query.where(TerminationRequest.status == status)
        if employee_id:
            query = query.where(TerminationRequest.employee_id == employee_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_status(
        self,
        request_id: uuid.UUID,
        status: TerminationStatus,
        hr_comments: Optional[str] = None,
    ) -> TerminationRequest:
        request = await self.db.get(TerminationRequest, request_id)
        if not request:
            raise NotFoundException("TerminationRequest", request_id)

        request.status = status
        if hr_comments is not None:
            request.hr_comments = hr_comments
        await self.db.commit()
        await self.db.refresh(request)

        logger.info(f"Termination review {request_id} set to {status.value}")
        return request
