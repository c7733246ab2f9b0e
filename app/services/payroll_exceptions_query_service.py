"""
PeopleDesk HR - Payroll Exceptions Query Service

Lists, clears and resolves payroll exceptions of a run.

Structured PayrollExceptionEntry rows are the source of truth. Details
written before entries existed carry only the "; "-joined text, which is
parsed on read. The text field is rebuilt from the pending entries after
every change.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import EmployeeProfile
from app.models.payroll import (
    EmployeePayrollDetail,
    ExceptionStatus,
    PayrollExceptionEntry,
    PayrollRun,
)
from app.services.payroll_exceptions_service import join_exceptions, parse_exceptions
from app.services.payroll_run_service import PayrollRunService
from app.utils.error_handling import BadRequestException, NotFoundException

logger = logging.getLogger(__name__)


def exception_id(detail_id: uuid.UUID, position: int) -> str:
    return f"{detail_id}-{position}"


def split_exception_id(value: str) -> Tuple[uuid.UUID, int]:
    """Inverse of exception_id; the position follows the last '-'."""
    detail_part, _, position_part = value.rpartition("-")
    try:
        return uuid.UUID(detail_part), int(position_part)
    except ValueError:
        raise BadRequestException(f"Invalid exception id: {value}", field="exception_id")


class PayrollExceptionsQueryService:
    """Read and resolve payroll exceptions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.runs = PayrollRunService(db)

    async def _details(
        self, run: PayrollRun, employee_id: Optional[uuid.UUID] = None
    ) -> List[Tuple[EmployeePayrollDetail, EmployeeProfile]]:
        query = (
            select(EmployeePayrollDetail, EmployeeProfile)
            .join(EmployeeProfile, EmployeeProfile.id == EmployeePayrollDetail.employee_id)
            .where(EmployeePayrollDetail.payroll_run_id == run.id)
            .order_by(EmployeeProfile.employee_number)
        )
        if employee_id:
            query = query.where(EmployeePayrollDetail.employee_id == employee_id)
        result = await self.db.execute(query)
        return list(result.all())

    async def _entries(self, detail_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[PayrollExceptionEntry]]:
        entries: Dict[uuid.UUID, List[PayrollExceptionEntry]] = {}
        if not detail_ids:
            return entries
        result = await self.db.execute(
            select(PayrollExceptionEntry)
            .where(PayrollExceptionEntry.detail_id.in_(detail_ids))
            .order_by(PayrollExceptionEntry.position)
        )
        for entry in result.scalars().all():
            entries.setdefault(entry.detail_id, []).append(entry)
        return entries

    async def get_exceptions(
        self,
        payroll_run_id: Union[uuid.UUID, str],
        employee_id: Optional[uuid.UUID] = None,
    ) -> List[Dict[str, Any]]:
        """Pending exceptions of a run, optionally for one employee."""
        run = await self.runs.get_payroll_run_by_id(payroll_run_id)
        rows = await self._details(run, employee_id)
        entries_by_detail = await self._entries([detail.id for detail, _ in rows])

        exceptions: List[Dict[str, Any]] = []
        for detail, employee in rows:
            base = {
                "payroll_run_id": run.id,
                "employee_id": employee.id,
                "employee_number": employee.employee_number,
                "employee_name": employee.full_name,
                "status": ExceptionStatus.PENDING.value,
            }
            entries = entries_by_detail.get(detail.id)
            if entries:
                for entry in entries:
                    if entry.status != ExceptionStatus.PENDING:
                        continue
                    exceptions.append({
                        **base,
                        "id": exception_id(detail.id, entry.position),
                        "type": entry.type.value,
                        "severity": entry.severity.value,
                        "description": entry.description,
                    })
            else:
                # Text-only detail
                for position, parsed in enumerate(parse_exceptions(detail.exceptions)):
                    exceptions.append({
                        **base,
                        "id": exception_id(detail.id, position),
                        "type": parsed.type.value,
                        "severity": parsed.severity.value,
                        "description": parsed.description,
                    })
        return exceptions

    async def _sync_run_count(self, run: PayrollRun) -> None:
        result = await self.db.execute(
            select(EmployeePayrollDetail.exceptions)
            .where(EmployeePayrollDetail.payroll_run_id == run.id)
        )
        run.exceptions = sum(len(parse_exceptions(text)) for text in result.scalars().all())

    async def clear_exceptions(
        self,
        payroll_run_id: Union[uuid.UUID, str],
        employee_id: uuid.UUID,
    ) -> Dict[str, Any]:
        """Resolve every exception of one employee in a run."""
        run = await self.runs.get_payroll_run_by_id(payroll_run_id)
        rows = await self._details(run, employee_id)
        if not rows:
            raise NotFoundException(
                "EmployeePayrollDetail",
                message="Employee payroll details not found",
            )

        now = datetime.utcnow()
        modified = 0
        entries_by_detail = await self._entries([detail.id for detail, _ in rows])
        for detail, _ in rows:
            for entry in entries_by_detail.get(detail.id, []):
                if entry.status == ExceptionStatus.PENDING:
                    entry.status = ExceptionStatus.RESOLVED
                    entry.resolved_at = now
            if detail.exceptions:
                modified += 1
            detail.exceptions = ""

        await self.db.flush()
        await self._sync_run_count(run)
        await self.db.commit()

        logger.info(f"Cleared payroll exceptions for employee {employee_id} in run {run.run_id}")
        return {
            "success": True,
            "message": "Exceptions cleared successfully",
            "modified": modified,
        }

    async def resolve_exception(
        self,
        payroll_run_id: Union[uuid.UUID, str],
        exception_id_value: str,
    ) -> Dict[str, Any]:
        """Resolve a single exception by its '<detail id>-<position>' id."""
        detail_id, position = split_exception_id(exception_id_value)
        run = await self.runs.get_payroll_run_by_id(payroll_run_id)

        detail = await self.db.get(EmployeePayrollDetail, detail_id)
        if not detail or detail.payroll_run_id != run.id:
            raise NotFoundException("PayrollException", exception_id_value)

        entries = (await self._entries([detail.id])).get(detail.id, [])
        if not entries:
            # Promote text-only exceptions to entries so one can be resolved
            for index, parsed in enumerate(parse_exceptions(detail.exceptions)):
                entry = PayrollExceptionEntry(
                    detail_id=detail.id,
                    payroll_run_id=run.id,
                    employee_id=detail.employee_id,
                    position=index,
                    type=parsed.type,
                    severity=parsed.severity,
                    description=parsed.description,
                )
                self.db.add(entry)
                entries.append(entry)

        target = next(
            (entry for entry in entries if entry.position == position and entry.status == ExceptionStatus.PENDING),
            None,
        )
        if target is None:
            raise NotFoundException("PayrollException", exception_id_value)

        target.status = ExceptionStatus.RESOLVED
        target.resolved_at = datetime.utcnow()
        detail.exceptions = join_exceptions(
            entry.description for entry in entries if entry.status == ExceptionStatus.PENDING
        )

        await self.db.flush()
        await self._sync_run_count(run)
        await self.db.commit()

        logger.info(f"Resolved payroll exception {exception_id_value} in run {run.run_id}")
        return {
            "success": True,
            "message": "Exception resolved successfully",
            "id": exception_id_value,
            "remaining": detail.exceptions,
        }
