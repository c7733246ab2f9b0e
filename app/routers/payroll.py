"""
PeopleDesk HR - Payroll Execution Router

Draft generation, run review and approval, exceptions, and the HR payroll
events (signing bonuses, termination benefits, penalties) that feed
generation.

Run paths accept either the run's UUID or its human-readable run id.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_route
from app.models.payroll import AdjustmentStatus
from app.schemas.payroll import (
    AdjustmentAmountUpdate,
    ClearExceptionsResponse,
    DraftGenerationRequest,
    EditPeriodRequest,
    PayrollExceptionResponse,
    PayrollRunResponse,
    PenaltyCreate,
    PenaltyResponse,
    RejectRunRequest,
    ResolveExceptionResponse,
    RunDetailResponse,
    SigningBonusCreate,
    SigningBonusResponse,
    TerminationBenefitCreate,
    TerminationBenefitResponse,
    UnfreezeRunRequest,
)
from app.services.payroll_adjustment_service import PayrollAdjustmentService
from app.services.payroll_approval_service import PayrollApprovalService
from app.services.payroll_exceptions_query_service import PayrollExceptionsQueryService
from app.services.payroll_run_service import PayrollRunService

router = APIRouter()


# ===========================================
# DRAFT GENERATION & RUNS
# ===========================================

@router.post(
    "/draft",
    response_model=Dict[str, Any],
    status_code=status.HTTP_201_CREATED,
    summary="Generate draft payroll",
    description="Calculate salaries for all eligible employees and persist a DRAFT run.",
)
async def generate_draft(
    request: DraftGenerationRequest,
    auth: AuthContext = Depends(require_route("payroll.generate_draft")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollRunService(db).generate_draft(
        payroll_period=request.payroll_period,
        entity=request.entity,
        employee_ids=request.employee_ids,
        specialist_id=auth.employee_id,
    )


@router.get(
    "/runs",
    response_model=List[PayrollRunResponse],
    summary="List payroll runs",
)
async def list_runs(
    auth: AuthContext = Depends(require_route("payroll.list_runs")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollRunService(db).get_all_payroll_runs()


@router.get(
    "/runs/{run_id}",
    response_model=PayrollRunResponse,
    summary="Get payroll run",
)
async def get_run(
    run_id: str,
    auth: AuthContext = Depends(require_route("payroll.get_run")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollRunService(db).get_payroll_run_by_id(run_id)


@router.get(
    "/runs/{run_id}/employees",
    response_model=List[RunDetailResponse],
    summary="Employee details of a run",
)
async def get_run_employees(
    run_id: str,
    only_exceptions: bool = Query(False),
    auth: AuthContext = Depends(require_route("payroll.run_employees")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollRunService(db).get_run_employees(run_id, only_exceptions=only_exceptions)


# ===========================================
# EXCEPTIONS
# ===========================================

@router.get(
    "/runs/{run_id}/exceptions",
    response_model=List[PayrollExceptionResponse],
    summary="Pending exceptions of a run",
)
async def get_run_exceptions(
    run_id: str,
    employee_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("payroll.run_exceptions")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollExceptionsQueryService(db).get_exceptions(run_id, employee_id)


@router.get(
    "/exceptions",
    response_model=List[PayrollExceptionResponse],
    summary="Pending exceptions",
)
async def get_exceptions(
    payroll_run_id: str = Query(...),
    employee_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("payroll.exceptions")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollExceptionsQueryService(db).get_exceptions(payroll_run_id, employee_id)


@router.post(
    "/runs/{run_id}/employees/{employee_id}/exceptions/clear",
    response_model=ClearExceptionsResponse,
    summary="Clear an employee's exceptions",
)
async def clear_exceptions(
    run_id: str,
    employee_id: UUID,
    auth: AuthContext = Depends(require_route("payroll.clear_exceptions")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollExceptionsQueryService(db).clear_exceptions(run_id, employee_id)


@router.post(
    "/runs/{run_id}/exceptions/{exception_id}/resolve",
    response_model=ResolveExceptionResponse,
    summary="Resolve one exception",
)
async def resolve_exception(
    run_id: str,
    exception_id: str,
    auth: AuthContext = Depends(require_route("payroll.resolve_exception")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollExceptionsQueryService(db).resolve_exception(run_id, exception_id)


# ===========================================
# REVIEW & APPROVAL
# ===========================================

@router.post(
    "/runs/{run_id}/publish",
    response_model=PayrollRunResponse,
    summary="Submit run for review",
)
async def publish_run(
    run_id: str,
    auth: AuthContext = Depends(require_route("payroll.publish")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).publish(run_id, specialist_id=auth.employee_id)


@router.post(
    "/runs/{run_id}/manager-approve",
    response_model=PayrollRunResponse,
    summary="Payroll manager approval",
)
async def manager_approve_run(
    run_id: str,
    auth: AuthContext = Depends(require_route("payroll.manager_approve")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).manager_approve(run_id, manager_id=auth.employee_id)


@router.post(
    "/runs/{run_id}/reject",
    response_model=PayrollRunResponse,
    summary="Reject run",
)
async def reject_run(
    run_id: str,
    request: RejectRunRequest,
    auth: AuthContext = Depends(require_route("payroll.reject")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).reject(run_id, request.reason, rejected_by_id=auth.employee_id)


@router.post(
    "/runs/{run_id}/finance-approve",
    response_model=PayrollRunResponse,
    summary="Finance approval",
)
async def finance_approve_run(
    run_id: str,
    auth: AuthContext = Depends(require_route("payroll.finance_approve")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).finance_approve(run_id, finance_staff_id=auth.employee_id)


@router.post(
    "/runs/{run_id}/freeze",
    response_model=PayrollRunResponse,
    summary="Lock run",
)
async def freeze_run(
    run_id: str,
    auth: AuthContext = Depends(require_route("payroll.freeze")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).freeze(run_id)


@router.post(
    "/runs/{run_id}/unfreeze",
    response_model=PayrollRunResponse,
    summary="Unlock run",
)
async def unfreeze_run(
    run_id: str,
    request: UnfreezeRunRequest,
    auth: AuthContext = Depends(require_route("payroll.unfreeze")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).unfreeze(run_id, request.reason)


@router.patch(
    "/runs/{run_id}/period",
    response_model=PayrollRunResponse,
    summary="Edit period of rejected run",
)
async def edit_run_period(
    run_id: str,
    request: EditPeriodRequest,
    auth: AuthContext = Depends(require_route("payroll.edit_period")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollApprovalService(db).edit_period(run_id, request.payroll_period)


# ===========================================
# SIGNING BONUSES
# ===========================================

@router.post(
    "/signing-bonuses",
    response_model=SigningBonusResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant signing bonus",
)
async def create_signing_bonus(
    request: SigningBonusCreate,
    auth: AuthContext = Depends(require_route("payroll.signing_bonus.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).create_signing_bonus(
        request.employee_id, request.position_name, request.given_amount
    )


@router.get(
    "/signing-bonuses",
    response_model=List[SigningBonusResponse],
    summary="List signing bonuses",
)
async def list_signing_bonuses(
    status_filter: Optional[AdjustmentStatus] = Query(None, alias="status"),
    employee_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("payroll.signing_bonus.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).list_signing_bonuses(status_filter, employee_id)


@router.post(
    "/signing-bonuses/{bonus_id}/approve",
    response_model=SigningBonusResponse,
    summary="Approve signing bonus",
)
async def approve_signing_bonus(
    bonus_id: UUID,
    auth: AuthContext = Depends(require_route("payroll.signing_bonus.approve")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).approve_signing_bonus(bonus_id)


@router.post(
    "/signing-bonuses/{bonus_id}/reject",
    response_model=SigningBonusResponse,
    summary="Reject signing bonus",
)
async def reject_signing_bonus(
    bonus_id: UUID,
    auth: AuthContext = Depends(require_route("payroll.signing_bonus.reject")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).reject_signing_bonus(bonus_id)


@router.patch(
    "/signing-bonuses/{bonus_id}",
    response_model=SigningBonusResponse,
    summary="Edit signing bonus amount",
)
async def edit_signing_bonus(
    bonus_id: UUID,
    request: AdjustmentAmountUpdate,
    auth: AuthContext = Depends(require_route("payroll.signing_bonus.edit")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).edit_signing_bonus(bonus_id, request.given_amount)


# ===========================================
# TERMINATION BENEFITS
# ===========================================

@router.post(
    "/termination-benefits",
    response_model=TerminationBenefitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant termination or resignation benefit",
)
async def create_termination_benefit(
    request: TerminationBenefitCreate,
    auth: AuthContext = Depends(require_route("payroll.termination_benefit.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).create_termination_benefit(
        request.employee_id,
        request.benefit_name,
        type=request.type,
        reason=request.reason,
        given_amount=request.given_amount,
    )


@router.get(
    "/termination-benefits",
    response_model=List[TerminationBenefitResponse],
    summary="List termination benefits",
)
async def list_termination_benefits(
    status_filter: Optional[AdjustmentStatus] = Query(None, alias="status"),
    employee_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("payroll.termination_benefit.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).list_termination_benefits(status_filter, employee_id)


@router.post(
    "/termination-benefits/{benefit_id}/approve",
    response_model=TerminationBenefitResponse,
    summary="Approve termination benefit",
)
async def approve_termination_benefit(
    benefit_id: UUID,
    auth: AuthContext = Depends(require_route("payroll.termination_benefit.approve")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).approve_termination_benefit(benefit_id)


@router.post(
    "/termination-benefits/{benefit_id}/reject",
    response_model=TerminationBenefitResponse,
    summary="Reject termination benefit",
)
async def reject_termination_benefit(
    benefit_id: UUID,
    auth: AuthContext = Depends(require_route("payroll.termination_benefit.reject")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).reject_termination_benefit(benefit_id)


@router.patch(
    "/termination-benefits/{benefit_id}",
    response_model=TerminationBenefitResponse,
    summary="Edit termination benefit amount",
)
async def edit_termination_benefit(
    benefit_id: UUID,
    request: AdjustmentAmountUpdate,
    auth: AuthContext = Depends(require_route("payroll.termination_benefit.edit")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).edit_termination_benefit(benefit_id, request.given_amount)


# ===========================================
# PENALTIES
# ===========================================

@router.post(
    "/penalties",
    response_model=PenaltyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record penalty",
)
async def create_penalty(
    request: PenaltyCreate,
    auth: AuthContext = Depends(require_route("payroll.penalty.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).create_penalty(request.employee_id, request.reason, request.amount)


@router.get(
    "/penalties",
    response_model=List[PenaltyResponse],
    summary="List penalties",
)
async def list_penalties(
    status_filter: Optional[AdjustmentStatus] = Query(None, alias="status"),
    employee_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("payroll.penalty.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).list_penalties(status_filter, employee_id)


@router.post(
    "/penalties/{penalty_id}/approve",
    response_model=PenaltyResponse,
    summary="Approve penalty",
)
async def approve_penalty(
    penalty_id: UUID,
    auth: AuthContext = Depends(require_route("payroll.penalty.approve")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PayrollAdjustmentService(db).approve_penalty(penalty_id)
