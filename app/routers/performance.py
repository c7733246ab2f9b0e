"""
PeopleDesk HR - Performance Router

Appraisal templates, cycles, assignments, records and disputes.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_employee, require_route
from app.models.performance import AppraisalAssignmentStatus, AppraisalDisputeStatus
from app.schemas.performance import (
    AssignmentCreate,
    AssignmentResponse,
    CycleCreate,
    CycleResponse,
    DisputeCreate,
    DisputeResolve,
    DisputeResponse,
    RecordCreate,
    RecordResponse,
    RecordUpdate,
    ReminderRequest,
    ReminderResult,
    TemplateCreate,
    TemplateResponse,
)
from app.services.performance_service import PerformanceService

router = APIRouter()


# ===========================================
# TEMPLATES & CYCLES
# ===========================================

@router.post(
    "/templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create appraisal template",
)
async def create_template(
    request: TemplateCreate,
    auth: AuthContext = Depends(require_route("performance.templates.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).create_template(
        name=request.name,
        description=request.description,
        criteria=[criterion.model_dump() for criterion in request.criteria],
        rating_scale=request.rating_scale.model_dump(),
    )


@router.get("/templates", response_model=List[TemplateResponse], summary="List appraisal templates")
async def list_templates(
    auth: AuthContext = Depends(require_route("performance.templates.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).list_templates()


@router.post(
    "/cycles",
    response_model=CycleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create appraisal cycle",
)
async def create_cycle(
    request: CycleCreate,
    auth: AuthContext = Depends(require_route("performance.cycles.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).create_cycle(
        request.name, request.start_date, request.end_date, request.status
    )


@router.get("/cycles", response_model=List[CycleResponse], summary="List appraisal cycles")
async def list_cycles(
    auth: AuthContext = Depends(require_route("performance.cycles.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).list_cycles()


# ===========================================
# ASSIGNMENTS
# ===========================================

@router.post(
    "/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign appraisal",
)
async def create_assignment(
    request: AssignmentCreate,
    auth: AuthContext = Depends(require_route("performance.assignments.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).create_assignment(**request.model_dump())


@router.get("/assignments", response_model=List[AssignmentResponse], summary="List appraisal assignments")
async def list_assignments(
    cycle_id: Optional[UUID] = Query(None),
    manager_id: Optional[UUID] = Query(None),
    employee_id: Optional[UUID] = Query(None),
    status_filter: Optional[AppraisalAssignmentStatus] = Query(None, alias="status"),
    auth: AuthContext = Depends(require_route("performance.assignments.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).list_assignments(
        cycle_id=cycle_id, manager_id=manager_id, employee_id=employee_id, status=status_filter
    )


@router.post(
    "/reminders",
    response_model=ReminderResult,
    summary="Send appraisal reminders",
    description="Notify managers of assignments still NOT_STARTED or IN_PROGRESS.",
)
async def send_reminders(
    request: ReminderRequest,
    auth: AuthContext = Depends(require_route("performance.reminders.send")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).send_reminders(
        cycle_id=request.cycle_id,
        department_id=request.department_id,
        statuses=request.statuses,
    )


# ===========================================
# RECORDS
# ===========================================

@router.post(
    "/records",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit appraisal record",
)
async def create_record(
    request: RecordCreate,
    auth: AuthContext = Depends(require_route("performance.records.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).create_record(
        assignment_id=request.assignment_id,
        ratings=[rating.model_dump() for rating in request.ratings],
        manager_summary=request.manager_summary,
        strengths=request.strengths,
        improvement_areas=request.improvement_areas,
    )


@router.put(
    "/records/{record_id}",
    response_model=RecordResponse,
    summary="Update appraisal record",
)
async def update_record(
    record_id: UUID,
    request: RecordUpdate,
    auth: AuthContext = Depends(require_route("performance.records.update")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).update_record(
        record_id,
        ratings=[rating.model_dump() for rating in request.ratings],
        manager_summary=request.manager_summary,
        strengths=request.strengths,
        improvement_areas=request.improvement_areas,
    )


@router.post(
    "/records/{record_id}/publish",
    response_model=RecordResponse,
    summary="Publish appraisal record",
)
async def publish_record(
    record_id: UUID,
    auth: AuthContext = Depends(require_route("performance.records.publish")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).publish_record(record_id)


@router.get(
    "/records/mine",
    response_model=List[RecordResponse],
    summary="My published appraisals",
)
async def my_records(
    auth: AuthContext = Depends(require_route("performance.records.mine")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).get_published_records(require_employee(auth))


# ===========================================
# DISPUTES
# ===========================================

@router.post(
    "/disputes",
    response_model=DisputeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Dispute a published appraisal",
)
async def create_dispute(
    request: DisputeCreate,
    auth: AuthContext = Depends(require_route("performance.disputes.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).create_dispute(
        appraisal_id=request.appraisal_id,
        employee_id=require_employee(auth),
        reason=request.reason,
        details=request.details,
    )


@router.get("/disputes", response_model=List[DisputeResponse], summary="List appraisal disputes")
async def list_disputes(
    status_filter: Optional[AppraisalDisputeStatus] = Query(None, alias="status"),
    auth: AuthContext = Depends(require_route("performance.disputes.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).list_disputes(status_filter)


@router.post(
    "/disputes/{dispute_id}/resolve",
    response_model=DisputeResponse,
    summary="Resolve appraisal dispute",
)
async def resolve_dispute(
    dispute_id: UUID,
    request: DisputeResolve,
    auth: AuthContext = Depends(require_route("performance.disputes.resolve")),
    db: AsyncSession = Depends(get_async_session),
):
    return await PerformanceService(db).resolve_dispute(
        dispute_id,
        status=request.status,
        resolution_summary=request.resolution_summary,
        resolved_by_id=auth.employee_id,
    )
