"""
PeopleDesk HR - Offboarding Router
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_route
from app.models.offboarding import TerminationStatus
from app.schemas.offboarding import (
    TerminationReviewCreate,
    TerminationReviewResponse,
    TerminationStatusUpdate,
)
from app.services.offboarding_service import OffboardingService

router = APIRouter()


@router.post(
    "/termination-reviews",
    response_model=TerminationReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Initiate termination review",
)
async def initiate_termination_review(
    request: TerminationReviewCreate,
    auth: AuthContext = Depends(require_route("offboarding.reviews.create")),
    db: AsyncSession = Depends(get_async_session),
):
    return await OffboardingService(db).initiate_termination_review(
        employee_number=request.employee_number,
        initiator=request.initiator,
        reason=request.reason,
        hr_comments=request.hr_comments,
    )


@router.get(
    "/termination-reviews",
    response_model=List[TerminationReviewResponse],
    summary="List termination reviews",
)
async def list_termination_reviews(
    status_filter: Optional[TerminationStatus] = Query(None, alias="status"),
    employee_id: Optional[UUID] = Query(None),
    auth: AuthContext = Depends(require_route("offboarding.reviews.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return await OffboardingService(db).list_reviews(status=status_filter, employee_id=employee_id)


@router.patch(
    "/termination-reviews/{request_id}/status",
    response_model=TerminationReviewResponse,
    summary="Update termination review status",
)
async def update_termination_review_status(
    request_id: UUID,
    request: TerminationStatusUpdate,
    auth: AuthContext = Depends(require_route("offboarding.reviews.update_status")),
    db: AsyncSession = Depends(get_async_session),
):
    return await OffboardingService(db).update_status(request_id, request.status, request.hr_comments)
