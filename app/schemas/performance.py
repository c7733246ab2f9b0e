"""
PeopleDesk HR - Performance Appraisal Schemas
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.performance import (
    AppraisalAssignmentStatus,
    AppraisalCycleStatus,
    AppraisalDisputeStatus,
    AppraisalRecordStatus,
)


# ===========================================
# TEMPLATES & CYCLES
# ===========================================

class Criterion(BaseModel):
    key: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    weight: Optional[float] = Field(None, ge=0, le=100)
    required: bool = False


class RatingScale(BaseModel):
    min: float
    max: float
    labels: List[str] = []

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min >= self.max:
            raise ValueError("Rating scale min must be lower than max")
        return self


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    criteria: List[Criterion] = Field(..., min_length=1)
    rating_scale: RatingScale


class TemplateResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    criteria: List[Dict[str, Any]]
    rating_scale: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


class CycleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    status: AppraisalCycleStatus = AppraisalCycleStatus.PLANNED


class CycleResponse(BaseModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    status: AppraisalCycleStatus

    class Config:
        from_attributes = True


# ===========================================
# ASSIGNMENTS
# ===========================================

class AssignmentCreate(BaseModel):
    cycle_id: UUID
    template_id: UUID
    employee_id: UUID
    manager_id: UUID
    department_id: Optional[UUID] = None
    due_date: Optional[date] = None


class AssignmentResponse(BaseModel):
    id: UUID
    cycle_id: UUID
    template_id: UUID
    employee_id: UUID
    manager_id: UUID
    department_id: Optional[UUID] = None
    status: AppraisalAssignmentStatus
    due_date: Optional[date] = None
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReminderRequest(BaseModel):
    cycle_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    statuses: Optional[List[AppraisalAssignmentStatus]] = None


class ReminderResult(BaseModel):
    sent: int
    failed: int


# ===========================================
# RECORDS
# ===========================================

class RatingInput(BaseModel):
    key: str = Field(..., min_length=1)
    rating_value: float = 0
    comments: Optional[str] = None


class RecordCreate(BaseModel):
    assignment_id: UUID
    ratings: List[RatingInput] = Field(..., min_length=1)
    manager_summary: Optional[str] = None
    strengths: Optional[str] = None
    improvement_areas: Optional[str] = None


class RecordUpdate(BaseModel):
    ratings: List[RatingInput] = Field(..., min_length=1)
    manager_summary: Optional[str] = None
    strengths: Optional[str] = None
    improvement_areas: Optional[str] = None


class RecordResponse(BaseModel):
    id: UUID
    assignment_id: UUID
    employee_id: UUID
    template_id: UUID
    cycle_id: UUID
    manager_id: UUID
    ratings: List[Dict[str, Any]]
    total_score: float
    overall_rating_label: Optional[str] = None
    manager_summary: Optional[str] = None
    strengths: Optional[str] = None
    improvement_areas: Optional[str] = None
    status: AppraisalRecordStatus
    hr_published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===========================================
# DISPUTES
# ===========================================

class DisputeCreate(BaseModel):
    appraisal_id: UUID
    reason: str = Field(..., min_length=1, max_length=2000)
    details: Optional[str] = None


class DisputeResolve(BaseModel):
    status: AppraisalDisputeStatus
    resolution_summary: str = Field(..., min_length=1, max_length=2000)


class DisputeResponse(BaseModel):
    id: UUID
    appraisal_id: UUID
    assignment_id: UUID
    employee_id: UUID
    reason: str
    details: Optional[str] = None
    status: AppraisalDisputeStatus
    resolution_summary: Optional[str] = None
    resolved_by_id: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
