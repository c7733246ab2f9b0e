"""
PeopleDesk HR - Offboarding Schemas
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.offboarding import TerminationInitiation, TerminationStatus


class TerminationReviewCreate(BaseModel):
    employee_number: str = Field(..., min_length=1, max_length=50)
    initiator: TerminationInitiation
    reason: str = Field(..., min_length=1, max_length=2000)
    hr_comments: Optional[str] = None


class TerminationStatusUpdate(BaseModel):
    status: TerminationStatus
    hr_comments: Optional[str] = None


class TerminationReviewResponse(BaseModel):
    id: UUID
    employee_id: UUID
    initiator: TerminationInitiation
    reason: str
    hr_comments: Optional[str] = None
    status: TerminationStatus
    created_at: datetime

    class Config:
        from_attributes = True
