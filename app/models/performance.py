"""
PeopleDesk HR - Performance Appraisal Models

Templates, cycles, assignments, records and disputes.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Date, DateTime, Float, ForeignKey, JSON, String, Text, Uuid, Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


# Rating key that is recorded but never scored
GOALS_KEY = "GOALS"


class AppraisalCycleStatus(str, Enum):
    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class AppraisalAssignmentStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    PUBLISHED = "PUBLISHED"


class AppraisalRecordStatus(str, Enum):
    DRAFT = "DRAFT"
    MANAGER_SUBMITTED = "MANAGER_SUBMITTED"
    HR_PUBLISHED = "HR_PUBLISHED"


class AppraisalDisputeStatus(str, Enum):
    OPEN = "OPEN"
    ADJUSTED = "ADJUSTED"
    REJECTED = "REJECTED"


class AppraisalTemplate(BaseModel):
    """
    Appraisal template.

    criteria: [{"key", "title", "weight", "required"}]
    rating_scale: {"min", "max", "labels"}
    """

    __tablename__ = "appraisal_templates"

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    criteria: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    rating_scale: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)


class AppraisalCycle(BaseModel):
    __tablename__ = "appraisal_cycles"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[AppraisalCycleStatus] = mapped_column(
        SQLEnum(AppraisalCycleStatus),
        default=AppraisalCycleStatus.PLANNED,
        nullable=False,
    )


class AppraisalAssignment(BaseModel):
    """Who appraises whom, in which cycle, with which template."""

    __tablename__ = "appraisal_assignments"

    cycle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("appraisal_cycles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("appraisal_templates.id"),
        nullable=False,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    manager_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    status: Mapped[AppraisalAssignmentStatus] = mapped_column(
        SQLEnum(AppraisalAssignmentStatus),
        default=AppraisalAssignmentStatus.NOT_STARTED,
        nullable=False,
        index=True,
    )
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class AppraisalRecord(BaseModel):
    """
    Manager ratings for one assignment.

    ratings: [{"key", "title", "rating_value", "weighted_score", "comments"}]
    """

    __tablename__ = "appraisal_records"

    assignment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("appraisal_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    template_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    cycle_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    manager_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    ratings: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    total_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    overall_rating_label: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    manager_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    strengths: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    improvement_areas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[AppraisalRecordStatus] = mapped_column(
        SQLEnum(AppraisalRecordStatus),
        default=AppraisalRecordStatus.DRAFT,
        nullable=False,
        index=True,
    )
    hr_published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class AppraisalDispute(BaseModel):
    """Employee objection to a published appraisal."""

    __tablename__ = "appraisal_disputes"

    appraisal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("appraisal_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignment_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[AppraisalDisputeStatus] = mapped_column(
        SQLEnum(AppraisalDisputeStatus),
        default=AppraisalDisputeStatus.OPEN,
        nullable=False,
    )
    resolution_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
