"""
PeopleDesk HR - Offboarding Models
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class TerminationInitiation(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"


class TerminationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class TerminationRequest(BaseModel):
    """Termination review opened for an employee."""

    __tablename__ = "termination_requests"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    initiator: Mapped[TerminationInitiation] = mapped_column(SQLEnum(TerminationInitiation), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    hr_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TerminationStatus] = mapped_column(
        SQLEnum(TerminationStatus),
        default=TerminationStatus.PENDING,
        nullable=False,
        index=True,
    )
