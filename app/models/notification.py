"""
PeopleDesk HR - Notification Model

A notification is created once per event and fanned out to one or more
recipients; read state is tracked per recipient.

Notification Types:
- Info (workflow updates)
- Warning (reminders, pending actions)
- Alert (performance flags, rejected runs)
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class NotificationType(str, Enum):
    """Types of notifications."""
    INFO = "Info"
    WARNING = "Warning"
    ALERT = "Alert"


class DeliveryType(str, Enum):
    """How a notification was addressed."""
    UNICAST = "UNICAST"
    MULTICAST = "MULTICAST"


class Notification(BaseModel):
    """Notification content, shared by every recipient."""

    __tablename__ = "notifications"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    notification_type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType),
        default=NotificationType.INFO,
        nullable=False,
        index=True,
    )
    delivery_type: Mapped[DeliveryType] = mapped_column(
        SQLEnum(DeliveryType),
        default=DeliveryType.UNICAST,
        nullable=False,
    )

    # Source of the event (e.g. "Payroll", "Performance")
    related_module: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    related_entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class NotificationRecipient(BaseModel):
    """Delivery of a notification to a single employee."""

    __tablename__ = "notification_recipients"

    notification_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
