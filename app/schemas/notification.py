"""
PeopleDesk HR - Notification Schemas
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.employee import SystemRole
from app.models.notification import NotificationType


class NotificationCreate(BaseModel):
    """Broadcast to explicit employees, role holders and/or departments."""
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    recipient_ids: List[UUID] = []
    roles: List[SystemRole] = []
    department_ids: List[UUID] = []
    related_module: Optional[str] = Field(None, max_length=100)
    related_entity_id: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def require_target(self):
        if not (self.recipient_ids or self.roles or self.department_ids):
            raise ValueError("At least one of recipient_ids, roles or department_ids is required")
        return self


class NotificationResponse(BaseModel):
    id: UUID
    title: str
    message: str
    type: str
    delivery_type: str
    related_module: Optional[str] = None
    related_entity_id: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class NotificationCreatedResponse(BaseModel):
    id: UUID
    delivery_type: str
    recipients: List[UUID]
