"""
PeopleDesk HR - Notifications Router

API endpoints for in-app notifications.

Features:
- List the caller's notifications
- Mark as read (single/all)
- Broadcast to employees, roles or departments
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_employee, require_route
from app.schemas.notification import (
    NotificationCreate,
    NotificationCreatedResponse,
    NotificationListResponse,
)
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="My notifications",
)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_route("notifications.mine")),
    db: AsyncSession = Depends(get_async_session),
):
    employee_id = require_employee(auth)
    service = NotificationService(db)
    notifications, total = await service.get_employee_notifications(
        employee_id, unread_only=unread_only, limit=limit, offset=offset
    )
    _, unread_count = await service.get_employee_notifications(employee_id, unread_only=True, limit=1)
    return NotificationListResponse(
        notifications=notifications,
        total=total,
        unread_count=unread_count,
    )


@router.patch(
    "/{notification_id}/read",
    summary="Mark notification as read",
)
async def mark_notification_read(
    notification_id: uuid.UUID,
    auth: AuthContext = Depends(require_route("notifications.mark_read")),
    db: AsyncSession = Depends(get_async_session),
):
    await NotificationService(db).mark_as_read(notification_id, require_employee(auth))
    return {"success": True}


@router.post(
    "/read-all",
    summary="Mark all notifications as read",
)
async def mark_all_notifications_read(
    auth: AuthContext = Depends(require_route("notifications.read_all")),
    db: AsyncSession = Depends(get_async_session),
):
    count = await NotificationService(db).mark_all_as_read(require_employee(auth))
    return {"success": True, "updated": count}


@router.post(
    "",
    response_model=NotificationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Broadcast notification",
)
async def create_notification(
    request: NotificationCreate,
    auth: AuthContext = Depends(require_route("notifications.create")),
    db: AsyncSession = Depends(get_async_session),
):
    service = NotificationService(db)
    notification = await service.create_notification(
        title=request.title,
        message=request.message,
        notification_type=request.type,
        recipient_ids=request.recipient_ids,
        roles=request.roles,
        department_ids=request.department_ids,
        related_module=request.related_module,
        related_entity_id=request.related_entity_id,
    )
    return NotificationCreatedResponse(
        id=notification.id,
        delivery_type=notification.delivery_type.value,
        recipients=await service.get_recipients(notification.id),
    )
