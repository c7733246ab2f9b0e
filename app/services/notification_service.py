"""
PeopleDesk HR - Notification Service

Persistent in-app notifications with role and department fan-out.

NotificationService raises on failure like any other service.
NotificationSink wraps it for workflow side effects: delivery is
best-effort, and a failure is logged and never propagated to the business
operation that triggered it.
"""

import uuid
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import SystemRole
from app.models.notification import (
    DeliveryType,
    Notification,
    NotificationRecipient,
    NotificationType,
)
from app.services.employee_service import EmployeeService
from app.utils.error_handling import BadRequestException, NotFoundException

logger = logging.getLogger(__name__)


def dedupe_recipients(*groups: Iterable[uuid.UUID]) -> List[uuid.UUID]:
    """Flatten recipient groups, keeping the first occurrence of each id."""
    seen = set()
    recipients = []
    for group in groups:
        for employee_id in group:
            if employee_id not in seen:
                seen.add(employee_id)
                recipients.append(employee_id)
    return recipients


class NotificationService:
    """Service for managing notifications with full database integration."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)

    async def resolve_recipients(
        self,
        recipient_ids: Optional[Sequence[uuid.UUID]] = None,
        roles: Optional[Sequence[Union[SystemRole, str]]] = None,
        department_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[uuid.UUID]:
        """Expand role and department targets into concrete employee ids."""
        role_members = await self.employees.get_employee_ids_with_roles(roles or [])
        department_members = await self.employees.get_employee_ids_in_departments(department_ids or [])
        return dedupe_recipients(recipient_ids or [], role_members, department_members)

    async def create_notification(
        self,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        recipient_ids: Optional[Sequence[uuid.UUID]] = None,
        roles: Optional[Sequence[Union[SystemRole, str]]] = None,
        department_ids: Optional[Sequence[uuid.UUID]] = None,
        related_module: Optional[str] = None,
        related_entity_id: Optional[Union[str, uuid.UUID]] = None,
        commit: bool = True,
    ) -> Notification:
        """
        Create a notification and fan it out to its recipients.

        Args:
            title: Notification title
            message: Notification message
            notification_type: Info, Warning or Alert
            recipient_ids: Explicit employee recipients
            roles: Every employee actively holding one of these roles
            department_ids: Every employee in these departments
            related_module: Source module (e.g. "Payroll")
            related_entity_id: Id of the record the notification is about
            commit: Commit immediately; pass False to join the caller's transaction

        Raises:
            BadRequestException: if the targets resolve to nobody
        """
        recipients = await self.resolve_recipients(recipient_ids, roles, department_ids)
        if not recipients:
            raise BadRequestException("No recipients resolved for notification")

        notification = Notification(
            title=title,
            message=message,
            notification_type=notification_type,
            delivery_type=DeliveryType.UNICAST if len(recipients) == 1 else DeliveryType.MULTICAST,
            related_module=related_module,
            related_entity_id=str(related_entity_id) if related_entity_id else None,
        )
        self.db.add(notification)
        await self.db.flush()

        for employee_id in recipients:
            self.db.add(NotificationRecipient(notification_id=notification.id, employee_id=employee_id))

        if commit:
            await self.db.commit()
            await self.db.refresh(notification)
        else:
            await self.db.flush()

        logger.info(
            f"Notification '{title}' sent to {len(recipients)} recipient(s) "
            f"({notification.delivery_type.value})"
        )
        return notification

    async def get_recipients(self, notification_id: uuid.UUID) -> List[uuid.UUID]:
        result = await self.db.execute(
            select(NotificationRecipient.employee_id)
            .where(NotificationRecipient.notification_id == notification_id)
        )
        return list(result.scalars().all())

    async def get_employee_notifications(
        self,
        employee_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Get notifications delivered to an employee, newest first.

        Returns:
            Tuple of (notifications, total count)
        """
        conditions = [NotificationRecipient.employee_id == employee_id]
        if unread_only:
            conditions.append(NotificationRecipient.is_read.is_(False))

        count_result = await self.db.execute(
            select(func.count()).select_from(NotificationRecipient).where(*conditions)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Notification, NotificationRecipient)
            .join(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
            .where(*conditions)
            .order_by(Notification.created_at.desc())
            .offset(offset)
            .limit(limit)
        )

        notifications = [
            {
                "id": notification.id,
                "title": notification.title,
                "message": notification.message,
                "type": notification.notification_type.value,
                "delivery_type": notification.delivery_type.value,
                "related_module": notification.related_module,
                "related_entity_id": notification.related_entity_id,
                "is_read": delivery.is_read,
                "read_at": delivery.read_at,
                "created_at": notification.created_at,
            }
            for notification, delivery in result.all()
        ]
        return notifications, total

    async def mark_as_read(self, notification_id: uuid.UUID, employee_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            update(NotificationRecipient)
            .where(
                NotificationRecipient.notification_id == notification_id,
                NotificationRecipient.employee_id == employee_id,
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        if result.rowcount == 0:
            raise NotFoundException("Notification", notification_id)
        await self.db.commit()
        return True

    async def mark_all_as_read(self, employee_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(NotificationRecipient)
            .where(
                NotificationRecipient.employee_id == employee_id,
                NotificationRecipient.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        await self.db.commit()
        return result.rowcount


class NotificationSink:
    """
    Fire-and-forget notification boundary for workflow side effects.

    notify() never raises. The notification is written inside a savepoint
    of the caller's transaction so a failed delivery leaves the caller's
    pending work intact; the caller commits.
    """

    def __init__(self, db: AsyncSession, service: Optional[NotificationService] = None):
        self.db = db
        self.service = service or NotificationService(db)

    async def notify(self, title: str, message: str, **kwargs: Any) -> Optional[Notification]:
        try:
            async with self.db.begin_nested():
                return await self.service.create_notification(
                    title=title,
                    message=message,
                    commit=False,
                    **kwargs,
                )
        except Exception as e:
            logger.error(f"Failed to deliver notification '{title}': {e}")
            return None
