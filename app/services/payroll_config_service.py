"""
PeopleDesk HR - Payroll Configuration Service

CRUD and approval for payroll configuration records (pay grades,
allowances, tax rules, insurance brackets, signing bonus and termination
benefit policies). Records are editable only while in DRAFT.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll_config import CONFIG_MODELS, ConfigStatus
from app.utils.error_handling import (
    BadRequestException,
    ForbiddenOperationException,
    NotFoundException,
)

logger = logging.getLogger(__name__)


def get_config_model(config_type: str) -> Type:
    """Resolve a config type slug (e.g. 'tax-rules') to its model."""
    model = CONFIG_MODELS.get(config_type)
    if model is None:
        raise NotFoundException(
            "Configuration type",
            message=f"Unknown configuration type '{config_type}'",
        )
    return model


class PayrollConfigService:
    """Service for one payroll configuration table."""

    def __init__(self, db: AsyncSession, config_type: str):
        self.db = db
        self.config_type = config_type
        self.model = get_config_model(config_type)

    @property
    def label(self) -> str:
        return self.model.__name__

    async def create(self, data: Dict[str, Any], created_by_id: Optional[uuid.UUID] = None):
        record = self.model(**data, status=ConfigStatus.DRAFT, created_by_id=created_by_id)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Created {self.label} {record.id} (draft)")
        return record

    async def list(self, status: Optional[ConfigStatus] = None) -> List[Any]:
        query = select(self.model).order_by(self.model.created_at.desc())
        if status:
            query = query.where(self.model.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, record_id: uuid.UUID):
        record = await self.db.get(self.model, record_id)
        if not record:
            raise NotFoundException(self.label, record_id)
        return record

    async def _get_draft(self, record_id: uuid.UUID, action: str):
        record = await self.get(record_id)
        if record.status != ConfigStatus.DRAFT:
            raise ForbiddenOperationException(
                f"Cannot {action} {self.label} with status '{record.status.value}'. "
                f"Only draft records can be modified.",
                resource_type=self.label,
            )
        return record

    async def update(self, record_id: uuid.UUID, data: Dict[str, Any]):
        record = await self._get_draft(record_id, "edit")
        for key, value in data.items():
            if key in ("id", "status", "created_at", "updated_at"):
                continue
            if not hasattr(record, key):
                raise BadRequestException(f"Unknown field '{key}' for {self.label}", field=key)
            setattr(record, key, value)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def approve(self, record_id: uuid.UUID, approved_by_id: Optional[uuid.UUID] = None):
        record = await self._get_draft(record_id, "approve")
        record.status = ConfigStatus.APPROVED
        record.approved_by_id = approved_by_id
        record.approved_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Approved {self.label} {record.id}")
        return record

    async def reject(self, record_id: uuid.UUID, approved_by_id: Optional[uuid.UUID] = None):
        record = await self._get_draft(record_id, "reject")
        record.status = ConfigStatus.REJECTED
        record.approved_by_id = approved_by_id
        record.approved_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(record)
        logger.info(f"Rejected {self.label} {record.id}")
        return record

    async def delete(self, record_id: uuid.UUID) -> None:
        record = await self._get_draft(record_id, "delete")
        await self.db.delete(record)
        await self.db.commit()
        logger.info(f"Deleted {self.label} {record_id}")
