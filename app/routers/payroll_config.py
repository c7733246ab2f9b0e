"""
PeopleDesk HR - Payroll Configuration Router

Configuration records (pay grades, allowances, tax rules, insurance
brackets, signing bonus and termination benefit policies) and their JSON
backups.

Backup routes are declared before the generic /{config_type} routes so
that "backup" is never taken for a configuration type.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import AuthContext, require_route
from app.models.payroll_config import ConfigStatus
from app.schemas.payroll_config import (
    BackupResult,
    RestoreResult,
    serialize_config_record,
    validate_config_payload,
)
from app.services.config_backup_service import ConfigBackupService, backup_scheduler
from app.services.payroll_config_service import PayrollConfigService

router = APIRouter()


# ===========================================
# BACKUP
# ===========================================

@router.post(
    "/backup",
    response_model=BackupResult,
    summary="Trigger configuration backup",
    description="Export all configuration tables now. Fails with 409 while a backup is running.",
)
async def trigger_backup(
    auth: AuthContext = Depends(require_route("config_backup.trigger")),
    db: AsyncSession = Depends(get_async_session),
):
    return await backup_scheduler.trigger_manual_backup(db)


@router.get(
    "/backup",
    response_model=List[str],
    summary="List backups",
)
async def list_backups(
    auth: AuthContext = Depends(require_route("config_backup.list")),
    db: AsyncSession = Depends(get_async_session),
):
    return ConfigBackupService(db).list_backups()


@router.post(
    "/backup/restore/{backup_name}",
    response_model=RestoreResult,
    summary="Restore backup",
)
async def restore_backup(
    backup_name: str,
    auth: AuthContext = Depends(require_route("config_backup.restore")),
    db: AsyncSession = Depends(get_async_session),
):
    return await ConfigBackupService(db).restore_backup(backup_name)


@router.get(
    "/backup/download/{backup_name}",
    response_model=Dict[str, List[Dict[str, Any]]],
    summary="Download backup",
)
async def download_backup(
    backup_name: str,
    auth: AuthContext = Depends(require_route("config_backup.download")),
    db: AsyncSession = Depends(get_async_session),
):
    return ConfigBackupService(db).get_backup_data(backup_name)


# ===========================================
# CONFIGURATION RECORDS
# ===========================================

@router.post(
    "/{config_type}",
    status_code=status.HTTP_201_CREATED,
    summary="Create configuration record",
    description="Create a DRAFT record of the given type (e.g. tax-rules).",
)
async def create_config(
    config_type: str,
    payload: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_route("payroll_config.create")),
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollConfigService(db, config_type)
    data = validate_config_payload(config_type, payload)
    record = await service.create(data, created_by_id=auth.employee_id)
    return serialize_config_record(record)


@router.get(
    "/{config_type}",
    summary="List configuration records",
)
async def list_configs(
    config_type: str,
    status_filter: Optional[ConfigStatus] = Query(None, alias="status"),
    auth: AuthContext = Depends(require_route("payroll_config.list")),
    db: AsyncSession = Depends(get_async_session),
):
    records = await PayrollConfigService(db, config_type).list(status_filter)
    return [serialize_config_record(record) for record in records]


@router.get(
    "/{config_type}/{record_id}",
    summary="Get configuration record",
)
async def get_config(
    config_type: str,
    record_id: UUID,
    auth: AuthContext = Depends(require_route("payroll_config.get")),
    db: AsyncSession = Depends(get_async_session),
):
    return serialize_config_record(await PayrollConfigService(db, config_type).get(record_id))


@router.patch(
    "/{config_type}/{record_id}",
    summary="Update configuration record",
    description="Only DRAFT records can be edited.",
)
async def update_config(
    config_type: str,
    record_id: UUID,
    payload: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_route("payroll_config.update")),
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollConfigService(db, config_type)
    data = validate_config_payload(config_type, payload, partial=True)
    return serialize_config_record(await service.update(record_id, data))


@router.post(
    "/{config_type}/{record_id}/approve",
    summary="Approve configuration record",
)
async def approve_config(
    config_type: str,
    record_id: UUID,
    auth: AuthContext = Depends(require_route("payroll_config.approve")),
    db: AsyncSession = Depends(get_async_session),
):
    record = await PayrollConfigService(db, config_type).approve(record_id, approved_by_id=auth.employee_id)
    return serialize_config_record(record)


@router.post(
    "/{config_type}/{record_id}/reject",
    summary="Reject configuration record",
)
async def reject_config(
    config_type: str,
    record_id: UUID,
    auth: AuthContext = Depends(require_route("payroll_config.reject")),
    db: AsyncSession = Depends(get_async_session),
):
    record = await PayrollConfigService(db, config_type).reject(record_id, approved_by_id=auth.employee_id)
    return serialize_config_record(record)


@router.delete(
    "/{config_type}/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete configuration record",
)
async def delete_config(
    config_type: str,
    record_id: UUID,
    auth: AuthContext = Depends(require_route("payroll_config.delete")),
    db: AsyncSession = Depends(get_async_session),
):
    await PayrollConfigService(db, config_type).delete(record_id)
