"""
PeopleDesk HR - Configuration Backup Service

Exports the payroll configuration tables to JSON, one directory per backup:

    <backup_dir>/backup-<timestamp>/<table>.json

Only the newest `backup_retention` backups are kept. The scheduler wraps
the service with a single in-process re-entrancy flag.
"""

import json
import logging
import shutil
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import Date, DateTime, Enum as SQLEnum, Numeric, Table, Uuid, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.payroll_config import CONFIG_MODELS
from app.utils.error_handling import BadRequestException, ConflictException, ErrorCode, NotFoundException

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup-"

CONFIG_TABLES: List[Table] = [model.__table__ for model in CONFIG_MODELS.values()]


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _from_json(column, value: Any) -> Any:
    """Convert a JSON value back to the column's Python type."""
    if value is None:
        return None
    column_type = column.type
    if isinstance(column_type, SQLEnum) and column_type.enum_class is not None:
        return column_type.enum_class(value)
    if isinstance(column_type, Uuid):
        return uuid.UUID(value)
    if isinstance(column_type, Numeric):
        return Decimal(value)
    if isinstance(column_type, DateTime):
        return datetime.fromisoformat(value)
    if isinstance(column_type, Date):
        return date.fromisoformat(value)
    return value


class ConfigBackupService:
    """Backup, list and restore payroll configuration tables."""

    def __init__(self, db: AsyncSession, backup_dir: Optional[str] = None):
        self.db = db
        self.backup_dir = Path(backup_dir or settings.backup_dir)
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    async def backup_config_setup(self) -> Dict[str, Any]:
        """
        Export every configuration table.

        A failure on one table is recorded and the remaining tables are
        still exported.
        """
        timestamp = datetime.utcnow().isoformat().replace(":", "-").replace(".", "-")
        backup_name = f"{BACKUP_PREFIX}{timestamp}"
        backup_path = self.backup_dir / backup_name
        backup_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"Starting configuration backup to {backup_path}")

        successful: List[str] = []
        failed: List[str] = []

        for table in CONFIG_TABLES:
            try:
                result = await self.db.execute(select(table))
                rows = [
                    {key: _to_json(value) for key, value in row._mapping.items()}
                    for row in result
                ]
                (backup_path / f"{table.name}.json").write_text(
                    json.dumps(rows, indent=2), encoding="utf-8"
                )
                successful.append(table.name)
                logger.info(f"Exported {table.name} ({len(rows)} rows)")
            except Exception as e:
                failed.append(table.name)
                logger.error(f"Failed to export {table.name}: {e}")

        logger.info(f"Backup completed: {len(successful)}/{len(CONFIG_TABLES)} tables")
        if failed:
            logger.warning(f"Backup failed for: {', '.join(failed)}")

        removed = self.clean_old_backups(settings.backup_retention)

        return {
            "backup_name": backup_name,
            "successful": successful,
            "failed": failed,
            "removed": removed,
        }

    def list_backups(self) -> List[str]:
        """Backup names, newest first."""
        return sorted(
            (
                path.name
                for path in self.backup_dir.iterdir()
                if path.is_dir() and path.name.startswith(BACKUP_PREFIX)
            ),
            reverse=True,
        )

    def clean_old_backups(self, max_backups: int) -> List[str]:
        """Delete all but the newest `max_backups` backups."""
        removed = []
        for name in self.list_backups()[max_backups:]:
            try:
                shutil.rmtree(self.backup_dir / name)
                removed.append(name)
                logger.info(f"Deleted old backup: {name}")
            except OSError as e:
                logger.error(f"Failed to delete old backup {name}: {e}")
        return removed

    def _backup_path(self, backup_name: str) -> Path:
        # Names are single path components, never paths
        if not backup_name.startswith(BACKUP_PREFIX) or Path(backup_name).name != backup_name:
            raise NotFoundException("Backup", message=f"Backup not found: {backup_name}")
        backup_path = self.backup_dir / backup_name
        if not backup_path.is_dir():
            raise NotFoundException("Backup", message=f"Backup not found: {backup_name}")
        return backup_path

    def get_backup_data(self, backup_name: str) -> Dict[str, List[Dict[str, Any]]]:
        """Raw contents of a backup, keyed by table name."""
        backup_path = self._backup_path(backup_name)
        return {
            path.stem: json.loads(path.read_text(encoding="utf-8"))
            for path in sorted(backup_path.glob("*.json"))
        }

    async def restore_backup(self, backup_name: str) -> Dict[str, Any]:
        """
        Replace configuration tables with the contents of a backup.

        Raises:
            NotFoundException: unknown backup name
            BadRequestException: backup holds no JSON files
        """
        data = self.get_backup_data(backup_name)
        if not data:
            raise BadRequestException("No JSON backup files found")

        tables = {table.name: table for table in CONFIG_TABLES}
        restored: Dict[str, int] = {}
        failed: List[str] = []

        logger.info(f"Restoring backup {backup_name}")

        for table_name, rows in data.items():
            table = tables.get(table_name)
            if table is None:
                logger.warning(f"Skipping unknown table in backup: {table_name}")
                continue
            try:
                async with self.db.begin_nested():
                    await self.db.execute(delete(table))
                    if rows:
                        await self.db.execute(
                            insert(table),
                            [
                                {
                                    key: _from_json(table.c[key], value)
                                    for key, value in row.items()
                                    if key in table.c
                                }
                                for row in rows
                            ],
                        )
                restored[table_name] = len(rows)
                logger.info(f"Restored {table_name} ({len(rows)} rows)")
            except Exception as e:
                failed.append(table_name)
                logger.error(f"Failed to restore {table_name}: {e}")

        await self.db.commit()
        logger.info("Restore completed")
        return {"backup_name": backup_name, "restored": restored, "failed": failed}


class ConfigBackupScheduler:
    """
    Runs backups from the cron schedule or a manual trigger.

    `is_running` is the only concurrency control: a scheduled run is
    skipped while a backup is in flight, and a manual trigger is refused.
    """

    def __init__(self):
        self.is_running = False

    async def run_scheduled_backup(self, db: AsyncSession, backup_dir: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if self.is_running:
            logger.warning("Scheduled backup skipped: a backup is already running")
            return None
        return await self._run(db, backup_dir)

    async def trigger_manual_backup(self, db: AsyncSession, backup_dir: Optional[str] = None) -> Dict[str, Any]:
        if self.is_running:
            raise ConflictException(
                "Backup already in progress",
                resource_type="Backup",
                code=ErrorCode.BACKUP_IN_PROGRESS,
            )
        return await self._run(db, backup_dir)

    async def _run(self, db: AsyncSession, backup_dir: Optional[str]) -> Dict[str, Any]:
        self.is_running = True
        try:
            return await ConfigBackupService(db, backup_dir).backup_config_setup()
        finally:
            self.is_running = False


# Process-wide scheduler shared by the router and the Celery task
backup_scheduler = ConfigBackupScheduler()
