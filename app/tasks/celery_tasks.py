"""
PeopleDesk HR - Celery Tasks

Background tasks for scheduled operations.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from celery import shared_task

from app.database import async_session_factory

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ===========================================
# CONFIGURATION BACKUP
# ===========================================

@shared_task(name='app.tasks.celery_tasks.backup_config_setup_task')
def backup_config_setup_task() -> Optional[Dict[str, Any]]:
    """Nightly export of all payroll configuration tables."""
    return run_async(_backup_config_setup())


async def _backup_config_setup() -> Optional[Dict[str, Any]]:
    from app.services.config_backup_service import backup_scheduler

    async with async_session_factory() as db:
        result = await backup_scheduler.run_scheduled_backup(db)

    if result is not None:
        logger.info(f"Scheduled configuration backup written: {result['backup_name']}")
    return result


# ===========================================
# PERFORMANCE
# ===========================================

@shared_task(name='app.tasks.celery_tasks.send_appraisal_reminders_task')
def send_appraisal_reminders_task() -> Dict[str, int]:
    """Remind managers about appraisals that are not submitted yet."""
    return run_async(_send_appraisal_reminders())


async def _send_appraisal_reminders() -> Dict[str, int]:
    from app.services.performance_service import PerformanceService

    async with async_session_factory() as db:
        return await PerformanceService(db).send_reminders()
