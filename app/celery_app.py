"""
PeopleDesk HR - Celery Configuration

Celery configuration for background task processing.
Uses Redis as the message broker and result backend.
"""

from celery import Celery
from celery.schedules import crontab

from app.config import settings


# Create Celery app
celery_app = Celery(
    'peopledesk_hr',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['app.tasks.celery_tasks'],
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    # Timezone
    timezone='UTC',
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Beat schedule for periodic tasks
    beat_schedule={
        # Export payroll configuration every night
        'backup-config-setup': {
            'task': 'app.tasks.celery_tasks.backup_config_setup_task',
            'schedule': crontab(hour=settings.backup_schedule_hour, minute=0),
        },

        # Remind managers of unfinished appraisals every Monday
        'appraisal-reminders': {
            'task': 'app.tasks.celery_tasks.send_appraisal_reminders_task',
            'schedule': crontab(day_of_week=1, hour=9, minute=0),
        },
    },
)
