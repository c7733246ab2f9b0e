"""
PeopleDesk HR - Services Package

Business logic services.
"""

from app.services.auth_service import AuthService
from app.services.employee_service import EmployeeService
from app.services.notification_service import NotificationService, NotificationSink
from app.services.payroll_config_service import PayrollConfigService
from app.services.config_backup_service import ConfigBackupService, backup_scheduler
from app.services.payroll_run_service import PayrollRunService
from app.services.payroll_approval_service import PayrollApprovalService
from app.services.payroll_exceptions_query_service import PayrollExceptionsQueryService
from app.services.payroll_adjustment_service import PayrollAdjustmentService
from app.services.performance_service import PerformanceService
from app.services.offboarding_service import OffboardingService

__all__ = [
    "AuthService",
    "EmployeeService",
    "NotificationService",
    "NotificationSink",
    "PayrollConfigService",
    "ConfigBackupService",
    "backup_scheduler",
    "PayrollRunService",
    "PayrollApprovalService",
    "PayrollExceptionsQueryService",
    "PayrollAdjustmentService",
    "PerformanceService",
    "OffboardingService",
]
