"""
PeopleDesk HR - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, AuditMixin
from app.models.employee import (
    EmployeeProfile,
    EmployeeStatus,
    EmployeeSystemRole,
    SystemRole,
)
from app.models.payroll_config import (
    ConfigStatus,
    PayGrade,
    Allowance,
    TaxRule,
    InsuranceBracket,
    SigningBonusPolicy,
    TerminationBenefitPolicy,
    CONFIG_MODELS,
)
from app.models.payroll import (
    PayrollRun,
    PayrollRunStatus,
    PaymentStatus,
    BankStatus,
    EmployeePayrollDetail,
    PayrollExceptionEntry,
    ExceptionSeverity,
    ExceptionType,
    ExceptionStatus,
    AdjustmentStatus,
    EmployeeSigningBonus,
    EmployeeTerminationBenefit,
    EmployeePenalty,
)
from app.models.notification import (
    Notification,
    NotificationRecipient,
    NotificationType,
    DeliveryType,
)
from app.models.performance import (
    AppraisalTemplate,
    AppraisalCycle,
    AppraisalCycleStatus,
    AppraisalAssignment,
    AppraisalAssignmentStatus,
    AppraisalRecord,
    AppraisalRecordStatus,
    AppraisalDispute,
    AppraisalDisputeStatus,
    GOALS_KEY,
)
from app.models.offboarding import (
    TerminationRequest,
    TerminationInitiation,
    TerminationStatus,
)

__all__ = [
    "BaseModel", "TimestampMixin", "AuditMixin",
    "EmployeeProfile", "EmployeeStatus", "EmployeeSystemRole", "SystemRole",
    "ConfigStatus", "PayGrade", "Allowance", "TaxRule", "InsuranceBracket",
    "SigningBonusPolicy", "TerminationBenefitPolicy", "CONFIG_MODELS",
    "PayrollRun", "PayrollRunStatus", "PaymentStatus", "BankStatus",
    "EmployeePayrollDetail", "PayrollExceptionEntry", "ExceptionSeverity",
    "ExceptionType", "ExceptionStatus", "AdjustmentStatus",
    "EmployeeSigningBonus", "EmployeeTerminationBenefit", "EmployeePenalty",
    "Notification", "NotificationRecipient", "NotificationType", "DeliveryType",
    "AppraisalTemplate", "AppraisalCycle", "AppraisalCycleStatus",
    "AppraisalAssignment", "AppraisalAssignmentStatus", "AppraisalRecord",
    "AppraisalRecordStatus", "AppraisalDispute", "AppraisalDisputeStatus", "GOALS_KEY",
    "TerminationRequest", "TerminationInitiation", "TerminationStatus",
]
