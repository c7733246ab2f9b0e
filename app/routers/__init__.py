"""
PeopleDesk HR - Routers Package

FastAPI route handlers.

Routers:
- auth: Login and current user
- employees: Employee profiles and system roles
- payroll_config: Configuration records and backups
- payroll: Payroll execution, exceptions, approvals and adjustments
- performance: Appraisal templates, cycles, records and disputes
- offboarding: Termination reviews
- notifications: In-app notifications
"""

from app.routers import (
    auth,
    employees,
    notifications,
    offboarding,
    payroll,
    payroll_config,
    performance,
)

__all__ = [
    "auth",
    "employees",
    "notifications",
    "offboarding",
    "payroll",
    "payroll_config",
    "performance",
]
