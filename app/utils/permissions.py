"""
PeopleDesk HR - Route Permissions

Explicit route -> role requirement table checked by the authorization guard
in app.dependencies.

A route is either Open (any authenticated caller) or RoleRestricted (the
caller's effective roles must intersect the declared set). Every guarded
route id must appear in ROUTE_ROLES; looking up an unknown id raises
KeyError when the router module is imported.

Payroll Execution Matrix:
=========================
| Route                         | Specialist | Manager | Finance |
|-------------------------------|------------|---------|---------|
| generate_draft                | X          |         |         |
| list/get runs, exceptions     | X          | X       | X       |
| clear/resolve exceptions      |            | X       |         |
| publish                       | X          |         |         |
| manager_approve               |            | X       |         |
| reject                        |            | X       | X       |
| finance_approve               |            |         | X       |
| freeze / unfreeze             |            | X       |         |
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Set, Union

from app.models.employee import SystemRole


@dataclass(frozen=True)
class Open:
    """No role requirement declared: every authenticated caller is allowed."""


@dataclass(frozen=True)
class RoleRestricted:
    """Caller must hold at least one of the listed roles."""
    roles: FrozenSet[SystemRole]


RoleRequirement = Union[Open, RoleRestricted]

OPEN = Open()


def restricted(*roles: SystemRole) -> RoleRestricted:
    if not roles:
        raise ValueError("RoleRestricted requires at least one role; use OPEN instead")
    return RoleRestricted(frozenset(roles))


# Role groups
PAYROLL_READERS = (
    SystemRole.PAYROLL_SPECIALIST,
    SystemRole.PAYROLL_MANAGER,
    SystemRole.FINANCE_STAFF,
)
HR_STAFF = (
    SystemRole.HR_MANAGER,
    SystemRole.HR_EMPLOYEE,
    SystemRole.HR_ADMIN,
)


ROUTE_ROLES: Dict[str, RoleRequirement] = {
    # Auth
    "auth.me": OPEN,

    # Employees
    "employees.create": restricted(SystemRole.HR_ADMIN, SystemRole.HR_MANAGER, SystemRole.SYSTEM_ADMIN),
    "employees.list": restricted(*HR_STAFF, SystemRole.SYSTEM_ADMIN, SystemRole.PAYROLL_SPECIALIST),
    "employees.get": restricted(*HR_STAFF, SystemRole.SYSTEM_ADMIN, SystemRole.PAYROLL_SPECIALIST),
    "employees.assign_roles": restricted(SystemRole.SYSTEM_ADMIN),
    "employees.get_roles": restricted(SystemRole.SYSTEM_ADMIN, SystemRole.HR_ADMIN),

    # Payroll configuration
    "payroll_config.create": restricted(SystemRole.PAYROLL_SPECIALIST, SystemRole.SYSTEM_ADMIN),
    "payroll_config.update": restricted(SystemRole.PAYROLL_SPECIALIST, SystemRole.SYSTEM_ADMIN),
    "payroll_config.delete": restricted(SystemRole.PAYROLL_SPECIALIST, SystemRole.SYSTEM_ADMIN),
    "payroll_config.list": restricted(*PAYROLL_READERS, SystemRole.SYSTEM_ADMIN, SystemRole.HR_MANAGER),
    "payroll_config.get": restricted(*PAYROLL_READERS, SystemRole.SYSTEM_ADMIN, SystemRole.HR_MANAGER),
    "payroll_config.approve": restricted(SystemRole.PAYROLL_MANAGER, SystemRole.SYSTEM_ADMIN),
    "payroll_config.reject": restricted(SystemRole.PAYROLL_MANAGER, SystemRole.SYSTEM_ADMIN),

    # Configuration backup
    "config_backup.trigger": restricted(SystemRole.SYSTEM_ADMIN),
    "config_backup.list": restricted(SystemRole.SYSTEM_ADMIN),
    "config_backup.restore": restricted(SystemRole.SYSTEM_ADMIN),
    "config_backup.download": restricted(SystemRole.SYSTEM_ADMIN),

    # Payroll execution
    "payroll.generate_draft": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.list_runs": restricted(*PAYROLL_READERS),
    "payroll.get_run": restricted(*PAYROLL_READERS),
    "payroll.run_employees": restricted(*PAYROLL_READERS),
    "payroll.run_exceptions": restricted(*PAYROLL_READERS),
    "payroll.exceptions": restricted(*PAYROLL_READERS),
    "payroll.clear_exceptions": restricted(SystemRole.PAYROLL_MANAGER),
    "payroll.resolve_exception": restricted(SystemRole.PAYROLL_MANAGER),
    "payroll.publish": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.manager_approve": restricted(SystemRole.PAYROLL_MANAGER),
    "payroll.reject": restricted(SystemRole.PAYROLL_MANAGER, SystemRole.FINANCE_STAFF),
    "payroll.finance_approve": restricted(SystemRole.FINANCE_STAFF),
    "payroll.freeze": restricted(SystemRole.PAYROLL_MANAGER),
    "payroll.unfreeze": restricted(SystemRole.PAYROLL_MANAGER),
    "payroll.edit_period": restricted(SystemRole.PAYROLL_SPECIALIST),

    # HR payroll events
    "payroll.signing_bonus.create": restricted(SystemRole.HR_MANAGER, SystemRole.SYSTEM_ADMIN),
    "payroll.signing_bonus.list": restricted(*PAYROLL_READERS, SystemRole.HR_MANAGER),
    "payroll.signing_bonus.approve": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.signing_bonus.reject": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.signing_bonus.edit": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.termination_benefit.create": restricted(SystemRole.HR_MANAGER, SystemRole.SYSTEM_ADMIN),
    "payroll.termination_benefit.list": restricted(*PAYROLL_READERS, SystemRole.HR_MANAGER),
    "payroll.termination_benefit.approve": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.termination_benefit.reject": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.termination_benefit.edit": restricted(SystemRole.PAYROLL_SPECIALIST),
    "payroll.penalty.create": restricted(SystemRole.HR_MANAGER, SystemRole.PAYROLL_SPECIALIST),
    "payroll.penalty.list": restricted(*PAYROLL_READERS, SystemRole.HR_MANAGER),
    "payroll.penalty.approve": restricted(SystemRole.PAYROLL_SPECIALIST),

    # Performance
    "performance.templates.create": restricted(SystemRole.HR_MANAGER, SystemRole.HR_ADMIN),
    "performance.templates.list": restricted(*HR_STAFF, SystemRole.DEPARTMENT_HEAD),
    "performance.cycles.create": restricted(SystemRole.HR_MANAGER),
    "performance.cycles.list": restricted(*HR_STAFF, SystemRole.DEPARTMENT_HEAD),
    "performance.assignments.create": restricted(SystemRole.HR_MANAGER, SystemRole.HR_EMPLOYEE),
    "performance.assignments.list": restricted(*HR_STAFF, SystemRole.DEPARTMENT_HEAD),
    "performance.records.create": restricted(SystemRole.DEPARTMENT_HEAD),
    "performance.records.update": restricted(SystemRole.DEPARTMENT_HEAD),
    "performance.records.publish": restricted(SystemRole.HR_MANAGER, SystemRole.HR_EMPLOYEE),
    "performance.records.mine": OPEN,
    "performance.reminders.send": restricted(SystemRole.HR_MANAGER, SystemRole.HR_EMPLOYEE),
    "performance.disputes.create": OPEN,
    "performance.disputes.list": restricted(SystemRole.HR_MANAGER, SystemRole.HR_EMPLOYEE),
    "performance.disputes.resolve": restricted(SystemRole.HR_MANAGER),

    # Offboarding
    "offboarding.reviews.create": restricted(SystemRole.HR_MANAGER),
    "offboarding.reviews.list": restricted(SystemRole.HR_MANAGER, SystemRole.HR_ADMIN),
    "offboarding.reviews.update_status": restricted(SystemRole.HR_MANAGER),

    # Notifications
    "notifications.mine": OPEN,
    "notifications.mark_read": OPEN,
    "notifications.read_all": OPEN,
    "notifications.create": restricted(SystemRole.HR_ADMIN, SystemRole.HR_MANAGER, SystemRole.SYSTEM_ADMIN),
}


def get_route_requirement(route_id: str) -> RoleRequirement:
    """Look up a route's requirement. Unknown ids raise KeyError."""
    return ROUTE_ROLES[route_id]


def _role_value(role: Union[str, Enum]) -> str:
    return role.value if isinstance(role, Enum) else str(role)


def normalize_roles(roles: Iterable[Union[str, Enum]]) -> Set[str]:
    """Role values as plain strings, ignoring empty entries."""
    return {_role_value(role) for role in roles if role}


def is_role_allowed(requirement: RoleRequirement, held_roles: Iterable[Union[str, Enum]]) -> bool:
    """Check the caller's effective roles against a route requirement."""
    if isinstance(requirement, Open):
        return True
    required = normalize_roles(requirement.roles)
    return bool(required & normalize_roles(held_roles))
