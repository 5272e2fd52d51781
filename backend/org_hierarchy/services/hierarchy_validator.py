"""Reporting-line rules guarding every create, update and delete.

All functions are pure: they only look at the employee set passed in.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from org_hierarchy.core.exceptions import (
    CyclicAssignmentError,
    DuplicateEmailError,
    HasSubordinatesError,
    InvalidManagerTypeError,
    ManagerRequiredError,
    UnknownManagerReferenceError,
)
from org_hierarchy.models.employee import Employee, EmployeeType

_INDIVIDUAL_LEAD_TYPES = frozenset(
    {EmployeeType.ORG_MANAGER, EmployeeType.MANAGER, EmployeeType.EMPLOYEE}
)

# Closed table: a new EmployeeType needs an explicit entry here.
ALLOWED_MANAGER_TYPES: dict[EmployeeType, frozenset[EmployeeType]] = {
    EmployeeType.ORG_MANAGER: frozenset(),
    EmployeeType.MANAGER: frozenset({EmployeeType.ORG_MANAGER}),
    EmployeeType.EMPLOYEE: _INDIVIDUAL_LEAD_TYPES,
    EmployeeType.INTERN: _INDIVIDUAL_LEAD_TYPES,
    EmployeeType.OTHER: _INDIVIDUAL_LEAD_TYPES,
}


def can_report_to(candidate_type: EmployeeType, manager_type: EmployeeType) -> bool:
    return manager_type in ALLOWED_MANAGER_TYPES[candidate_type]


def requires_manager(employee_type: EmployeeType) -> bool:
    return employee_type is not EmployeeType.ORG_MANAGER


def find_subordinates(employee_id: str, all_employees: Iterable[Employee]) -> list[Employee]:
    return [e for e in all_employees if e.manager_id == employee_id]


def would_create_cycle(
    candidate_id: str,
    proposed_manager_id: str,
    all_employees: Sequence[Employee],
) -> bool:
    """Walk up from the proposed manager and report whether the chain reaches
    the candidate.

    The walk takes at most ``len(all_employees)`` steps. Running out of steps
    means the stored data already contains a cycle, which counts as cyclic.
    """
    if proposed_manager_id == candidate_id:
        return True

    by_id = {e.id: e for e in all_employees}
    current_id: str | None = proposed_manager_id
    steps = 0
    while current_id is not None:
        if current_id == candidate_id:
            return True
        current = by_id.get(current_id)
        if current is None:
            return False
        if steps >= len(by_id):
            return True
        current_id = current.manager_id
        steps += 1
    return False


def validate_assignment(
    candidate: Employee,
    proposed_manager_id: str | None,
    all_employees: Sequence[Employee],
) -> None:
    """Raise a ``HierarchyValidationError`` unless ``candidate`` may report to
    ``proposed_manager_id`` given the current employee set.

    ``candidate`` carries the proposed ``employee_type``; its stored version,
    if any, may also be present in ``all_employees``.
    """
    others = [e for e in all_employees if e.id != candidate.id]

    if not requires_manager(candidate.employee_type):
        if proposed_manager_id is not None:
            raise InvalidManagerTypeError(candidate.id, manager_id=proposed_manager_id)
    else:
        if proposed_manager_id is None:
            raise ManagerRequiredError(candidate.id)
        if proposed_manager_id == candidate.id:
            raise CyclicAssignmentError(candidate.id, manager_id=proposed_manager_id)

        manager = next((e for e in others if e.id == proposed_manager_id), None)
        if manager is None:
            raise UnknownManagerReferenceError(candidate.id, manager_id=proposed_manager_id)
        if not can_report_to(candidate.employee_type, manager.employee_type):
            raise InvalidManagerTypeError(
                candidate.id,
                manager_id=manager.id,
                candidate_type=candidate.employee_type.value,
                manager_type=manager.employee_type.value,
            )
        if would_create_cycle(candidate.id, proposed_manager_id, others):
            raise CyclicAssignmentError(candidate.id, manager_id=proposed_manager_id)

    # A type change must not break the reporting line of existing subordinates.
    for subordinate in find_subordinates(candidate.id, others):
        if not can_report_to(subordinate.employee_type, candidate.employee_type):
            raise InvalidManagerTypeError(
                subordinate.id,
                manager_id=candidate.id,
                candidate_type=subordinate.employee_type.value,
                manager_type=candidate.employee_type.value,
            )


def ensure_email_available(
    email: str,
    all_employees: Iterable[Employee],
    exclude_id: str | None = None,
) -> None:
    wanted = email.strip().lower()
    for employee in all_employees:
        if employee.id != exclude_id and employee.email.lower() == wanted:
            raise DuplicateEmailError(wanted, existing_id=employee.id)


def ensure_can_delete(employee_id: str, all_employees: Iterable[Employee]) -> None:
    subordinates = find_subordinates(employee_id, all_employees)
    if subordinates:
        raise HasSubordinatesError(
            employee_id,
            subordinate_ids=[e.id for e in subordinates],
        )


def eligible_managers(
    candidate_type: EmployeeType,
    all_employees: Sequence[Employee],
    candidate_id: str | None = None,
) -> list[Employee]:
    """Employees that ``candidate_type`` may legally report to.

    With ``candidate_id`` the candidate itself and anyone below it are left
    out, since picking them would close a cycle.
    """
    allowed = ALLOWED_MANAGER_TYPES[candidate_type]
    result: list[Employee] = []
    for employee in all_employees:
        if employee.employee_type not in allowed:
            continue
        if candidate_id is not None and would_create_cycle(candidate_id, employee.id, all_employees):
            continue
        result.append(employee)
    return result
