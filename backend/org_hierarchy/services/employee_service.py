"""Employee directory operations: CRUD guarded by the hierarchy rules.

Every write reads the full employee set, validates against it and only then
touches the store. There is no version token, so two writers racing each
other can both pass validation against a stale snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from org_hierarchy.core.exceptions import EmployeeNotFoundError
from org_hierarchy.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeRead,
    EmployeeType,
    EmployeeUpdate,
    ManagerSummary,
)
from org_hierarchy.services import hierarchy_validator
from org_hierarchy.services.employee_store import EmployeeStore
from org_hierarchy.services.tree_builder import Forest, build_forest

logger = logging.getLogger(__name__)

TYPE_RANK: dict[EmployeeType, int] = {
    EmployeeType.ORG_MANAGER: 1,
    EmployeeType.MANAGER: 2,
    EmployeeType.EMPLOYEE: 3,
    EmployeeType.INTERN: 4,
    EmployeeType.OTHER: 5,
}


def directory_order(employee: Employee) -> tuple[int, str]:
    return TYPE_RANK.get(employee.employee_type, 100), employee.name.casefold()


def matches_search(employee: Employee, term: str) -> bool:
    needle = term.strip().casefold()
    if not needle:
        return True
    return any(needle in value.casefold() for value in (employee.name, employee.position, employee.department))


def _summarize(manager: Employee) -> ManagerSummary:
    return ManagerSummary(
        id=manager.id,
        name=manager.name,
        email=manager.email,
        position=manager.position,
        employee_type=manager.employee_type,
    )


class EmployeeDirectoryService:
    def __init__(self, store: EmployeeStore) -> None:
        self.store = store

    async def list_employees(self, search: str | None = None) -> list[EmployeeRead]:
        employees = await self.store.find_all()
        by_id = {e.id: e for e in employees}
        selected = [e for e in employees if not search or matches_search(e, search)]
        selected.sort(key=directory_order)
        return [self._with_manager(e, by_id) for e in selected]

    async def get_employee(self, employee_id: str) -> EmployeeRead:
        employee = await self.store.find_by_id(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        manager = await self.store.find_by_id(employee.manager_id) if employee.manager_id else None
        return self._with_manager(employee, {manager.id: manager} if manager else {})

    async def create_employee(self, data: EmployeeCreate) -> EmployeeRead:
        employees = await self.store.find_all()
        candidate = Employee(**data.model_dump())

        hierarchy_validator.ensure_email_available(candidate.email, employees)
        hierarchy_validator.validate_assignment(candidate, candidate.manager_id, employees)

        saved = await self.store.save(candidate)
        logger.info("Created employee %s (%s)", saved.id, saved.employee_type.value)
        return self._with_manager(saved, {e.id: e for e in employees})

    async def update_employee(self, employee_id: str, data: EmployeeUpdate) -> EmployeeRead:
        employees = await self.store.find_all()
        current = next((e for e in employees if e.id == employee_id), None)
        if current is None:
            raise EmployeeNotFoundError(employee_id)

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        candidate = current.model_copy(update=changes)
        candidate.updated_at = datetime.now(timezone.utc)

        if candidate.email != current.email:
            hierarchy_validator.ensure_email_available(candidate.email, employees, exclude_id=employee_id)
        hierarchy_validator.validate_assignment(candidate, candidate.manager_id, employees)

        saved = await self.store.save(candidate)
        logger.info("Updated employee %s fields=%s", employee_id, sorted(changes))
        return self._with_manager(saved, {e.id: e for e in employees})

    async def delete_employee(self, employee_id: str) -> None:
        employees = await self.store.find_all()
        if not any(e.id == employee_id for e in employees):
            raise EmployeeNotFoundError(employee_id)

        hierarchy_validator.ensure_can_delete(employee_id, employees)
        await self.store.delete(employee_id)
        logger.info("Deleted employee %s", employee_id)

    async def build_hierarchy(self, sibling_key: Callable[[Employee], Any] | None = None) -> Forest:
        employees = await self.store.find_all()
        forest = build_forest(employees, sibling_key=sibling_key)
        if forest.unattached:
            logger.warning(
                "%d employee(s) not reachable from any org manager: %s",
                len(forest.unattached),
                ", ".join(f"{o.employee.id}({o.reason.value})" for o in forest.unattached),
            )
        return forest

    async def eligible_managers(
        self,
        employee_type: EmployeeType,
        employee_id: str | None = None,
    ) -> list[Employee]:
        employees = await self.store.find_all()
        managers = hierarchy_validator.eligible_managers(employee_type, employees, candidate_id=employee_id)
        return sorted(managers, key=directory_order)

    @staticmethod
    def _with_manager(employee: Employee, by_id: dict[str, Employee]) -> EmployeeRead:
        manager = by_id.get(employee.manager_id) if employee.manager_id else None
        return EmployeeRead(
            **employee.model_dump(),
            manager=_summarize(manager) if manager else None,
        )
