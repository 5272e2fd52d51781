"""Build the reporting forest shown by the hierarchy view.

Roots are the ``OrgManager`` employees. Children are looked up lazily from an
index built once per ``build_forest`` call, so the result is a plain,
immutable snapshot of the employee set it was given.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any

from org_hierarchy.core.exceptions import HierarchyIntegrityError
from org_hierarchy.models.employee import Employee, EmployeeType


class OrphanReason(str, Enum):
    UNKNOWN_MANAGER = "unknown_manager"
    MISSING_MANAGER = "missing_manager"
    DETACHED = "detached"


@dataclass(frozen=True)
class OrphanDiagnostic:
    """An employee no root reaches. Reported, never raised."""

    employee: Employee
    reason: OrphanReason


@dataclass(frozen=True)
class _ChildIndex:
    by_manager: dict[str, list[Employee]]
    max_depth: int

    def children_of(self, employee_id: str) -> list[Employee]:
        return self.by_manager.get(employee_id, [])


@dataclass(frozen=True, eq=False)
class TreeNode:
    employee: Employee
    depth: int
    _index: _ChildIndex = field(repr=False)

    @property
    def id(self) -> str:
        return self.employee.id

    @cached_property
    def children(self) -> tuple[TreeNode, ...]:
        child_depth = self.depth + 1
        subordinates = self._index.children_of(self.employee.id)
        if subordinates and child_depth > self._index.max_depth:
            raise HierarchyIntegrityError(self.employee.id, child_depth)
        return tuple(TreeNode(e, child_depth, self._index) for e in subordinates)

    @property
    def subordinate_count(self) -> int:
        return len(self._index.children_of(self.employee.id))

    @property
    def is_leaf(self) -> bool:
        return self.subordinate_count == 0

    def walk(self) -> Iterator[TreeNode]:
        """Depth-first, pre-order, without recursion."""
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(frozen=True)
class Forest:
    roots: tuple[TreeNode, ...]
    unattached: tuple[OrphanDiagnostic, ...]

    def walk(self) -> Iterator[TreeNode]:
        for root in self.roots:
            yield from root.walk()

    def find(self, employee_id: str) -> TreeNode | None:
        return next((node for node in self.walk() if node.id == employee_id), None)


def build_forest(
    all_employees: Sequence[Employee],
    sibling_key: Callable[[Employee], Any] | None = None,
) -> Forest:
    """Turn a flat employee set into one tree per ``OrgManager``.

    Siblings keep the order of ``all_employees`` unless ``sibling_key`` is
    given. Node depth is capped at the number of employees; deeper nodes mean
    the stored manager links loop, and raise ``HierarchyIntegrityError``.
    """
    by_manager: dict[str, list[Employee]] = {}
    for employee in all_employees:
        if employee.manager_id is not None:
            by_manager.setdefault(employee.manager_id, []).append(employee)
    if sibling_key is not None:
        for siblings in by_manager.values():
            siblings.sort(key=sibling_key)

    index = _ChildIndex(by_manager=by_manager, max_depth=len(all_employees))
    root_employees = [e for e in all_employees if e.employee_type is EmployeeType.ORG_MANAGER]
    if sibling_key is not None:
        root_employees.sort(key=sibling_key)

    roots = tuple(TreeNode(e, 0, index) for e in root_employees)
    return Forest(roots=roots, unattached=tuple(_find_unattached(all_employees, root_employees, by_manager)))


def _find_unattached(
    all_employees: Sequence[Employee],
    roots: Sequence[Employee],
    by_manager: dict[str, list[Employee]],
) -> Iterator[OrphanDiagnostic]:
    reached: set[str] = set()
    queue = deque(e.id for e in roots)
    while queue:
        employee_id = queue.popleft()
        if employee_id in reached:
            continue
        reached.add(employee_id)
        queue.extend(e.id for e in by_manager.get(employee_id, []))

    known_ids = {e.id for e in all_employees}
    for employee in all_employees:
        if employee.id in reached:
            continue
        if employee.manager_id is None:
            reason = OrphanReason.MISSING_MANAGER
        elif employee.manager_id not in known_ids:
            reason = OrphanReason.UNKNOWN_MANAGER
        else:
            reason = OrphanReason.DETACHED
        yield OrphanDiagnostic(employee=employee, reason=reason)
