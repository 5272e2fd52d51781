from __future__ import annotations

from collections.abc import Iterable, Iterator

from org_hierarchy.services.tree_builder import Forest, TreeNode


class ExpansionState:
    """Per-node expand/collapse flags for one hierarchy view.

    Purely view state: it never touches employee data and is not persisted.
    Nodes are expanded unless collapsed explicitly.
    """

    def __init__(self, collapsed: Iterable[str] = ()) -> None:
        self._collapsed: set[str] = set(collapsed)

    @property
    def collapsed(self) -> frozenset[str]:
        return frozenset(self._collapsed)

    def is_expanded(self, employee_id: str) -> bool:
        return employee_id not in self._collapsed

    def expand(self, employee_id: str) -> None:
        self._collapsed.discard(employee_id)

    def collapse(self, employee_id: str) -> None:
        self._collapsed.add(employee_id)

    def toggle(self, employee_id: str) -> bool:
        if employee_id in self._collapsed:
            self._collapsed.discard(employee_id)
            return True
        self._collapsed.add(employee_id)
        return False

    def expand_all(self) -> None:
        self._collapsed.clear()

    def collapse_all(self, forest: Forest) -> None:
        self._collapsed.update(node.id for node in forest.walk() if not node.is_leaf)

    def visible_rows(self, forest: Forest) -> Iterator[tuple[int, TreeNode]]:
        """Yield ``(depth, node)`` for every row a renderer should draw."""
        stack: list[TreeNode] = list(reversed(forest.roots))
        while stack:
            node = stack.pop()
            yield node.depth, node
            if self.is_expanded(node.id):
                stack.extend(reversed(node.children))
