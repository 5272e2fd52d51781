from __future__ import annotations

from collections.abc import Callable

import pytest
from starlette.testclient import TestClient

from org_hierarchy.core.dependencies import get_employee_store
from org_hierarchy.main import app
from org_hierarchy.models.employee import Employee, EmployeeType
from org_hierarchy.services.employee_store import InMemoryEmployeeStore

MakeEmployee = Callable[..., Employee]


def _make_employee(
    name: str,
    employee_type: EmployeeType = EmployeeType.EMPLOYEE,
    manager: Employee | str | None = None,
    *,
    email: str | None = None,
    department: str = "Engineering",
    position: str = "Engineer",
) -> Employee:
    manager_id = manager.id if isinstance(manager, Employee) else manager
    return Employee(
        id=name.lower(),
        name=name,
        email=email or f"{name.lower()}@example.com",
        department=department,
        position=position,
        employee_type=employee_type,
        manager_id=manager_id,
    )


@pytest.fixture
def make_employee() -> MakeEmployee:
    return _make_employee


@pytest.fixture
def org(make_employee: MakeEmployee) -> dict[str, Employee]:
    """Ceo -> Alice (Manager) -> Bob (Employee) -> Ivy (Intern)."""
    ceo = make_employee("Ceo", EmployeeType.ORG_MANAGER, position="Chief Executive", department="Board")
    alice = make_employee("Alice", EmployeeType.MANAGER, ceo, position="Engineering Manager")
    bob = make_employee("Bob", EmployeeType.EMPLOYEE, alice, position="Backend Engineer")
    ivy = make_employee("Ivy", EmployeeType.INTERN, bob, position="Intern", department="Research")
    return {"ceo": ceo, "alice": alice, "bob": bob, "ivy": ivy}


@pytest.fixture
def memory_store(org: dict[str, Employee]) -> InMemoryEmployeeStore:
    store = InMemoryEmployeeStore(list(org.values()))
    store.initialized = True
    return store


@pytest.fixture
def client(memory_store: InMemoryEmployeeStore):
    app.dependency_overrides[get_employee_store] = lambda: memory_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def empty_client():
    store = InMemoryEmployeeStore()
    store.initialized = True
    app.dependency_overrides[get_employee_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
