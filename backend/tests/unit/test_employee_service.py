from __future__ import annotations

import pytest
from pydantic import ValidationError

from org_hierarchy.core.exceptions import (
    CyclicAssignmentError,
    DuplicateEmailError,
    EmployeeNotFoundError,
    HasSubordinatesError,
    InvalidManagerTypeError,
    ManagerRequiredError,
    UnknownManagerReferenceError,
)
from org_hierarchy.models.employee import EmployeeCreate, EmployeeType, EmployeeUpdate
from org_hierarchy.services.employee_service import EmployeeDirectoryService, matches_search
from org_hierarchy.services.employee_store import InMemoryEmployeeStore


@pytest.fixture
def service(memory_store):
    return EmployeeDirectoryService(memory_store)


def _create(**overrides) -> EmployeeCreate:
    data = {
        "name": "  Dana Lee ",
        "email": " Dana.Lee@Example.com ",
        "department": "Engineering",
        "position": "Platform Engineer",
        "employeeType": "Employee",
        "managerId": "alice",
    }
    data.update(overrides)
    return EmployeeCreate.model_validate(data)


@pytest.mark.anyio
async def test_create_normalizes_and_links_manager(service, memory_store):
    created = await service.create_employee(_create())

    assert created.name == "Dana Lee"
    assert created.email == "dana.lee@example.com"
    assert created.manager is not None
    assert created.manager.id == "alice"
    assert created.manager.employee_type is EmployeeType.MANAGER
    stored = await memory_store.find_by_id(created.id)
    assert stored is not None
    assert stored.email == "dana.lee@example.com"


@pytest.mark.anyio
async def test_create_duplicate_email_case_insensitive(service, memory_store):
    before = await memory_store.find_all()

    with pytest.raises(DuplicateEmailError):
        await service.create_employee(_create(email="BOB@example.COM"))

    assert len(await memory_store.find_all()) == len(before)


@pytest.mark.anyio
async def test_create_requires_manager(service):
    with pytest.raises(ManagerRequiredError):
        await service.create_employee(_create(managerId=""))


@pytest.mark.anyio
async def test_create_with_unknown_manager(service):
    with pytest.raises(UnknownManagerReferenceError):
        await service.create_employee(_create(managerId="nobody"))


@pytest.mark.anyio
async def test_create_second_org_manager(service):
    created = await service.create_employee(_create(employeeType="OrgManager", managerId=None))

    assert created.manager_id is None
    forest = await service.build_hierarchy()
    assert [root.id for root in forest.roots] == ["ceo", created.id]


@pytest.mark.anyio
async def test_update_is_partial(service):
    updated = await service.update_employee("bob", EmployeeUpdate(position="Staff Engineer"))

    assert updated.position == "Staff Engineer"
    assert updated.manager_id == "alice"
    assert updated.email == "bob@example.com"
    assert updated.updated_at >= updated.created_at


@pytest.mark.anyio
async def test_update_rejects_cycle(service, memory_store):
    dana = await service.create_employee(_create(managerId="bob"))

    with pytest.raises(CyclicAssignmentError):
        await service.update_employee("bob", EmployeeUpdate(manager_id=dana.id))

    bob = await memory_store.find_by_id("bob")
    assert bob.manager_id == "alice"


@pytest.mark.anyio
async def test_update_email_to_taken_address(service):
    with pytest.raises(DuplicateEmailError):
        await service.update_employee("bob", EmployeeUpdate(email="Alice@example.com"))


@pytest.mark.anyio
async def test_update_email_to_free_address(service):
    updated = await service.update_employee("bob", EmployeeUpdate(email="robert@example.com"))
    assert updated.email == "robert@example.com"


@pytest.mark.anyio
async def test_promote_to_org_manager_needs_explicit_manager_clear(service):
    with pytest.raises(InvalidManagerTypeError):
        await service.update_employee("ivy", EmployeeUpdate(employee_type=EmployeeType.ORG_MANAGER))

    promoted = await service.update_employee(
        "ivy",
        EmployeeUpdate.model_validate({"employeeType": "OrgManager", "managerId": None}),
    )
    assert promoted.manager_id is None
    assert promoted.manager is None


@pytest.mark.anyio
async def test_update_missing_employee(service):
    with pytest.raises(EmployeeNotFoundError):
        await service.update_employee("ghost", EmployeeUpdate(name="Ghost"))


def test_update_model_rejects_explicit_null_fields():
    with pytest.raises(ValidationError):
        EmployeeUpdate.model_validate({"department": None})

    update = EmployeeUpdate.model_validate({"managerId": None})
    assert update.model_dump(exclude_unset=True) == {"manager_id": None}


@pytest.mark.anyio
async def test_delete_with_subordinates_leaves_store_unchanged(service, memory_store):
    before = [e.model_dump() for e in await memory_store.find_all()]

    with pytest.raises(HasSubordinatesError):
        await service.delete_employee("alice")

    assert [e.model_dump() for e in await memory_store.find_all()] == before


@pytest.mark.anyio
async def test_delete_leaf(service, memory_store):
    await service.delete_employee("ivy")
    assert await memory_store.find_by_id("ivy") is None


@pytest.mark.anyio
async def test_delete_missing(service):
    with pytest.raises(EmployeeNotFoundError):
        await service.delete_employee("ghost")


@pytest.mark.anyio
async def test_list_orders_by_type_then_name(make_employee):
    ceo = make_employee("Zoe", EmployeeType.ORG_MANAGER)
    store = InMemoryEmployeeStore(
        [
            make_employee("Yan", EmployeeType.INTERN, ceo),
            make_employee("Ann", EmployeeType.EMPLOYEE, ceo),
            ceo,
            make_employee("Max", EmployeeType.MANAGER, ceo),
            make_employee("Bea", EmployeeType.EMPLOYEE, ceo),
        ]
    )
    service = EmployeeDirectoryService(store)

    listed = await service.list_employees()

    assert [e.name for e in listed] == ["Zoe", "Max", "Ann", "Bea", "Yan"]
    assert listed[1].manager.name == "Zoe"


@pytest.mark.anyio
async def test_list_search_matches_name_position_department(service):
    assert [e.id for e in await service.list_employees(search="backend")] == ["bob"]
    assert [e.id for e in await service.list_employees(search="RESEARCH")] == ["ivy"]
    assert [e.id for e in await service.list_employees(search="ali")] == ["alice"]
    assert await service.list_employees(search="nothing-matches") == []


def test_matches_search_blank_term(org):
    assert matches_search(org["bob"], "   ")


@pytest.mark.anyio
async def test_get_employee_includes_manager(service):
    bob = await service.get_employee("bob")
    assert bob.manager is not None
    assert bob.manager.name == "Alice"

    with pytest.raises(EmployeeNotFoundError):
        await service.get_employee("ghost")


@pytest.mark.anyio
async def test_eligible_managers_for_existing_employee(service):
    managers = await service.eligible_managers(EmployeeType.EMPLOYEE, employee_id="bob")
    assert [e.id for e in managers] == ["ceo", "alice"]
