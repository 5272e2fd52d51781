from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from org_hierarchy.core.dependencies import get_directory_service
from org_hierarchy.core.exceptions import (
    CyclicAssignmentError,
    DuplicateEmailError,
    EmployeeNotFoundError,
    HasSubordinatesError,
    HierarchyIntegrityError,
    HierarchyValidationError,
    InvalidManagerTypeError,
    ManagerRequiredError,
    UnknownManagerReferenceError,
)
from org_hierarchy.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeRead,
    EmployeeType,
    EmployeeUpdate,
    HierarchyResponse,
    HierarchyRowRead,
    UnattachedEmployeeRead,
)
from org_hierarchy.services.employee_service import EmployeeDirectoryService
from org_hierarchy.services.expansion import ExpansionState
from org_hierarchy.services.tree_builder import Forest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])

_MESSAGES: dict[type[Exception], str] = {
    DuplicateEmailError: "Email already exists",
    InvalidManagerTypeError: "This employee type cannot report to the selected manager",
    ManagerRequiredError: "This employee type requires a manager",
    CyclicAssignmentError: "The selected manager would create a circular reporting line",
    UnknownManagerReferenceError: "The selected manager does not exist",
    HasSubordinatesError: "Cannot delete an employee who still has subordinates",
}

_STATUS: dict[type[Exception], int] = {
    DuplicateEmailError: status.HTTP_409_CONFLICT,
    HasSubordinatesError: status.HTTP_409_CONFLICT,
}


def _validation_http_error(err: HierarchyValidationError) -> HTTPException:
    detail: dict[str, object] = {
        "code": err.code,
        "message": _MESSAGES.get(type(err), "Invalid employee data"),
    }
    if err.employee_id:
        detail["employeeId"] = err.employee_id
    if err.context:
        detail["context"] = err.context
    return HTTPException(
        status_code=_STATUS.get(type(err), status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )


def _not_found(err: EmployeeNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": err.code, "message": f"Employee '{err.employee_id}' not found"},
    )


def _server_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


def _forest_to_read(forest: Forest, state: ExpansionState) -> HierarchyResponse:
    rows = [
        HierarchyRowRead(
            employee=node.employee,
            depth=depth,
            parent_id=node.employee.manager_id if depth else None,
            subordinate_count=node.subordinate_count,
            expanded=state.is_expanded(node.id),
        )
        for depth, node in state.visible_rows(forest)
    ]
    return HierarchyResponse(
        root_ids=[root.id for root in forest.roots],
        rows=rows,
        unattached=[
            UnattachedEmployeeRead(employee=o.employee, reason=o.reason.value) for o in forest.unattached
        ],
    )


@router.get("", response_model=list[EmployeeRead])
async def list_employees(
    search: str | None = None,
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    try:
        return await service.list_employees(search=search)
    except Exception as err:
        logger.exception("Failed to list employees")
        raise _server_error("Failed to retrieve employees") from err


@router.get("/hierarchy", response_model=HierarchyResponse)
async def get_hierarchy(
    collapsed: list[str] = Query(default=[]),  # noqa: B008
    sort: str | None = Query(default=None, pattern="^name$"),
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    sibling_key = (lambda e: e.name.casefold()) if sort == "name" else None
    try:
        forest = await service.build_hierarchy(sibling_key=sibling_key)
        return _forest_to_read(forest, ExpansionState(collapsed))
    except HierarchyIntegrityError as err:
        logger.error("Manager links loop below employee %s (depth %d)", err.employee_id, err.depth)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": err.code, "message": "Stored reporting lines contain a cycle"},
        ) from err
    except Exception as err:
        logger.exception("Failed to build hierarchy")
        raise _server_error("Failed to build hierarchy") from err


@router.get("/eligible-managers", response_model=list[Employee])
async def list_eligible_managers(
    employee_type: EmployeeType = Query(alias="employeeType"),
    employee_id: str | None = Query(default=None, alias="employeeId"),
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    try:
        return await service.eligible_managers(employee_type, employee_id=employee_id)
    except Exception as err:
        logger.exception("Failed to list eligible managers for %s", employee_type.value)
        raise _server_error("Failed to retrieve eligible managers") from err


@router.get("/{employee_id}", response_model=EmployeeRead)
async def get_employee(
    employee_id: str,
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    try:
        return await service.get_employee(employee_id)
    except EmployeeNotFoundError as err:
        raise _not_found(err) from err
    except Exception as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise _server_error("Failed to retrieve employee") from err


@router.post("", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(
    request: EmployeeCreate,
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    try:
        return await service.create_employee(request)
    except HierarchyValidationError as err:
        logger.info("Rejected new employee email=%s: %s", request.email, err.code)
        raise _validation_http_error(err) from err
    except Exception as err:
        logger.exception("Failed to create employee email=%s", request.email)
        raise _server_error("Failed to create employee") from err


@router.put("/{employee_id}", response_model=EmployeeRead)
async def update_employee(
    employee_id: str,
    request: EmployeeUpdate,
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    try:
        return await service.update_employee(employee_id, request)
    except EmployeeNotFoundError as err:
        raise _not_found(err) from err
    except HierarchyValidationError as err:
        logger.info("Rejected update of employee %s: %s", employee_id, err.code)
        raise _validation_http_error(err) from err
    except Exception as err:
        logger.exception("Failed to update employee %s", employee_id)
        raise _server_error("Failed to update employee") from err


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: str,
    service: EmployeeDirectoryService = Depends(get_directory_service),  # noqa: B008
):
    try:
        await service.delete_employee(employee_id)
    except EmployeeNotFoundError as err:
        raise _not_found(err) from err
    except HierarchyValidationError as err:
        logger.info("Rejected delete of employee %s: %s", employee_id, err.code)
        raise _validation_http_error(err) from err
    except Exception as err:
        logger.exception("Failed to delete employee %s", employee_id)
        raise _server_error("Failed to delete employee") from err
    return Response(status_code=status.HTTP_204_NO_CONTENT)
