from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from org_hierarchy.services.employee_service import EmployeeDirectoryService
from org_hierarchy.services.employee_store import EmployeeStore


def get_employee_store(request: Request) -> EmployeeStore:
    store: EmployeeStore | None = getattr(request.app.state, "employee_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Employee store not available",
        )
    return store


def get_directory_service(
    store: EmployeeStore = Depends(get_employee_store),  # noqa: B008
) -> EmployeeDirectoryService:
    return EmployeeDirectoryService(store)
