"""Employee models shared by the store, the hierarchy core and the API."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
NormalizedEmail = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1)]


def _blank_to_none(value: object) -> object:
    # forms submit "" for "no manager"
    if isinstance(value, str) and not value.strip():
        return None
    return value


ManagerRef = Annotated[str | None, BeforeValidator(_blank_to_none)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class EmployeeType(str, Enum):
    ORG_MANAGER = "OrgManager"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"
    INTERN = "Intern"
    OTHER = "Other"


class CamelModel(BaseModel):
    """snake_case attributes, camelCase on the wire and in stored documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmployeeBase(CamelModel):
    name: TrimmedStr
    email: NormalizedEmail
    department: TrimmedStr
    position: TrimmedStr
    employee_type: EmployeeType = EmployeeType.EMPLOYEE
    manager_id: ManagerRef = None


class EmployeeCreate(EmployeeBase):
    """Request body for a new employee."""


class EmployeeUpdate(CamelModel):
    """Partial update. Omitted fields keep their stored value; an explicit
    ``managerId: null`` clears the manager. Explicit nulls for any other
    field are rejected."""

    name: TrimmedStr | None = None
    email: NormalizedEmail | None = None
    department: TrimmedStr | None = None
    position: TrimmedStr | None = None
    employee_type: EmployeeType | None = None
    manager_id: ManagerRef = None

    @field_validator("name", "email", "department", "position", "employee_type")
    @classmethod
    def _required_fields_not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class Employee(EmployeeBase):
    """A stored employee record."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ManagerSummary(CamelModel):
    id: str
    name: str
    email: str
    position: str
    employee_type: EmployeeType


class EmployeeRead(Employee):
    """Employee with its manager resolved for directory display."""

    manager: ManagerSummary | None = None


class HierarchyRowRead(CamelModel):
    """One visible row of the hierarchy view, in depth-first order."""

    employee: Employee
    depth: int
    parent_id: str | None = None
    subordinate_count: int = 0
    expanded: bool = True


class UnattachedEmployeeRead(CamelModel):
    employee: Employee
    reason: str


class HierarchyResponse(CamelModel):
    root_ids: list[str] = []
    rows: list[HierarchyRowRead] = []
    unattached: list[UnattachedEmployeeRead] = []
