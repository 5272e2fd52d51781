"""Domain errors raised by the hierarchy core and the directory service.

Each validation error carries a stable ``code`` and the ids involved. None of
them carries user-facing text; the API layer turns them into messages.
"""

from __future__ import annotations


class HierarchyValidationError(Exception):
    """Semantic rejection of a create/update/delete. Never retried."""

    code = "validation_error"

    def __init__(self, employee_id: str | None = None, **context: object) -> None:
        self.employee_id = employee_id
        self.context = context
        super().__init__(self.code, employee_id, context)


class DuplicateEmailError(HierarchyValidationError):
    code = "duplicate_email"

    def __init__(self, email: str, existing_id: str | None = None) -> None:
        super().__init__(existing_id, email=email)
        self.email = email


class InvalidManagerTypeError(HierarchyValidationError):
    code = "invalid_manager_type"


class ManagerRequiredError(HierarchyValidationError):
    code = "manager_required"


class CyclicAssignmentError(HierarchyValidationError):
    code = "cyclic_assignment"


class UnknownManagerReferenceError(HierarchyValidationError):
    code = "unknown_manager_reference"


class HasSubordinatesError(HierarchyValidationError):
    code = "has_subordinates"


class EmployeeNotFoundError(Exception):
    code = "employee_not_found"

    def __init__(self, employee_id: str) -> None:
        super().__init__(employee_id)
        self.employee_id = employee_id


class HierarchyIntegrityError(Exception):
    """Stored data violates acyclicity, e.g. after a direct datastore edit."""

    code = "hierarchy_integrity"

    def __init__(self, employee_id: str, depth: int) -> None:
        super().__init__(employee_id, depth)
        self.employee_id = employee_id
        self.depth = depth
