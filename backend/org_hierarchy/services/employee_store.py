"""Employee record stores.

The store owns persistence only. It never validates; callers run the
hierarchy checks before ``save`` or ``delete``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from org_hierarchy.core.config import Settings
from org_hierarchy.core.exceptions import EmployeeNotFoundError
from org_hierarchy.models.employee import Employee

logger = logging.getLogger(__name__)


class EmployeeStore(ABC):
    initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False

    @abstractmethod
    async def find_all(self) -> list[Employee]: ...

    @abstractmethod
    async def find_by_id(self, employee_id: str) -> Employee | None: ...

    @abstractmethod
    async def save(self, employee: Employee) -> Employee: ...

    @abstractmethod
    async def delete(self, employee_id: str) -> None: ...

    async def check_connection(self) -> bool:
        return self.initialized


class InMemoryEmployeeStore(EmployeeStore):
    """Process-local store for development and tests. Keeps insertion order."""

    def __init__(self, employees: list[Employee] | None = None) -> None:
        self._records: dict[str, Employee] = {}
        for employee in employees or []:
            self._records[employee.id] = employee.model_copy(deep=True)

    async def find_all(self) -> list[Employee]:
        return [e.model_copy(deep=True) for e in self._records.values()]

    async def find_by_id(self, employee_id: str) -> Employee | None:
        employee = self._records.get(employee_id)
        return employee.model_copy(deep=True) if employee else None

    async def save(self, employee: Employee) -> Employee:
        self._records[employee.id] = employee.model_copy(deep=True)
        return employee

    async def delete(self, employee_id: str) -> None:
        if self._records.pop(employee_id, None) is None:
            raise EmployeeNotFoundError(employee_id)


class CosmosEmployeeStore(EmployeeStore):
    """Azure Cosmos DB store. Documents are keyed and partitioned by ``id``."""

    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing, store not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("CosmosEmployeeStore initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    async def find_all(self) -> list[Employee]:
        if not self.container:
            return []

        results: list[Employee] = []
        async for item in self.container.query_items(query="SELECT * FROM c"):
            results.append(self._to_employee(item))
        return results

    async def find_by_id(self, employee_id: str) -> Employee | None:
        if not self.container:
            return None

        query = "SELECT * FROM c WHERE c.id = @id"
        params: list[dict[str, str]] = [{"name": "@id", "value": employee_id}]
        async for item in self.container.query_items(query=query, parameters=params):
            return self._to_employee(item)
        return None

    async def save(self, employee: Employee) -> Employee:
        self._require_container()
        body = employee.model_dump(mode="json", by_alias=True)
        saved = await self.container.upsert_item(body=body)
        return self._to_employee(saved)

    async def delete(self, employee_id: str) -> None:
        self._require_container()
        try:
            await self.container.delete_item(item=employee_id, partition_key=employee_id)
        except CosmosResourceNotFoundError as err:
            raise EmployeeNotFoundError(employee_id) from err

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            async for _ in self.container.query_items(query="SELECT VALUE COUNT(1) FROM c"):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    def _require_container(self) -> None:
        if not self.container:
            raise RuntimeError("CosmosEmployeeStore not initialized")

    @staticmethod
    def _to_employee(raw: dict[str, Any]) -> Employee:
        # drop Cosmos system properties (_rid, _etag, _ts, ...)
        data = {k: v for k, v in raw.items() if not k.startswith("_")}
        return Employee.model_validate(data)


def create_store(settings: Settings) -> EmployeeStore:
    if settings.STORE_BACKEND == "cosmos":
        return CosmosEmployeeStore()
    if settings.STORE_BACKEND != "memory":
        logger.warning("Unknown STORE_BACKEND %r, falling back to memory", settings.STORE_BACKEND)
    return InMemoryEmployeeStore()
