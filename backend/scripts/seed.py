#!/usr/bin/env python3
"""Load an org chart from a JSON file into the employee store.

Run from the backend/ directory:

    python3 scripts/seed.py employees.json [--dry-run] [--check] [--verbose]

The file holds a list of employee objects (``name``, ``email``,
``department``, ``position``, ``employeeType``) where the manager is named
by email in ``managerEmail``. Records are created managers-first through the
directory service, so every record passes the same hierarchy checks as the
API. ``--dry-run`` validates against a copy of the current data and writes
nothing. ``--check`` reports employees no org manager reaches.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from pydantic import ValidationError  # noqa: E402

from org_hierarchy.core.config import Settings  # noqa: E402
from org_hierarchy.core.exceptions import HierarchyValidationError  # noqa: E402
from org_hierarchy.models.employee import EmployeeCreate  # noqa: E402
from org_hierarchy.services.employee_service import EmployeeDirectoryService  # noqa: E402
from org_hierarchy.services.employee_store import InMemoryEmployeeStore, create_store  # noqa: E402
from org_hierarchy.services.tree_builder import Forest  # noqa: E402

logger = logging.getLogger(__name__)


def load_records(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("employees", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of employees")
    return data


def _email_of(record: dict[str, Any]) -> str:
    return str(record.get("email", "")).strip().lower()


def order_by_reporting_line(
    records: list[dict[str, Any]],
    known_emails: set[str] | None = None,
) -> list[dict[str, Any]]:
    """Return ``records`` so that every manager precedes its reports.

    Managers may also be employees that already exist (``known_emails``).
    Raises ``ValueError`` for records whose manager never becomes available,
    which covers both unknown emails and reporting loops inside the file.
    """
    available = set(known_emails or ())
    pending = list(records)
    ordered: list[dict[str, Any]] = []

    while pending:
        remaining: list[dict[str, Any]] = []
        for record in pending:
            manager_email = str(record.get("managerEmail") or "").strip().lower()
            if not manager_email or manager_email in available:
                ordered.append(record)
                available.add(_email_of(record))
            else:
                remaining.append(record)
        if len(remaining) == len(pending):
            stuck = ", ".join(_email_of(r) for r in remaining)
            raise ValueError(f"Unresolvable managerEmail for: {stuck}")
        pending = remaining

    return ordered


def report_unattached(forest: Forest) -> int:
    for orphan in forest.unattached:
        logger.warning(
            "Unattached: %s <%s> manager=%s reason=%s",
            orphan.employee.name,
            orphan.employee.email,
            orphan.employee.manager_id,
            orphan.reason.value,
        )
    logger.info("%d root(s), %d unattached employee(s)", len(forest.roots), len(forest.unattached))
    return len(forest.unattached)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed the employee directory from a JSON org chart",
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="JSON file with employee records (omit with --check to only inspect)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate against a copy of the current data without writing",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report employees that are not reachable from any org manager",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


async def seed(args: argparse.Namespace, settings: Settings | None = None) -> tuple[int, int]:
    settings = settings or Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    store = create_store(settings)
    await store.initialize(settings)
    created = 0
    failed = 0
    try:
        existing = await store.find_all()
        target = InMemoryEmployeeStore(existing) if args.dry_run else store
        service = EmployeeDirectoryService(target)

        if args.file:
            records = order_by_reporting_line(load_records(args.file), {e.email for e in existing})
            ids_by_email = {e.email: e.id for e in existing}
            logger.info("Seeding %d employees (existing=%d)", len(records), len(existing))

            for record in records:
                payload = {k: v for k, v in record.items() if k != "managerEmail"}
                manager_email = str(record.get("managerEmail") or "").strip().lower()
                payload["managerId"] = ids_by_email.get(manager_email) if manager_email else None
                try:
                    data = EmployeeCreate.model_validate(payload)
                except ValidationError as err:
                    logger.error("Invalid record %s: %s", _email_of(record), err)
                    failed += 1
                    continue
                try:
                    employee = await service.create_employee(data)
                except HierarchyValidationError as err:
                    logger.error("Rejected %s: %s %s", _email_of(record), err.code, err.context)
                    failed += 1
                    continue
                ids_by_email[employee.email] = employee.id
                created += 1
                logger.debug("Created %s (%s)", employee.email, employee.id)

        if args.check:
            report_unattached(await service.build_hierarchy())
    finally:
        await store.close()

    logger.info("Created: %d, rejected: %d", created, failed)
    if args.dry_run:
        logger.info("[DRY RUN] Nothing was written.")
    return created, failed


def main() -> None:
    args = parse_args()
    if not args.file and not args.check:
        sys.exit("Nothing to do: pass a file and/or --check")
    _, failed = asyncio.run(seed(args))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
