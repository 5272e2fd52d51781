from __future__ import annotations

from fastapi import APIRouter, Depends

from org_hierarchy.core.config import settings
from org_hierarchy.core.dependencies import get_employee_store
from org_hierarchy.services.employee_store import EmployeeStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(store: EmployeeStore = Depends(get_employee_store)):  # noqa: B008
    services: dict[str, str] = {}

    try:
        if store.initialized:
            ok = await store.check_connection()
            services["employee_store"] = "ok" if ok else "error"
        else:
            services["employee_store"] = "not_configured"
    except Exception:
        services["employee_store"] = "error"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "backend": settings.STORE_BACKEND,
        "services": services,
    }


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
