from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from org_hierarchy.api.v1.router import api_router
from org_hierarchy.core.config import settings
from org_hierarchy.services.employee_store import create_store

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    store = create_store(settings)
    try:
        await store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize employee store (%s)", settings.STORE_BACKEND)
    application.state.employee_store = store
    logger.info("Employee store ready (backend=%s)", settings.STORE_BACKEND)
    yield
    await store.close()
    application.state.employee_store = None


app = FastAPI(
    title="Organization Hierarchy API",
    description="Employee directory and reporting hierarchy",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {
        "message": "Organization Hierarchy API",
        "version": settings.APP_VERSION,
        "endpoints": {
            "health": "/api/v1/health",
            "employees": "/api/v1/employees",
            "hierarchy": "/api/v1/employees/hierarchy",
        },
    }
