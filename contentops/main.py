# contentops/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from contentops.api import health
from contentops.api.v1 import assignments, bulk
from contentops.core.config import ENABLE_CREATE_ALL, LOG_LEVEL
from contentops.core.errors import register_exception_handlers
from contentops.db.session import create_all, engine
from contentops.middleware.request_logging import RequestLoggingMiddleware

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("contentops")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if ENABLE_CREATE_ALL:
        log.info("ENABLE_CREATE_ALL=1, creating tables")
        await create_all()
    yield
    await engine.dispose()


# ---------------------------
# APP
# ---------------------------
app = FastAPI(
    title="ContentOps Admin",
    version="1.0.0",
    description="Admin role-based client assignment and bulk operations",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

# ---------------------------
# ROUTER MOUNT
# ---------------------------
app.include_router(assignments.router, prefix="/api/v1", tags=["assignments"])
app.include_router(bulk.router, prefix="/api/v1", tags=["bulk_operations"])
app.include_router(health.router, prefix="/api")
