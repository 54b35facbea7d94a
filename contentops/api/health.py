# contentops/api/health.py
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.auth import get_db

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict:
    # liveness: 200 as long as the process is up
    return {
        "ok": True,
        "service": "contentops",
        "status": "healthy",
        "ts": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/readyz")
async def readyz(db: AsyncSession = Depends(get_db)):
    # readiness: DB ping + latency
    t0 = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "db": "down", "error": str(e)},
            headers={"Cache-Control": "no-store"},
        )
    latency_ms = (time.perf_counter() - t0) * 1000.0
    return JSONResponse(
        status_code=200,
        content={"ok": True, "db": "up", "db_latency_ms": round(latency_ms, 2)},
        headers={"Cache-Control": "no-store"},
    )
