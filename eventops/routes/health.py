"""
Health check endpoints with database pool and realtime broadcast status.
"""

import time

from fastapi import APIRouter

from eventops.db.pool import db_health_check
from eventops.infrastructure.observability.logging import log_health_check
from eventops.services.realtime import broadcaster

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "eventops"}


@router.get("/readyz")
async def readyz():
    """Readiness check covering the database pool and Redis broadcast."""
    checks = {}
    overall_ok = True

    t0 = time.time()
    db_health = await db_health_check()
    db_ok = bool(db_health.get("healthy", False))
    checks["database"] = {"ok": db_ok, "latency_ms": round((time.time() - t0) * 1000, 1)}
    if not db_ok:
        checks["database"]["error"] = db_health.get("error")
    log_health_check("database", db_ok, checks["database"]["latency_ms"], db_health.get("error"))
    overall_ok = overall_ok and db_ok

    # Broadcast is optional; only a configured but unreachable Redis fails readiness
    if broadcaster.redis_url:
        t0 = time.time()
        redis_ok = await broadcaster.ping()
        checks["redis"] = {"ok": redis_ok, "latency_ms": round((time.time() - t0) * 1000, 1)}
        log_health_check("redis", redis_ok, checks["redis"]["latency_ms"])
        overall_ok = overall_ok and redis_ok
    else:
        checks["redis"] = {"ok": True, "enabled": False}

    return {"overall_ok": overall_ok, "checks": checks}
