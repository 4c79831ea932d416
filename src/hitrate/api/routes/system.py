"""System health endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from hitrate.api.deps import get_registry
from hitrate.registry.queries import Registry

router = APIRouter()

_start_time = time.time()


@router.get("/system/health")
def health_check(registry: Registry = Depends(get_registry)) -> dict:
    """System health check: database reachability, latest snapshot, uptime."""
    db_ok = registry.db.health_check()
    latest = registry.get_latest_metrics_date() if db_ok else None
    return {
        "status": "healthy" if db_ok else "degraded",
        "database": db_ok,
        "latestMetricsDate": latest.isoformat() if latest else None,
        "uptime": int(time.time() - _start_time),
    }
