"""
Health Checks
=============
Liveness and readiness endpoints with an OTP store connectivity check.
"""

import time
from typing import Optional, Dict
from enum import Enum
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import structlog

from .store.base import KeyValueStore

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    status: str
    backend: Optional[str] = None
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: HealthStatus
    service: str
    version: str
    components: Dict[str, ComponentHealth]
    timestamp: float


async def check_store(store: KeyValueStore) -> ComponentHealth:
    """Check store connectivity and latency."""
    try:
        start = time.time()
        await store.ping()
        latency = (time.time() - start) * 1000
        return ComponentHealth(status="connected", backend=store.backend, latency_ms=round(latency, 2))
    except Exception as e:
        logger.error("Store health check failed", backend=store.backend, error=str(e))
        return ComponentHealth(status="error", backend=store.backend, error=type(e).__name__)


def create_health_router(service_name: str, store: KeyValueStore, version: str = "1.0.0") -> APIRouter:
    """
    Create a health check router.

    Returns:
        FastAPI router with /health, /health/live and /health/ready endpoints
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        store_health = await check_store(store)
        overall = HealthStatus.UNHEALTHY if store_health.status == "error" else HealthStatus.HEALTHY
        return HealthResponse(
            status=overall,
            service=service_name,
            version=version,
            components={"otp_store": store_health},
            timestamp=time.time(),
        )

    @router.get("/health/live")
    async def liveness_probe():
        return {"status": "alive"}

    @router.get("/health/ready")
    async def readiness_probe():
        store_health = await check_store(store)
        if store_health.status == "error":
            return JSONResponse(
                {"status": "not_ready", "reason": "otp_store_unavailable"},
                status_code=503,
            )
        return {"status": "ready"}

    return router
