"""
Health Check Endpoints

- /health        - Liveness (process is up), no auth
- /health/ready  - Readiness (document store and OTP store reachable)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from typing import Any, Dict
import asyncio
import time

from app.api.deps import get_document_store, get_otp_store
from app.core.config import settings
from app.core.database import DocumentStore
from app.core.logging_config import logger
from app.services.otp_store import OtpStore


router = APIRouter(prefix="/health", tags=["Health Checks"])


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def check_document_store(store: DocumentStore) -> Dict[str, Any]:
    """Check document store connectivity with a one-document read"""
    start = time.time()
    try:
        await store.ping()
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "message": "Document store reachable"
        }
    except Exception as e:
        logger.error(f"[HealthCheck] Document store check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "message": "Document store unreachable"
        }


async def check_otp_store(store: OtpStore) -> Dict[str, Any]:
    """Check the OTP store backend"""
    start = time.time()
    try:
        healthy = await store.ping()
    except Exception as e:
        logger.warning(f"[HealthCheck] OTP store check failed: {e}")
        healthy = False
    return {
        "status": "healthy" if healthy else "unhealthy",
        "backend": settings.OTP_STORE_BACKEND,
        "latency_ms": round((time.time() - start) * 1000, 2),
    }


@router.get("")
@router.get("/", include_in_schema=False)
async def health_check():
    """Liveness probe - returns 200 while the process is alive"""
    return {
        "status": "OK",
        "timestamp": _now_iso(),
        "version": settings.API_VERSION
    }


@router.get("/ready")
async def readiness_check(
    document_store: DocumentStore = Depends(get_document_store),
    otp_store: OtpStore = Depends(get_otp_store),
):
    """
    Readiness probe - returns 503 unless every dependency answers.

    Load balancers should use this endpoint rather than /health.
    """
    store_check, otp_check = await asyncio.gather(
        check_document_store(document_store),
        check_otp_store(otp_store),
    )
    is_ready = store_check["status"] == "healthy" and otp_check["status"] == "healthy"

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": _now_iso(),
        "checks": {
            "document_store": store_check,
            "otp_store": otp_check,
        }
    }

    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        return JSONResponse(status_code=503, content=response)

    return response
