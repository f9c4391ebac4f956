"""
CEG Connect - HTTP Middleware
Request correlation and timing, helmet-style response headers, body size cap
"""

import time
from typing import Callable, Dict
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


# Probes and docs are not worth a log line each
QUIET_PATHS = frozenset({"/", "/api/health", "/api/health/ready", "/docs", "/redoc", "/openapi.json"})

SLOW_REQUEST_MS = 1000

# Same set helmet() sends with its defaults
HELMET_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "0",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (client supplied X-Request-ID or a fresh one),
    logs its outcome and duration, and echoes both back as response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        method, path = request.method, request.url.path
        quiet = path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
            elapsed = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed:.2f}ms"

            if not quiet:
                logger.log_request(method, path, response.status_code, elapsed)
                if elapsed > SLOW_REQUEST_MS:
                    logger.warning(
                        f"Slow request: {method} {path} took {elapsed:.0f}ms",
                        extra={"event_type": "slow_request", "http_path": path, "duration_ms": elapsed},
                    )
            return response
        except Exception as exc:
            elapsed = (time.perf_counter() - started) * 1000
            logger.error(
                f"{method} {path} raised {type(exc).__name__} after {elapsed:.1f}ms",
                exc_info=True,
                extra={"event_type": "http_request_error", "http_method": method, "http_path": path},
            )
            raise
        finally:
            set_request_id("")
            set_user_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(HELMET_HEADERS)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds max_size bytes"""

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {declared}-byte body on {request.url.path} (limit {self.max_size})",
                extra={"event_type": "request_too_large", "http_path": request.url.path},
            )
            return JSONResponse(
                status_code=413,
                content={
                    "message": f"Request body exceeds {self.max_size // (1024 * 1024)}MB",
                    "code": "PAYLOAD_TOO_LARGE",
                }
            )
        return await call_next(request)
