from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import CampusConnectError, RateLimitedError, UpstreamError, error_response
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.core.rate_limiter import default_rate_limit_handler, limiter, rate_limit_exceeded_handler
from app.api.router import api_router
from app.services.email_service import EmailService
from app.services.otp_store import create_otp_store

OTP_STORE_BACKENDS = ("memory", "redis")


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if unusable"""
    errors = []
    warnings = []

    if settings.OTP_STORE_BACKEND not in OTP_STORE_BACKENDS:
        errors.append(f"OTP_STORE_BACKEND must be one of {', '.join(OTP_STORE_BACKENDS)}")

    if not settings.firebase_configured:
        warnings.append("Firebase credentials not set - token verification and Firestore will fail")

    if not (settings.SMTP_USER and settings.SMTP_PASSWORD):
        warnings.append("SMTP credentials not set - OTP emails will NOT be delivered")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Invalid critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] ✓ Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    from app.core.database import FirestoreDocumentStore
    from app.core.firebase import close_firebase_app, get_firebase_app
    from app.core.security import FirebaseIdentityProvider

    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    await validate_critical_config()

    firebase_app = get_firebase_app()
    app.state.document_store = FirestoreDocumentStore()
    app.state.identity_provider = FirebaseIdentityProvider(app=firebase_app)
    app.state.email_service = EmailService()

    otp_store = create_otp_store(settings.OTP_STORE_BACKEND)
    await otp_store.connect()
    await otp_store.start_cleanup_task()
    app.state.otp_store = otp_store
    logger.info(f"OTP store ready ({settings.OTP_STORE_BACKEND})")

    yield

    logger.info(f"Shutting down {settings.APP_NAME} API...")
    await otp_store.close()
    await app.state.document_store.close()
    close_firebase_app()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="College social network: OTP login, communities, groups and feeds",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RateLimitedError, default_rate_limit_handler)

# Add middleware (order matters - last added runs first)
# 1. Request logging
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE_MB * 1024 * 1024)

# 4. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(CampusConnectError)
async def campus_connect_exception_handler(request: Request, exc: CampusConnectError):
    if isinstance(exc, UpstreamError):
        logger.error(
            f"[{exc.code}] {request.method} {request.url.path}: {exc.cause}",
            extra={"event_type": "upstream_error", "error_code": exc.code},
        )
    elif exc.status_code >= 500:
        logger.error(f"[{exc.code}] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc, expose_details=exc.status_code < 500)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in errors
    ]
    message = details[0]["message"] if details else "Invalid request"
    # pydantic prefixes messages raised from model validators
    message = message.removeprefix("Value error, ")
    return JSONResponse(
        status_code=400,
        content={"message": message, "code": "INVALID_INPUT", "details": details}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    content = {"message": "Internal server error"}
    if settings.DEBUG and not settings.is_production:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/api/health"
    }


# Include API router
app.include_router(api_router, prefix="/api")


def run():
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
