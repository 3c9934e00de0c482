"""
FitBook - Main FastAPI Application.

Booking service connecting fitness trainers and clients. Authentication
and storage are delegated to Supabase; this application validates forms,
routes views and guards every backend call with timeouts and retries.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .exceptions import (
    AuthError,
    BackendError,
    BackendTimeoutError,
    ConflictError,
    FitBookException,
    NotFoundError,
    PermissionDeniedError,
    ValidationException,
)
from .logging_config import get_logger, setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .models import ErrorResponse
from .middleware import PrometheusMiddleware, RequestLoggingMiddleware
from .routers import auth_router, bookings_router, profile_router, sessions_router
from .supabase_client import config as supabase_config

setup_logging(log_level=settings.LOG_LEVEL, use_json=settings.USE_JSON_LOGS)
logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    AuthError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationException: status.HTTP_422_UNPROCESSABLE_ENTITY,
    BackendTimeoutError: status.HTTP_504_GATEWAY_TIMEOUT,
    BackendError: status.HTTP_502_BAD_GATEWAY,
}

USER_MESSAGES = {
    BackendTimeoutError: "The booking backend is taking too long to respond. Please try again.",
    BackendError: "Something went wrong talking to the booking backend. Please try again.",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log configuration on startup and shutdown."""
    logger.info("Starting FitBook")
    logger.info(
        "Configuration loaded",
        extra={
            "extra_fields": {
                "app_name": settings.APP_NAME,
                "debug_mode": settings.DEBUG,
                "log_level": settings.LOG_LEVEL,
                "supabase_configured": supabase_config.is_configured,
                "service_role": supabase_config.has_service_role,
                "request_timeout": settings.REQUEST_TIMEOUT,
                "max_retries": settings.MAX_RETRIES,
            }
        },
    )
    if not supabase_config.is_configured:
        logger.error("Supabase is not configured; every backend call will fail")

    yield

    logger.info("Shutting down FitBook")


app = FastAPI(
    title=settings.APP_NAME,
    description="Booking service connecting fitness trainers and clients",
    version=__version__,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)


@app.exception_handler(FitBookException)
async def fitbook_exception_handler(request: Request, exc: FitBookException) -> JSONResponse:
    """Translate service errors into user-facing JSON responses."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = exc.message
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            message = USER_MESSAGES.get(error_type, exc.message)
            break

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "status_code": status_code,
                "details": exc.details,
            }
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=message).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Give HTTP errors the same body as service errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=str(exc.detail)).model_dump(),
        headers=exc.headers,
    )


app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(bookings_router)
app.include_router(profile_router)


@app.get("/", tags=["Health"])
async def root() -> Dict[str, Any]:
    """Service information."""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "status": "active",
        "auth_provider": "Supabase",
    }


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy" if supabase_config.is_configured else "degraded",
        "service": "fitbook",
        "dependencies": {
            "supabase": "configured" if supabase_config.is_configured else "not configured",
        },
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
