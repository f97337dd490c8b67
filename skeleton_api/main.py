"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a fully wired app
   - Every shared service (token service, rate limiter, metrics registry,
     tracer provider, alert notifier, event publisher) is built here and
     stored on app.state; nothing is a module-level global
   - Tests build as many independent apps as they need

2. Lifespan Events
   - startup: ensure tables, indexes and seed rows (AUTO_MIGRATE)
   - shutdown: wait for pending alerts, close the broker, flush spans

3. Middleware Stack (outermost first)
   - CORS: answer pre-flight requests
   - Logging: one access record per request
   - Recovery: turn unhandled faults into a 500 envelope
   - Rate limit: per client IP fixed window
   - Tracing: one SERVER span per request
   - Metrics: Prometheus request metrics

4. Exception Handlers
   - Render every error kind through the response envelope
   - Map framework errors (validation, unknown route) to error kinds
   - Log storage errors while hiding details from clients
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.sdk.trace.export import SpanExporter
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from skeleton_api.config import Settings, get_settings
from skeleton_api.context import get_request_context
from skeleton_api.database import create_db_engine, create_session_factory
from skeleton_api.errors import (
    APIError,
    BindError,
    StorageUnavailable,
    ValidationError,
    error_kind_for_status,
)
from skeleton_api.log_config import configure_logging
from skeleton_api.middleware import (
    MetricsMiddleware,
    RateLimitMiddleware,
    RecoveryMiddleware,
    RequestLoggingMiddleware,
    TracingMiddleware,
)
from skeleton_api.routers import auth_router, examples_router, health_router
from skeleton_api.schemas.envelope import error_response
from skeleton_api.services.alerts import AlertNotifier
from skeleton_api.services.events import create_event_publisher
from skeleton_api.services.metrics import HTTPMetrics
from skeleton_api.services.migration import bootstrap
from skeleton_api.services.rate_limiter import RateLimiter
from skeleton_api.services.security import TokenService
from skeleton_api.services.tracing import create_tracer_provider

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    settings: Settings = app.state.settings

    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")
    logger.info(f"Environment: {settings.environment}, debug: {settings.debug}")

    if settings.auto_migrate:
        with app.state.session_factory() as session:
            await run_in_threadpool(
                bootstrap, app.state.engine, session, settings.seed_data
            )

    if app.state.events.enabled:
        logger.info("Message broker enabled")
    else:
        logger.warning("REDIS_URL not set - event publishing disabled")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")

    await app.state.alerts.drain()
    app.state.events.close()
    if app.state.tracer_provider is not None:
        app.state.tracer_provider.shutdown()
    app.state.engine.dispose()


# =============================================================================
# Exception Handlers
# =============================================================================
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an error kind through the envelope at its own status."""
    if exc.status_code >= 500:
        get_request_context(request).record_error(str(exc))
    return error_response(exc)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Request validation failures are 400s.

    Unparseable JSON is a BindError; a well-formed body (or path/query
    value) that breaks a field rule is a ValidationError. The field list
    is returned so clients can point at the offending input.
    """
    errors = exc.errors()
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
            "message": err.get("msg", ""),
        }
        for err in errors
    ]

    if any(err.get("type") == "json_invalid" for err in errors):
        return error_response(BindError(data=details))
    return error_response(ValidationError(data=details))


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Unknown routes, wrong methods and other framework rejections."""
    kind = error_kind_for_status(exc.status_code)
    return error_response(kind(), status_code=exc.status_code, headers=exc.headers)


async def sqlalchemy_exception_handler(
    request: Request,
    exc: SQLAlchemyError,
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors that escaped the store.

    Logs the actual error for debugging while hiding details from users.
    """
    logger.error(f"Database error: {exc}")
    error = StorageUnavailable()
    get_request_context(request).record_error(str(error))
    return error_response(error)


# =============================================================================
# Application Factory
# =============================================================================
def create_app(
    settings: Settings | None = None,
    span_exporter: SpanExporter | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to get_settings()
        span_exporter: Extra span exporter (tests pass an in-memory one)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="""
## Skeleton API

A CRUD web-service skeleton built around one example resource.

### Authentication
Write operations need `Authorization: Bearer <token>`.

### Rate Limiting
Requests are limited per client IP; see the `X-RateLimit-*` headers.

### Responses
Every JSON body is an envelope: `{"code": 0, "message": "OK", "data": ...}`.
        """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Shared Services
    # -------------------------------------------------------------------------
    engine = create_db_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.tokens = TokenService(
        settings.secret_key,
        issuer=settings.jwt_issuer,
        expire_seconds=settings.jwt_expire_seconds,
        refresh_window=timedelta(seconds=settings.jwt_refresh_window_seconds),
    )
    app.state.limiter = RateLimiter(
        limit=settings.rate_limit_requests,
        period=settings.rate_limit_period,
    )
    app.state.metrics = HTTPMetrics()
    app.state.tracer_provider = (
        create_tracer_provider(settings, exporter=span_exporter)
        if settings.tracing_enabled
        else None
    )
    app.state.alerts = AlertNotifier(settings.alert_webhook_url, timeout=settings.alert_timeout)
    app.state.events = create_event_publisher(settings)

    # -------------------------------------------------------------------------
    # Middleware
    # -------------------------------------------------------------------------
    # add_middleware() wraps the current stack, so the stage added last
    # runs first. Added here innermost first.
    app.add_middleware(MetricsMiddleware, metrics=app.state.metrics)

    if app.state.tracer_provider is not None:
        app.add_middleware(TracingMiddleware, provider=app.state.tracer_provider)

    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=app.state.limiter,
            exempt_paths=settings.rate_limit_exempt_paths_list,
        )

    app.add_middleware(RecoveryMiddleware, notifier=app.state.alerts)
    app.add_middleware(RequestLoggingMiddleware, body_limit=settings.log_body_limit)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    # prefix="/api/v1" creates versioned URLs: /api/v1/examples
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(examples_router, prefix=api_prefix)
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(health_router)

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn skeleton_api.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# This allows running the app directly with: python -m skeleton_api.main
# In production, use: uvicorn skeleton_api.main:app --host 0.0.0.0 --port 8080

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "skeleton_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        timeout_graceful_shutdown=settings.shutdown_grace_period,
    )
