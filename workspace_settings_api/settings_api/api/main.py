from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from settings_api.core.settings import get_app_settings
from settings_api.core.logging import configure_logging, correlation_id_var, tenant_id_var, workspace_id_var
from settings_api.db.run_migrations import upgrade_head
from settings_api.db.seed import seed_all
from settings_api.db.session import dispose_engine, get_async_session
from settings_api.schemas.common import ErrorInfo, ErrorResponse, MessageResponse

from settings_api.api.routes.settings import router as settings_router

settings = get_app_settings()

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness and readiness checks."},
    {
        "name": "Settings",
        "description": (
            "Scoped key/value settings. Values resolve workspace row -> company-wide row -> default; "
            "writes go to the scope of the acting company or superadmin."
        ),
    },
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# Browsers refuse credentialed requests to a wildcard origin
allow_credentials = settings.CORS_ALLOW_CREDENTIALS and settings.CORS_ORIGINS != ["*"]
if settings.CORS_ALLOW_CREDENTIALS and not allow_credentials:
    logger.warning("Ignoring CORS_ALLOW_CREDENTIALS because CORS_ORIGINS is '*'.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Bind a correlation id to the request and echo it as 'X-Correlation-ID'.

    The settings owner and workspace are bound later, once the tenant context
    dependency has resolved the acting user.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    tokens = (
        correlation_id_var.set(corr),
        tenant_id_var.set(None),
        workspace_id_var.set(None),
    )
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        for var, token in zip((correlation_id_var, tenant_id_var, workspace_id_var), tokens):
            var.reset(token)

    response.headers["X-Correlation-ID"] = corr
    return response


def _error(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Render the ErrorResponse envelope shared by every handler."""
    body = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        tenant_id=tenant_id_var.get(),
        workspace_id=workspace_id_var.get(),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry exception instances raised by custom validators
    cleaned = []
    for err in exc.errors():
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        item.pop("input", None)
        cleaned.append(item)
    return cleaned


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Error envelope for HTTPException raised by routes and dependencies."""
    if isinstance(exc.detail, str):
        return _error(request, exc.status_code, "http_error", exc.detail)
    return _error(request, exc.status_code, "http_error", "HTTP Error", exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Field-level errors of a rejected settings form."""
    return _error(request, 422, "validation_error", "Request validation failed", _jsonable_errors(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all; the stack trace goes to the log, never to the client."""
    logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
    return _error(request, 500, "internal_error", "An unexpected error occurred")


@app.on_event("startup")
async def on_startup() -> None:
    """
    Bring the settings schema up to date and optionally seed development data.

    Failures are logged and the service keeps starting; /health/ready reports
    whether the database is usable.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Upgrading settings schema to head")
            # env.py drives its own event loop, so run it off the server loop
            await run_in_threadpool(upgrade_head)
            logger.info("Settings schema is current")
        except Exception as exc:
            logger.exception("Settings schema upgrade failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            logger.info("Seeding users and default settings...")
            await seed_all()
            logger.info("Seed data in place")
        except Exception as exc:
            logger.exception("Seeding users and settings failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await dispose_engine()


api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get("/health", response_model=MessageResponse, summary="Liveness Check", tags=["Health"])
def health_check() -> MessageResponse:
    """Liveness check; details carry the deployment mode that decides settings scoping."""
    current = get_app_settings()
    return MessageResponse(message="Healthy", details={"saas_mode": current.IS_SAAS, "demo_mode": current.IS_DEMO})


# PUBLIC_INTERFACE
@api_v1.get(
    "/health/ready",
    response_model=MessageResponse,
    summary="Readiness Check",
    description="Succeeds once the settings database answers queries.",
    tags=["Health"],
)
async def readiness_check(session: AsyncSession = Depends(get_async_session)) -> MessageResponse:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Readiness check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return MessageResponse(message="Ready")


api_v1.include_router(settings_router)
app.include_router(api_v1)
