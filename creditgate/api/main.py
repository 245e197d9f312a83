"""creditgate FastAPI application — entry point for the API server."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from config.settings import Settings, get_settings
from creditgate import __version__
from creditgate.api.deps import Services, build_services
from creditgate.core.constants import INTERNAL_ERROR_MESSAGE
from creditgate.core.exceptions import CreditGateError
from creditgate.core.logging import get_logger, setup_logging
from creditgate.store.db import create_engine, init_schema

log = get_logger(__name__)


def _validation_message(error: dict[str, object]) -> str:
    """Human-readable message for one pydantic error entry."""
    if error.get("type") == "missing":
        loc = error.get("loc") or ()
        field = loc[-1] if isinstance(loc, (list, tuple)) and loc else "field"
        return f"{field} is required"
    return str(error.get("msg", "invalid input"))


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(_validation_message(e) for e in exc.errors())
    log.info("request_validation_failed", path=request.url.path, error=messages)
    return JSONResponse(status_code=400, content={"error": messages})


async def _handle_domain_error(request: Request, exc: CreditGateError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=exc.message,
            context=exc.context,
        )
    else:
        log.info(
            "request_rejected",
            path=request.url.path,
            status_code=exc.status_code,
            error_type=type(exc).__name__,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.client_message},
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


def create_app(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    feed_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    ``engine`` and ``feed_transport`` let callers (tests, scripts) supply
    their own database engine and upstream transport.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)

    owns_engine = engine is None
    engine = engine or create_engine(settings)
    services = build_services(settings, engine, feed_transport=feed_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Startup/shutdown lifecycle: optional schema init, dispose an owned engine on exit."""
        log.info("api_starting", environment=settings.creditgate_env)
        if settings.auto_create_schema:
            await init_schema(engine)
        yield
        if owns_engine:
            await engine.dispose()
        log.info("api_shutdown")

    app = FastAPI(
        title="creditgate API",
        description="API-key issuance with monthly credit metering",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(CreditGateError, _handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)

    # Register routers
    from creditgate.api.routes.auth import router as auth_router
    from creditgate.api.routes.crypto import router as crypto_router
    from creditgate.api.routes.health import router as health_router
    from creditgate.api.routes.profile import router as profile_router

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(crypto_router)

    return app


def get_app_services(app: FastAPI) -> Services:
    return app.state.services  # type: ignore[no-any-return]


def serve() -> None:
    """Run the API with uvicorn (console entry point)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)
