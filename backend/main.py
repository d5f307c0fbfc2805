"""
LiveCall Demo - Backend Entrypoint

FastAPI application factory and server configuration.
Run with: uvicorn main:app --reload  (from the backend/ directory)
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from calldemo import __version__
from calldemo.api import health, routes
from calldemo.api.middleware import setup_middleware
from calldemo.config import Settings, get_settings
from calldemo.core.exceptions import CallDemoError, InvalidBodyError
from calldemo.core.intake import create_intake_service, generate_request_id
from calldemo.core.logging import setup_structured_logging
from calldemo.core.rate_limit import FixedWindowRateLimiter
from calldemo.telephony import router as telephony_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Report the provider mode and limits in effect

    Shutdown:
        - Close the dispatcher's HTTP client
    """
    # === Startup ===
    settings: Settings = app.state.settings
    intake = app.state.intake

    logger.info("🚀 LiveCall Demo starting in %s mode", settings.app_env)
    logger.info(
        "   Provider: %s, per-number cap=%d/%ds, client cap=%d/%ds",
        intake.dispatcher.name,
        settings.per_number_per_minute,
        settings.per_number_window_seconds,
        settings.rate_limit_per_minute,
        settings.rate_limit_window_seconds,
    )
    logger.info(
        "   CORS: %s",
        ", ".join(settings.allowed_origins_list) or "all origins",
    )

    yield

    # === Shutdown ===
    logger.info("👋 LiveCall Demo shutting down")
    await intake.dispatcher.aclose()
    logger.info("✅ Shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Render domain and body errors as {requestId?, error} without internals."""

    @app.exception_handler(CallDemoError)
    async def handle_call_demo_error(request: Request, exc: CallDemoError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(),
            headers=exc.headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = InvalidBodyError("Invalid request body.", request_id=generate_request_id())
        return JSONResponse(status_code=error.status_code, content=error.to_payload())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Application factory."""
    settings = settings or get_settings()

    setup_structured_logging(level=settings.app_log_level, json_format=settings.log_json)

    app = FastAPI(
        title="LiveCall Demo",
        description="Demo call intake and outbound dispatch API",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # Store shared components in app state for dependency injection
    app.state.settings = settings
    app.state.intake = create_intake_service(settings)
    app.state.client_limiter = FixedWindowRateLimiter(
        limit=settings.rate_limit_per_minute,
        window_seconds=settings.rate_limit_window_seconds,
    )

    # --- Middleware ---
    setup_middleware(app, settings)
    register_exception_handlers(app)

    # --- Routes ---
    app.include_router(routes.router, prefix="/api")
    app.include_router(health.router)
    app.include_router(telephony_router.router)

    @app.get("/")
    async def root():
        """Root banner."""
        return {
            "service": "LiveCall Demo",
            "status": "operational",
            "version": __version__,
        }

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Console entrypoint: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run("main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
