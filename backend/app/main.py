"""FastAPI application."""

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from backend.app.api.errors import (
    HaltRequest,
    InvalidAuthenticityToken,
    halt_request_handler,
    invalid_authenticity_token_handler,
)
from backend.app.api.routes.application import router as application_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.mod_warning import router as mod_warning_router
from backend.app.config import Settings, get_settings


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its middleware, handlers and routes."""
    settings = settings or get_settings()

    app = FastAPI(title="Q&A Communities", version="0.1.0")

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie=settings.session_cookie,
        same_site="lax",
        https_only=settings.environment == "production",
    )

    app.add_exception_handler(HaltRequest, halt_request_handler)
    app.add_exception_handler(InvalidAuthenticityToken, invalid_authenticity_token_handler)

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(application_router)
    app.include_router(mod_warning_router)

    return app


app = create_app()
