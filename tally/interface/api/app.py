"""FastAPI application."""

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tally.config import Settings
from tally.interface.api.routes import auth, handshake, health
from tally.util.di.container import create_container, setup_di
from tally.util.observability import instrument_fastapi, instrument_httpx


def create_app(container: AsyncContainer | None = None) -> FastAPI:
    """Create FastAPI application.

    Logfire should be configured before calling this function
    (``scripts/start_app.py`` does this; tests do it in ``conftest.py``).

    Args:
        container: Prebuilt DI container. When omitted the production
            container is built and startup configuration is validated.

    Raises:
        ConfigurationError: If the signing secret is unusable for the environment
        PersistenceUnavailableError: If no database URL is configured
    """
    settings = Settings()

    if container is None:
        settings.check_startup()
        container = create_container()

    # Instrument httpx for outbound HTTP requests
    instrument_httpx()

    app_instance = FastAPI(
        title="Tally API",
        description="Backend API for Tally - a personal expense tracker",
        version="0.1.0",
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    instrument_fastapi(app_instance)

    # Bearer tokens travel in headers, so no credentials mode is needed
    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.api.frontend_url, settings.api.base_url],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "Origin",
            "X-Requested-With",
        ],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    setup_di(app_instance, container)

    # Register routes
    app_instance.include_router(health.router)
    app_instance.include_router(handshake.router)
    app_instance.include_router(auth.router)

    return app_instance
