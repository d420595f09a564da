"""Application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from nws_proxy import __version__
from nws_proxy.api.dependencies import build_prewarmer
from nws_proxy.api.routes import cache_router, weather_router
from nws_proxy.config import get_settings
from nws_proxy.middleware.logging import LoggingMiddleware, configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the forecast prewarmer for the lifetime of the application."""
    settings = get_settings()
    prewarmer = build_prewarmer(settings) if settings.prewarm_enabled else None

    if prewarmer is not None:
        prewarmer.start()
    else:
        logger.info("Forecast prewarmer disabled")

    try:
        yield
    finally:
        if prewarmer is not None:
            await prewarmer.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    # Configure logging
    configure_logging(settings)

    # Create FastAPI app
    app = FastAPI(
        title="NWS Proxy API",
        description="Cached proxy for National Weather Service zone forecasts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)

    # Include routers
    app.include_router(weather_router)
    app.include_router(cache_router)

    # Mount Prometheus metrics endpoint
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    return app


# Create app instance for ASGI servers
app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "nws_proxy.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
