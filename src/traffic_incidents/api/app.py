"""
FastAPI application factory.

This module provides the create_app() factory function for creating and configuring
the FastAPI application instance with middleware, routing, and lifecycle management.
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from ..config import RequestLoggingMiddleware, Settings, configure_logging, get_logger, get_settings
from ..container import ServiceContainer, build_container
from .middleware import configure_cors
from .responses import register_exception_handlers


@asynccontextmanager
async def create_lifespan_manager(app: FastAPI):
    """
    Create application lifespan manager.

    Creates the schema on startup and starts the feed sync job when enabled;
    stops the job and releases the feed client and connection pool on shutdown.

    Args:
        app: The FastAPI application instance

    Yields:
        None: Control back to the application after startup
    """
    logger = get_logger("app.lifespan")
    container: ServiceContainer = app.state.container
    settings = container.settings

    logger.info("Starting Traffic Incidents API", environment=settings.environment)
    try:
        container.create_tables()
        if settings.sync_enabled:
            container.sync_job.start()
        else:
            logger.info("Vendor sync job disabled")
    except Exception as e:
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise

    logger.info("Application startup completed successfully")
    yield

    logger.info("Shutting down Traffic Incidents API")
    await container.aclose()
    logger.info("Application shutdown completed successfully")


def create_app(settings: Settings | None = None, feed_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        feed_transport: Optional httpx transport for the traffic feed client

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_settings()

    configure_logging(settings)
    logger = get_logger("app.factory")
    logger.info(
        "Creating FastAPI application", app_name=settings.app_name, version=settings.app_version, environment=settings.environment
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Traffic incidents from the TomTom feed and user reports, served by bounding box",
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
        openapi_url="/openapi.json" if settings.enable_docs else None,
        lifespan=create_lifespan_manager,
        debug=settings.debug,
        openapi_tags=[
            {"name": "health", "description": "Service health"},
            {"name": "incidents", "description": "Bounding-box incident queries"},
            {"name": "reports", "description": "User reports and trust voting"},
        ],
    )
    app.state.container = build_container(settings, feed_transport=feed_transport)

    register_exception_handlers(app)

    # the last middleware added is the outermost one
    app.add_middleware(RequestLoggingMiddleware)
    configure_cors(app, settings)

    from .routers import health, incidents, reports

    app.include_router(health.router)
    app.include_router(incidents.router, prefix=settings.api_prefix)
    app.include_router(reports.router, prefix=settings.api_prefix)
    logger.info("API routers registered", api_prefix=settings.api_prefix)

    return app
