"""CORS middleware configuration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...config import Settings, get_logger

logger = get_logger("api.cors")


def configure_cors(app: FastAPI, settings: Settings) -> None:
    """
    Add CORS middleware using the environment-specific policy from settings.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    cors_settings = settings.get_cors_settings()
    logger.info("Adding CORS middleware", allowed_origins=cors_settings["allow_origins"], environment=settings.environment)
    app.add_middleware(CORSMiddleware, expose_headers=["X-Request-ID"], max_age=600, **cors_settings)
