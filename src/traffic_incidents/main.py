"""
Traffic Incidents - Application Launcher.

Entry point for running the API with uvicorn in development or production.
Uvicorn owns SIGINT/SIGTERM handling so the FastAPI lifespan shutdown (sync
job stop, connection pool release) always runs.
"""

import argparse
from typing import Any

import uvicorn
from fastapi import FastAPI
from uvicorn.config import Config
from uvicorn.server import Server

from .api.app import create_app
from .config import get_logger, get_settings


class ApplicationManager:
    """
    Owns the application instance and the uvicorn server running it.
    """

    def __init__(self) -> None:
        self.app: FastAPI | None = None
        self.server: Server | None = None
        self.logger = get_logger("app.manager")

    def create_application(self) -> FastAPI:
        """
        Create the FastAPI application instance once.

        Returns:
            FastAPI: Configured application instance
        """
        if self.app is None:
            self.logger.info("Creating new application instance")
            self.app = create_app()
        return self.app

    def serve(self, **config: Any) -> None:
        """Run uvicorn in the foreground until it is asked to exit."""
        self.server = Server(Config(self.create_application(), **config))
        self.server.run()

    def shutdown(self) -> None:
        """Ask a running server to exit; lifespan shutdown runs as usual."""
        if self.server:
            self.logger.info("Stopping server")
            self.server.should_exit = True


# Global application manager instance
app_manager = ApplicationManager()


def get_server_config(host: str, port: int, **kwargs: Any) -> dict[str, Any]:
    """
    Get uvicorn configuration for the current environment.

    Args:
        host: Server host address
        port: Server port number
        **kwargs: Overrides

    Returns:
        dict[str, Any]: Server configuration dictionary
    """
    settings = get_settings()
    config: dict[str, Any] = {
        "host": host,
        "port": port,
        "log_level": "debug" if settings.debug else "info",
        "access_log": settings.is_development,
        "server_header": False,
        "date_header": False,
    }
    config.update(kwargs)
    return config


def run_development_server(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """
    Run the development server.

    With ``reload`` uvicorn imports the app by reference so it can restart
    the process on code changes.
    """
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    logger = get_logger("app.dev")
    logger.info("Starting development server", host=host, port=port, reload=reload)

    if reload:
        uvicorn.run(
            "traffic_incidents.main:get_application",
            factory=True,
            **get_server_config(host, port, reload=True, reload_dirs=["src"]),
        )
    else:
        app_manager.serve(**get_server_config(host, port))


def run_production_server(host: str | None = None, port: int | None = None) -> None:
    """Run the production server (no reload, no access log)."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    get_logger("app.prod").info("Starting production server", host=host, port=port)
    app_manager.serve(**get_server_config(host, port, access_log=False))


def get_application() -> FastAPI:
    """
    Get the application instance for ASGI servers and tests.

    Returns:
        FastAPI: The configured application instance
    """
    return app_manager.create_application()


def main(argv: list[str] | None = None) -> None:
    """Command line entry point."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the Traffic Incidents API")
    parser.add_argument("--host", default=settings.api_host, help=f"Host to bind to (default: {settings.api_host})")
    parser.add_argument("--port", type=int, default=settings.api_port, help=f"Port to bind to (default: {settings.api_port})")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (development)")
    parser.add_argument("--production", action="store_true", help="Run with production server settings")
    args = parser.parse_args(argv)

    if args.production:
        run_production_server(args.host, args.port)
    else:
        run_development_server(args.host, args.port, reload=args.reload)


if __name__ == "__main__":
    main()
