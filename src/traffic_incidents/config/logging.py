"""
Logging configuration for the traffic incidents service.

Standard library logging is routed through rich in development and JSON lines
elsewhere; application code logs through structlog bound loggers.
"""

import logging
import logging.handlers
import sys
import time
import uuid
from pathlib import Path
from typing import Any, MutableMapping

import structlog
from rich.console import Console
from rich.logging import RichHandler

from .config import Settings, get_settings

_JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s", '
    '"module": "%(module)s", "function": "%(funcName)s", "line": %(lineno)d}'
)


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure stdlib and structured logging for the running environment.

    Args:
        settings: Settings to use; defaults to the cached application settings
    """
    settings = settings or get_settings()

    _configure_stdlib_logging(settings)
    _configure_structured_logging(settings)

    get_logger("config.logging").info(
        "Logging configured",
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        environment=settings.environment,
    )


def _configure_stdlib_logging(settings: Settings) -> None:
    log_level = getattr(logging, settings.log_level, logging.INFO)
    handlers: list[logging.Handler] = []

    if settings.is_development and settings.log_format != "json":
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=True,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(logging.Formatter(fmt="%(name)s - %(message)s", datefmt="[%X]"))
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(_JSON_FORMAT))
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if settings.log_rotation:
            file_handler: logging.Handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=_parse_size(settings.log_max_size),
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(_JSON_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
    _configure_third_party_loggers(settings)


def _configure_third_party_loggers(settings: Settings) -> None:
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO if settings.is_development else logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.database_echo else logging.WARNING)

    if not settings.debug:
        logging.getLogger("asyncio").setLevel(logging.WARNING)


def _configure_structured_logging(settings: Settings) -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _service_fields(settings),
    ]

    if settings.is_development and settings.log_format != "json":
        processors.extend([structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer(colors=True)])
    else:
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.log_level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def _service_fields(settings: Settings):
    """Processor stamping every event with the service identity it was configured for."""
    fields = {"service": settings.app_name, "environment": settings.environment, "app_version": settings.app_version}

    def processor(logger, method_name, event_dict):
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def _parse_size(size_str: str) -> int:
    """Bytes for a rotation size such as "10MB"; a bare number is taken as bytes."""
    size_str = size_str.upper().strip()
    for suffix, factor in (("KB", 1024), ("MB", 1024**2), ("GB", 1024**3)):
        if size_str.endswith(suffix):
            return int(size_str[: -len(suffix)]) * factor
    return int(size_str)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


class RequestLoggingMiddleware:
    """
    ASGI middleware that logs each HTTP request with its status and duration.

    A request id is bound into the structlog context vars for the lifetime
    of the request so every log line emitted while serving it carries it.
    """

    def __init__(self, app: Any):
        self.app = app
        self.logger = get_logger("middleware.request")

    async def __call__(self, scope: MutableMapping[str, Any], receive: Any, send: Any):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_id = str(uuid.uuid4())
        status_code = 500

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request_info = {
            "method": scope["method"],
            "path": scope["path"],
            "query_string": scope.get("query_string", b"").decode(),
        }

        async def send_wrapper(message: MutableMapping[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                message["headers"] = [*message.get("headers", []), (b"x-request-id", request_id.encode())]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
            self.logger.info(
                "Request completed",
                status_code=status_code,
                processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
                **request_info,
            )
        except Exception as e:
            self.logger.error(
                "Request failed",
                processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
                **request_info,
            )
            raise
        finally:
            structlog.contextvars.clear_contextvars()
