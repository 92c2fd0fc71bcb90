from .config import Settings, get_settings
from .logging import RequestLoggingMiddleware, configure_logging, get_logger

__all__ = [
    "get_settings",
    "Settings",
    "configure_logging",
    "RequestLoggingMiddleware",
    "get_logger",
]
