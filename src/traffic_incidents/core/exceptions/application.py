"""Application-layer exception classes."""

from typing import Any

from .base import ApplicationError


class ValidationError(ApplicationError):
    """Raised when caller input fails validation before any mutation."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field
