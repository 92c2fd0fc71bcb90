"""
API exception classes.

Each class fixes the HTTP status code for one error family; core exceptions
raised by services are converted with :func:`from_core_exception`.
"""

from typing import Any

from fastapi import HTTPException, status

from ...core.exceptions import (
    IncidentNotFoundError,
    IncidentNotVotableError,
    InfrastructureError,
    InvalidBoundingBoxError,
    TrafficIncidentsError,
    ValidationError,
)


class APIException(HTTPException):
    """
    An HTTPException that also knows how to describe itself as an ErrorDetail.

    ``field`` names the offending request field when there is one;
    ``suggestion`` tells the caller what to send instead.
    """

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR",
        error_type: str = "InternalError",
        field: str | None = None,
        suggestion: str | None = None,
        headers: dict[str, Any] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.error_type = error_type
        self.field = field
        self.suggestion = suggestion


class ValidationException(APIException):
    """Invalid caller input; nothing was written."""

    def __init__(
        self, detail: str, field: str | None = None, suggestion: str | None = None, error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
            error_type="ValidationError",
            field=field,
            suggestion=suggestion,
        )


class NotFoundException(APIException):
    """The addressed incident does not exist."""

    def __init__(self, detail: str, error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code,
            error_type="NotFoundError",
            field="id",
            suggestion="Check the incident id",
        )


class ConflictException(APIException):
    """The operation does not apply to the addressed incident."""

    def __init__(self, detail: str, error_code: str = "CONFLICT", suggestion: str | None = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code,
            error_type="ConflictError",
            field="id",
            suggestion=suggestion,
        )


class ServiceException(APIException):
    """A backing service (the incident store) is unavailable."""

    def __init__(self, detail: str, error_code: str = "SERVICE_UNAVAILABLE"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code=error_code,
            error_type="ServiceError",
            suggestion="Please try again later or contact support if the issue persists",
        )


def from_core_exception(exc: TrafficIncidentsError) -> APIException:
    """Map a service-layer exception to its HTTP counterpart."""
    if isinstance(exc, IncidentNotFoundError):
        return NotFoundException(exc.message, exc.error_code)
    if isinstance(exc, IncidentNotVotableError):
        return ConflictException(exc.message, exc.error_code, "Only user reports can be validated or invalidated")
    if isinstance(exc, ValidationError):
        return ValidationException(exc.message, field=exc.field, error_code=exc.error_code)
    if isinstance(exc, InvalidBoundingBoxError):
        return ValidationException(
            exc.message, field="bbox", suggestion="Use bbox=minLon,minLat,maxLon,maxLat", error_code=exc.error_code
        )
    if isinstance(exc, InfrastructureError):
        return ServiceException(exc.message, exc.error_code)
    return ValidationException(exc.message, error_code=exc.error_code)


def create_error_detail_from_exception(exception: APIException) -> dict[str, Any]:
    """Keyword arguments for ErrorDetail; unset field and suggestion are left out."""
    detail: dict[str, Any] = {
        "error_code": exception.error_code,
        "error_type": exception.error_type,
        "description": exception.detail,
    }
    detail.update({key: value for key in ("field", "suggestion") if (value := getattr(exception, key))})
    return detail


__all__ = [
    "APIException",
    "ValidationException",
    "NotFoundException",
    "ConflictException",
    "ServiceException",
    "from_core_exception",
    "create_error_detail_from_exception",
]
