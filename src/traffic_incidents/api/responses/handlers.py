"""
Global exception handlers for FastAPI.

Every error leaves the API as an :class:`ErrorResponse` so clients always
see ``{status: "error", message, errors, metadata}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...config import get_logger
from ...core.exceptions import InfrastructureError, TrafficIncidentsError
from .exceptions import APIException, create_error_detail_from_exception, from_core_exception
from .models import ErrorDetail, create_error_response

logger = get_logger("app.exception_handlers")


def get_request_id(request: Request) -> str | None:
    """Request id bound by the request logging middleware, or a client supplied one."""
    return structlog.contextvars.get_contextvars().get("request_id") or request.headers.get("X-Request-ID")


def _render(request: Request, exc: APIException) -> JSONResponse:
    error_response = create_error_response(
        message=str(exc.detail),
        errors=[ErrorDetail(**create_error_detail_from_exception(exc))],
        request_id=get_request_id(request),
        endpoint=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=error_response.model_dump(mode="json"), headers=exc.headers)


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Render an :class:`APIException` raised directly by a router."""
    logger.warning(
        "API exception", error_code=exc.error_code, status_code=exc.status_code, path=request.url.path, method=request.method
    )
    return _render(request, exc)


async def core_exception_handler(request: Request, exc: TrafficIncidentsError) -> JSONResponse:
    """Translate service-layer exceptions into HTTP errors."""
    api_exc = from_core_exception(exc)
    log = logger.error if isinstance(exc, InfrastructureError) else logger.info
    log(
        "Request rejected",
        error_code=exc.error_code,
        error=exc.message,
        status_code=api_exc.status_code,
        path=request.url.path,
        method=request.method,
    )
    return _render(request, api_exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle FastAPI request validation errors as 400s naming the invalid field.

    The first error drives the message; every error is listed in ``errors``.
    """
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        field = ".".join(location) or None
        errors.append(
            ErrorDetail(
                error_code="VALIDATION_ERROR",
                error_type="RequestValidationError",
                field=field,
                description=f"{field}: {error['msg']}" if field else error["msg"],
            )
        )

    message = f"Invalid request: {errors[0].description}" if errors else "Invalid request"
    logger.info("Validation error", path=request.url.path, method=request.method, errors=[e.description for e in errors])

    error_response = create_error_response(
        message=message, errors=errors, request_id=get_request_id(request), endpoint=request.url.path
    )
    return JSONResponse(status_code=400, content=error_response.model_dump(mode="json"))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing errors (unknown path, wrong method) in the standard envelope."""
    error_codes = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}
    api_exc = APIException(
        status_code=exc.status_code,
        detail=str(exc.detail) if exc.detail else f"HTTP error {exc.status_code}",
        error_code=error_codes.get(exc.status_code, "HTTP_ERROR"),
        error_type="HTTPException",
        headers=getattr(exc, "headers", None),
    )
    return _render(request, api_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with traceback and return a generic 500."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return _render(request, APIException())


def register_exception_handlers(app: FastAPI) -> None:
    """Install all handlers on ``app``."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(TrafficIncidentsError, core_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
