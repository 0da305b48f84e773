"""
HTTP-facing errors and the application's exception handlers.
Every error response has the shape ``{"error": <code>, "detail": <message>}``.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from recordfiles.attachments.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class RecordFilesException(Exception):
    """Base for errors a route raises to produce a specific status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "RECORDFILES_ERROR"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundException(RecordFilesException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            super().__init__(f"{resource} with id '{resource_id}' not found")
        else:
            super().__init__(f"{resource} not found")


class BadRequestException(RecordFilesException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"


def _error_response(status_code: int, detail: str, error_code: str, **extra: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error_code, "detail": detail, **extra},
    )


async def recordfiles_exception_handler(
    request: Request, exc: RecordFilesException
) -> JSONResponse:
    return _error_response(exc.status_code, exc.detail, exc.error_code)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": " -> ".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Request validation failed",
        "VALIDATION_ERROR",
        errors=errors,
    )


async def configuration_exception_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error("Attachment storage misconfigured: %s", exc)
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Attachment storage is not configured",
        "STORAGE_NOT_CONFIGURED",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected internal server error occurred",
        "INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecordFilesException, recordfiles_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigurationError, configuration_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
