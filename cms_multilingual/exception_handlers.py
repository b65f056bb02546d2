"""
Global Exception Handlers

Every error leaves the API in one envelope:

{
    "error": {
        "status_code": 409,
        "error_code": "TRANSLATION_EXISTS",
        "message": "Translation group 'abc' already has a member in 'fr'",
        "type": "Conflict",
        "details": {"group_id": "abc", "language": "fr", "existing_id": 12},
        "path": "/api/v1/multilingual/content/3/translations"
    }
}

Client errors (4xx) are logged at WARNING, server errors at ERROR.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cms_multilingual.exceptions import CMSError, ErrorCode

logger = logging.getLogger(__name__)

ERROR_TYPES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "Bad Request",
    status.HTTP_404_NOT_FOUND: "Not Found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method Not Allowed",
    status.HTTP_409_CONFLICT: "Conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "Unprocessable Entity",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "Internal Server Error",
}

HTTP_ERROR_CODES: dict[int, ErrorCode] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.VALIDATION_FAILED,
    status.HTTP_404_NOT_FOUND: ErrorCode.RESOURCE_NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ErrorCode.VALIDATION_FAILED,
}


def error_envelope(
    request: Request,
    status_code: int,
    error_code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    body = {
        "error": {
            "status_code": status_code,
            "error_code": error_code.value,
            "message": message,
            "type": ERROR_TYPES.get(status_code, "Error"),
            "details": details or {},
            "path": request.url.path,
        }
    }
    return JSONResponse(status_code=status_code, content=body)


def _log_level(status_code: int) -> int:
    return logging.ERROR if status_code >= 500 else logging.WARNING


async def cms_exception_handler(request: Request, exc: CMSError) -> JSONResponse:
    logger.log(
        _log_level(exc.status_code),
        "%s on %s %s: %s",
        exc.error_code.value,
        request.method,
        request.url.path,
        exc.message,
    )
    return error_envelope(request, exc.status_code, exc.error_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.log(_log_level(exc.status_code), "HTTP %d on %s: %s", exc.status_code, request.url.path, exc.detail)
    error_code = HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.UNKNOWN_ERROR)
    return error_envelope(request, exc.status_code, error_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, query strings, or path parameters (e.g. an unknown entity kind)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Request validation failed on %s: %d error(s)", request.url.path, len(errors))
    return error_envelope(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCode.VALIDATION_FAILED,
        "Request validation failed",
        {"validation_errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_envelope(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "An unexpected error occurred.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CMSError, cms_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
