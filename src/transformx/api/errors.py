"""Response mapper: categorised errors to status codes and JSON bodies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from transformx.api.schemas import ErrorResponse
from transformx.imaging.errors import (
    ErrorKind,
    InternalError,
    InvalidParameter,
    MethodNotAllowed,
    PipelineError,
    RouteNotFound,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MISSING_FILE_PART: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNKNOWN_CONTENT_TYPE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MALFORMED_BODY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNRECOGNIZED_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DECODE_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_PARAMETER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNSUPPORTED_OUTPUT_FORMAT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PAYLOAD_TOO_LARGE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ROUTE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorKind.ENCODE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_missing = set(ErrorKind) - set(_STATUS_BY_KIND)
if _missing:
    raise RuntimeError(f"error kinds without a status mapping: {sorted(_missing)}")

# Fixed client messages; everything else echoes the diagnostic.
_PUBLIC_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.ROUTE_NOT_FOUND: "Resource not found",
    ErrorKind.METHOD_NOT_ALLOWED: "Method not allowed",
    ErrorKind.ENCODE_ERROR: "Error on server side",
    ErrorKind.INTERNAL: "Error on server side",
}


def status_for(kind: ErrorKind) -> int:
    return _STATUS_BY_KIND[kind]


def client_message(error: PipelineError) -> str:
    return _PUBLIC_MESSAGES.get(error.kind, error.message)


def error_response(error: PipelineError, headers: Mapping[str, str] | None = None) -> JSONResponse:
    """Build the JSON error response for a categorised failure and log it."""
    status_code = status_for(error.kind)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s: %s", error.kind, error.message, exc_info=error.__cause__ or error)
    else:
        logger.warning("%s: %s", error.kind, error.message)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=client_message(error)).model_dump(),
        headers=headers,
    )


async def _pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    return error_response(exc)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error: PipelineError
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error = RouteNotFound(f"{request.method} {request.url.path}: {exc.detail}")
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        error = MethodNotAllowed(f"{request.method} {request.url.path}: {exc.detail}")
    else:
        logger.warning("HTTP %d on %s: %s", exc.status_code, request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=str(exc.detail)).model_dump(),
            headers=exc.headers,
        )
    return error_response(error, headers=exc.headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid value')}" for err in exc.errors()
    )
    return error_response(InvalidParameter(f"invalid parameter: {problems}"))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = InternalError(f"unhandled {type(exc).__name__}: {exc}")
    error.__cause__ = exc
    return error_response(error)


def register_exception_handlers(app: FastAPI) -> None:
    """Route every failure through the response mapper."""
    app.add_exception_handler(PipelineError, _pipeline_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
