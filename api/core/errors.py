"""
API error taxonomy and FastAPI exception handlers.

Every failure leaves the API as `{"error": "<message>"}`. Messages are fixed
per error; driver text and tracebacks only go to the server log.
"""

from __future__ import annotations

import asyncio
import logging

import asyncpg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(ApiError):
    pass


# SQLSTATE codes that are the client's fault rather than the server's.
_CLIENT_SQLSTATES: dict[str, type[ApiError]] = {
    "23505": ConflictError,  # unique_violation
    "23502": ValidationError,  # not_null_violation
    "23514": ValidationError,  # check_violation
    "22P02": ValidationError,  # invalid_text_representation
    "22003": ValidationError,  # numeric_value_out_of_range
}

_CLIENT_MESSAGES: dict[str, str] = {
    "23505": "Bean with these values already exists",
    "23502": "Missing required field",
    "23514": "Field value violates a table constraint",
    "22P02": "Field has an invalid value",
    "22003": "Numeric field is out of range",
}


def from_database_error(exc: BaseException) -> ApiError:
    """
    Map a driver exception onto the taxonomy by its structured SQLSTATE.

    asyncpg's DataError (bad parameter value, caught before the statement is
    sent) carries no SQLSTATE and is treated as client input.
    """
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, asyncpg.PostgresError):
        sqlstate = getattr(exc, "sqlstate", None) or ""
        error_cls = _CLIENT_SQLSTATES.get(sqlstate)
        if error_cls is not None:
            return error_cls(_CLIENT_MESSAGES[sqlstate])
    if isinstance(exc, asyncpg.exceptions.DataError):
        # Raised client-side while encoding a parameter, e.g. int32 overflow.
        return ValidationError("Field has an invalid value")
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return InternalError("Database is busy, try again later")
    return InternalError()


def _format_validation_error(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = str(err.get("msg") or "is invalid")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts) or "Invalid input"


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__ or exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _format_validation_error(exc)},
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": InternalError.default_message},
    )


def install_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
