"""
Error types raised by services and the handlers that render them.

Every failure leaves the API as

    {"message": "<summary>", "error": "<detail>" | {"<field>": ["<msg>", ...]}}

Services raise the :class:`AppException` subclasses below and never touch
FastAPI's ``HTTPException``.
"""

import logging
import math
from typing import Any, Dict, List, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agrofund.core.resilience import CircuitBreakerError

logger = logging.getLogger(__name__)

ErrorDetail = Union[str, Dict[str, List[str]]]


# ────────────────────────────────────────────────────────────────────────────
# Exceptions
# ────────────────────────────────────────────────────────────────────────────


class AppException(Exception):
    """An error with a fixed HTTP status and envelope."""

    def __init__(self, status_code: int, message: str, error: Any = None):
        self.status_code = status_code
        self.message = message
        self.error = error if error is not None else message
        super().__init__(message)


class ValidationException(AppException):
    """Input failed a business-level validation rule (422)."""

    def __init__(self, errors: Dict[str, List[str]]):
        super().__init__(status_code=422, message="Validation failed", error=errors)


class AuthenticationException(AppException):
    """Credentials or bearer token were rejected (401)."""

    def __init__(self, error: str = "Unauthenticated.", message: str = "Unauthenticated"):
        super().__init__(status_code=401, message=message, error=error)


class ForbiddenException(AppException):
    """Caller is authenticated but holds the wrong role (403)."""

    def __init__(self, error: str):
        super().__init__(status_code=403, message="Unauthorized", error=error)


class NotFoundException(AppException):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=404,
            message=f"{resource} not found",
            error=f"{resource} with id '{identifier}' does not exist.",
        )


class InvalidOperationException(AppException):
    """
    The entity is in a state that forbids the requested action.

    Status transitions answer 400; a closed funding window answers 403.
    """

    def __init__(self, error: str, status_code: int = 400):
        super().__init__(status_code=status_code, message="Invalid operation", error=error)


class OperationFailedException(AppException):
    """A write could not be persisted (500)."""

    def __init__(self, message: str, error: str):
        super().__init__(status_code=500, message=message, error=error)


# ────────────────────────────────────────────────────────────────────────────
# Handlers
# ────────────────────────────────────────────────────────────────────────────


def _envelope(status_code: int, message: str, error: ErrorDetail, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"message": message, "error": error}, headers=headers
    )


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """``{field: [messages]}``, keyed the way the client spelled the field."""
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err["loc"]]
        if len(loc) > 1 and loc[0] in ("body", "query", "path", "header"):
            del loc[0]
        errors.setdefault(".".join(loc), []).append(err["msg"])
    return errors


async def _on_app_exception(request: Request, exc: AppException) -> JSONResponse:
    return _envelope(exc.status_code, exc.message, exc.error)


async def _on_circuit_open(request: Request, exc: CircuitBreakerError) -> JSONResponse:
    logger.warning("Refused %s %s: %s", request.method, request.url.path, exc)
    return _envelope(
        503,
        "Service temporarily unavailable",
        "Database circuit is open. Please retry shortly.",
        headers={"Retry-After": str(math.ceil(exc.retry_after))},
    )


async def _on_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = str(exc.detail)
    return _envelope(exc.status_code, detail, detail, headers=getattr(exc, "headers", None))


async def _on_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(422, "Validation failed", _field_errors(exc))


async def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _envelope(500, "Internal Server Error", "Something went wrong. Please try again.")


HANDLERS = (
    (AppException, _on_app_exception),
    (CircuitBreakerError, _on_circuit_open),
    (StarletteHTTPException, _on_http_exception),
    (RequestValidationError, _on_request_validation),
    (Exception, _on_unhandled),
)


def add_exception_handlers(app: FastAPI) -> None:
    """Make every error leave the app as a ``{message, error}`` envelope."""
    for exc_class, handler in HANDLERS:
        app.add_exception_handler(exc_class, handler)
