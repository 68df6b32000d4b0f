"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Services report expected outcomes as ``shared.result.Failure`` values;
``unwrap`` turns those into the matching AppError at the HTTP boundary.

Non-AppError exceptions become an opaque 500 (with Sentry reporting in
production); their text never reaches the client.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger
from shared.result import Failure, FailureKind, Result

log = get_logger(__name__)

T = TypeVar("T")


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class InvalidOrExpiredTokenError(AppError):
    status_code = 400
    error_code = "invalid_or_expired_token"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class InvalidCredentialsError(AppError):
    status_code = 401
    error_code = "invalid_credentials"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class InternalError(AppError):
    status_code = 500
    error_code = "internal_error"


_FAILURE_ERRORS: dict[FailureKind, type[AppError]] = {
    FailureKind.CONFLICT: ConflictError,
    FailureKind.NOT_FOUND: NotFoundError,
    FailureKind.INVALID_CREDENTIALS: InvalidCredentialsError,
    FailureKind.UNAUTHORIZED: AuthenticationError,
    FailureKind.INVALID_OR_EXPIRED: InvalidOrExpiredTokenError,
    FailureKind.INVALID_INPUT: ValidationError,
    FailureKind.VALIDATION_FAILED: ValidationError,
}


def error_for_failure(failure: Failure) -> AppError:
    """Map a service failure onto its HTTP error."""
    return _FAILURE_ERRORS[failure.kind](failure.message)


def unwrap(result: Result[T]) -> T:
    """Return the value of an ``Ok`` result or raise the error for a ``Failure``."""
    if isinstance(result, Failure):
        raise error_for_failure(result)
    return result.value


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = []
        for error in exc.errors():
            # ["body", "email"] -> "email"
            field_parts = [str(p) for p in error.get("loc", []) if p != "body"]
            details.append(
                {
                    "field": ".".join(field_parts) if field_parts else "unknown",
                    "message": error.get("msg", "Validation failed"),
                }
            )
        error = ValidationError("Request validation failed", details=details)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        error = InternalError("An internal server error occurred.")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
