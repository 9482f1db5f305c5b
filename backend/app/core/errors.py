"""Application error taxonomy and the shared FastAPI exception handlers.

Services raise ``AppError`` subclasses; ``register_exception_handlers`` renders
them as ``{"error": code, "message": ..., "details": ...}`` with the matching
HTTP status. Database integrity errors are translated into the same taxonomy
by ``translate_integrity_error``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, details: Any = None):
        super().__init__(f"{resource} not found", details=details)
        self.resource = resource


class DuplicateError(AppError):
    code = "DUPLICATE"
    status_code = 409


class ForeignKeyError(AppError):
    code = "FOREIGN_KEY"
    status_code = 400


class PlanLimitError(AppError):
    code = "LIMIT_REACHED"
    status_code = 402


class RateLimitError(AppError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Try again later.", details: Any = None):
        super().__init__(message, details=details)


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    status_code = 500


def _driver_code(error: IntegrityError) -> str | None:
    orig = getattr(error, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_integrity_error(error: IntegrityError, table: str | None = None) -> AppError:
    """Map a driver integrity error onto the application taxonomy."""
    code = _driver_code(error)
    text = str(getattr(error, "orig", error))
    details = {"table": table} if table else None

    if code == PG_UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return DuplicateError("Duplicate record", details=details)
    if code == PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        return ForeignKeyError("Invalid reference to another record", details=details)
    return InternalError(f"Database error: {text}", details=details)


def _validation_issues(exc: RequestValidationError) -> list[dict[str, str]]:
    issues = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        issues.append({"field": ".".join(loc), "message": str(err.get("msg", ""))})
    return issues


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s returned %d %s", request.method, request.url.path, exc.status_code, exc.code
        )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = _validation_issues(exc)
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, issues)
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "The submitted data is not valid",
            "details": issues,
        },
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    return await app_error_handler(request, translate_integrity_error(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
