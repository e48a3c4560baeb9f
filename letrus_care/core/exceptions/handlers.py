import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from letrus_care.core.config import settings
from letrus_care.core.exceptions import AppException
from letrus_care.shared.schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _json(status_code: int, code: str, message: str, errors: list[ErrorDetail]) -> JSONResponse:
    response = ErrorResponse(code=code, message=message, errors=errors)
    return JSONResponse(status_code=status_code, content=response.model_dump())


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions."""
    field = exc.details.get("field")
    return _json(
        exc.status_code,
        exc.code,
        exc.message,
        [ErrorDetail(field=field, message=exc.message)],
    )


def _format_validation_errors(errors: list[dict]) -> list[ErrorDetail]:
    details: list[ErrorDetail] = []
    for error in errors:
        loc = error.get("loc", ())
        # Drop top-level "body" for cleaner field paths
        if loc and loc[0] == "body":
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) if loc else None
        details.append(ErrorDetail(field=field, message=error.get("msg", "Invalid value")))
    return details


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI validation errors."""
    return _json(422, "VALIDATION_ERROR", "Validation error", _format_validation_errors(exc.errors()))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle generic HTTP exceptions."""
    message = str(exc.detail) if exc.detail else "HTTP error"
    return _json(exc.status_code, "HTTP_ERROR", message, [ErrorDetail(message=message)])


def _friendly_db_error(exc: Exception) -> tuple[str, int, str]:
    """
    Convert DB errors to a stable, user-facing message.

    Raw driver text is only exposed when debug is enabled.
    """
    raw = str(getattr(exc, "orig", exc))
    lower = raw.lower()

    if isinstance(exc, IntegrityError):
        return (raw if settings.debug else "Record conflicts with existing data"), 409, "DUPLICATE"

    if "does not exist" in lower and ("column" in lower or "relation" in lower):
        # Typical after deploying code without running Alembic migrations.
        return "Database schema is out of date. Run the latest migrations and try again.", 500, "DATABASE_ERROR"

    if settings.debug:
        return raw, 500, "DATABASE_ERROR"

    return "Database error", 500, "DATABASE_ERROR"


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    message, status_code, code = _friendly_db_error(exc)
    return _json(status_code, code, message, [ErrorDetail(message=message)])


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with traceback, never send one to the client in production."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Internal server error"
    if settings.debug and not settings.is_production:
        message = f"{type(exc).__name__}: {exc}"
    return _json(500, "INTERNAL_ERROR", message, [ErrorDetail(message=message)])
