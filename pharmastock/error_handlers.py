"""Custom error handlers and exceptions for the application."""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import traceback
from typing import Optional, Union

from .ledger import LedgerRuleError
from .logging_config import get_logger

logger = get_logger("error_handlers")


class AppException(Exception):
    """Base exception for application-specific errors."""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Union[int, str]):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class DuplicateResourceError(AppException):
    """Raised when attempting to create a duplicate resource."""

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            status_code=409,
            details={"resource": resource, "field": field, "value": value}
        )


class BusinessRuleError(AppException):
    """Raised when a request is well-formed but breaks an inventory rule."""

    def __init__(self, message: str, errors: list = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"validation_errors": errors or []}
        )


def request_area(path: str) -> str:
    """Resource area of a request path, e.g. /api/v1/sales/dispatch -> SALES."""
    parts = [p for p in path.split("/") if p]
    if parts[:2] == ["api", "v1"]:
        parts = parts[2:]
    return parts[0].upper() if parts else "ROOT"


def constraint_name(exc: IntegrityError) -> Optional[str]:
    """Name of the violated constraint, from the driver error when it exposes one."""
    orig = getattr(exc, "orig", None)
    name = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if name:
        return name
    # SQLite: "UNIQUE constraint failed: stock_transactions.sequence"
    text = str(orig) if orig is not None else str(exc)
    marker = "constraint failed: "
    if marker in text:
        return text.split(marker, 1)[1].strip()
    return None


async def app_exception_handler(request: Request, exc: AppException):
    """Handler for custom application exceptions."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"[{request_area(request.url.path)}] {request.method} rejected: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details,
            "path": request.url.path
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"[API] Invalid {request.method} {request.url.path}: "
        f"{', '.join(e['field'] for e in errors)}",
        extra={"validation_errors": errors}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation failed",
            "validation_errors": errors,
            "path": request.url.path
        }
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Handler for SQLAlchemy database errors.

    Integrity errors (a duplicate code, a negative balance reaching its
    check constraint) are client conflicts and answer 409 with the driver
    message. Anything else is a 500.
    """
    area = request_area(request.url.path)
    constraint = None

    if isinstance(exc, IntegrityError):
        error_msg = "Data integrity constraint violated"
        status_code = status.HTTP_409_CONFLICT
        constraint = constraint_name(exc)
        logger.warning(
            f"[DB] {area}: integrity constraint {constraint or 'unknown'} violated",
            extra={"path": request.url.path, "method": request.method}
        )
    else:
        error_msg = "Database error occurred"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.error(
            f"[DB] {area}: {type(exc).__name__}: {exc}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_msg,
            "detail": str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc),
            "constraint": constraint,
            "path": request.url.path
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handler for unexpected exceptions."""
    logger.critical(
        f"[{request_area(request.url.path)}] Unhandled {type(exc).__name__}: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc()
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please contact support if the issue persists.",
            "path": request.url.path,
            "request_id": id(request)
        }
    )


async def ledger_rule_exception_handler(request: Request, exc: LedgerRuleError):
    """Handler for movements the stock ledger refuses, e.g. a dispatch without a rep."""
    transaction_type = getattr(exc, "value", None)
    logger.warning(
        f"[LEDGER] {request_area(request.url.path)} entry refused: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "transaction_type": transaction_type
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": str(exc),
            "details": {"transaction_type": transaction_type},
            "path": request.url.path
        }
    )
