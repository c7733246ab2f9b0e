"""
PeopleDesk HR - Error Handling

Application exceptions carry an ErrorCode, an HTTP status and a message.
The registered handlers render every failure, including framework and
database errors, as

    {"detail": {"code": ..., "message": ..., "timestamp": ..., "field"?, "details"?}}

Messages are part of the API contract.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("peopledesk.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (400/422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_RATING = "INVALID_RATING"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    TOKEN_INVALID = "TOKEN_INVALID"
    FORBIDDEN = "FORBIDDEN"
    CANNOT_MODIFY = "CANNOT_MODIFY"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    PAYROLL_RUN_NOT_FOUND = "PAYROLL_RUN_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    BACKUP_IN_PROGRESS = "BACKUP_IN_PROGRESS"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.headers = headers
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class BadRequestException(AppException):
    """Invalid input, out-of-range value or invalid state transition"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.INVALID_INPUT,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            field=field,
        )


class InvalidStateTransitionException(BadRequestException):
    """Workflow action not allowed from the current status"""

    def __init__(self, resource_type: str, current: str, action: str):
        super().__init__(
            message=f"Cannot {action} {resource_type} in status '{current}'",
            code=ErrorCode.INVALID_STATE_TRANSITION,
            details={"resource_type": resource_type, "current_status": current, "action": action},
        )


# ============================================================================
# Authentication/Authorization Exceptions
# ============================================================================

class AuthenticationException(AppException):
    """Missing or invalid credentials"""

    def __init__(
        self,
        message: str = "Not authenticated",
        code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationException(AppException):
    """
    Role check failed.

    The message is the same for every denial cause (no user, no role
    assignment, role mismatch).
    """

    def __init__(self, message: str = "unauthorized access"):
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
        )


class ForbiddenOperationException(AppException):
    """State-guarded edit, e.g. modifying an approved configuration record"""

    def __init__(self, message: str, resource_type: Optional[str] = None):
        super().__init__(
            code=ErrorCode.CANNOT_MODIFY,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details={"resource_type": resource_type} if resource_type else None,
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class EmployeeNotFoundException(NotFoundException):
    def __init__(self, employee_id: Union[str, UUID]):
        super().__init__(
            resource_type="Employee",
            resource_id=employee_id,
            code=ErrorCode.EMPLOYEE_NOT_FOUND,
        )


class PayrollRunNotFoundException(NotFoundException):
    def __init__(self, run_id: Union[str, UUID]):
        super().__init__(
            resource_type="Payroll run",
            resource_id=run_id,
            code=ErrorCode.PAYROLL_RUN_NOT_FOUND,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
        )


# ============================================================================
# Exception Handlers
# ============================================================================
#
# Every handler funnels into an AppException so the body always has the
# {"detail": {"code", "message", "timestamp", ...}} shape.

HTTP_STATUS_CODES = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.RESOURCE_CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


def error_response(exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_dict()},
        headers=exc.headers,
    )


def _request_context(request: Request) -> Dict[str, str]:
    return {"path": request.url.path, "method": request.method}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown route, wrong method, ...)."""
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.warning(f"HTTP {exc.status_code}: {message}", extra=_request_context(request))
    return error_response(AppException(
        code=HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
        message=message,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    ))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body, path and query validation failures (422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed with {len(errors)} error(s)", extra=_request_context(request))
    return error_response(AppException(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    ))


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning(f"ValueError: {exc}")
    return error_response(BadRequestException(str(exc)))


def _classify_database_error(exc: SQLAlchemyError) -> AppException:
    if isinstance(exc, IntegrityError):
        reason = str(exc.orig).lower() if exc.orig else ""
        if "unique" in reason or "duplicate" in reason:
            return ConflictException(
                "A record with this value already exists",
                code=ErrorCode.DUPLICATE_ENTRY,
            )
        if "foreign key" in reason:
            return AppException(
                code=ErrorCode.DATA_INTEGRITY_ERROR,
                message="Referenced record does not exist",
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        return AppException(
            code=ErrorCode.DATA_INTEGRITY_ERROR,
            message="Data integrity constraint violated",
        )
    if isinstance(exc, OperationalError):
        return AppException(code=ErrorCode.CONNECTION_ERROR, message="Database operation failed")
    if isinstance(exc, DataError):
        return AppException(
            code=ErrorCode.DATABASE_ERROR,
            message="Invalid data format for database",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    return AppException(code=ErrorCode.DATABASE_ERROR, message="A database error occurred")


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        f"{type(exc).__name__}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    return error_response(_classify_database_error(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.critical(
        f"Unhandled {type(exc).__name__}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    # Internal details stay in the log
    return error_response(AppException(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
    ))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
