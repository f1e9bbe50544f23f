"""
Custom Exceptions for the Complaints Backend

This module defines the exception classes raised by repositories and
services so callers can map failures to client or server errors.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # Workflow errors
    INVALID_STATE = "INVALID_STATE"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"

    # Infrastructure errors
    DATABASE_ERROR = "DATABASE_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class DomainError(BaseAppException):
    """
    Base class for rule violations detected by the complaint workflow.

    Every domain error is keyed by the field (or concern) that failed so
    API layers can render it next to the offending input.
    """

    def __init__(
        self,
        field: str,
        message: str,
        error_code: ErrorCode,
        status_code: int,
        extra_details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        self.field_errors: Dict[str, List[str]] = {field: [message]}
        details: Dict[str, Any] = {"field_errors": self.field_errors}
        if extra_details:
            details.update(extra_details)
        super().__init__(message, error_code, details, status_code)


class ValidationError(DomainError):
    """Exception raised when input data fails validation"""

    def __init__(self, field: str, message: str = "Validation failed"):
        super().__init__(field, message, ErrorCode.VALIDATION_ERROR, 422)


class AuthorizationError(DomainError):
    """Exception raised when the acting user may not touch the complaint"""

    def __init__(self, field: str, message: str = "Not allowed"):
        super().__init__(field, message, ErrorCode.AUTHORIZATION_FAILED, 403)


class StateViolationError(DomainError):
    """Exception raised when a transition is not permitted from the current status"""

    def __init__(self, current_status: str, message: Optional[str] = None, field: str = "status"):
        self.current_status = current_status
        super().__init__(
            field,
            message or f"Transition not allowed in current status: {current_status}",
            ErrorCode.INVALID_STATE,
            409,
            {"current_status": current_status},
        )


class ConcurrencyConflictError(DomainError):
    """Exception raised on a version mismatch or a lock held by someone else"""

    def __init__(
        self,
        field: str = "version",
        message: str = "Complaint was modified by another request. Reload and retry.",
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        extra = {}
        if expected_version is not None:
            extra["expected_version"] = expected_version
        if actual_version is not None:
            extra["actual_version"] = actual_version
        super().__init__(field, message, ErrorCode.CONCURRENCY_CONFLICT, 409, extra)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class InfrastructureError(BaseAppException):
    """Exception raised when the store or file storage fails"""

    def __init__(
        self,
        message: str = "Operation failed",
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        tracking_number: Optional[str] = None,
    ):
        details = {"tracking_number": tracking_number} if tracking_number else {}
        super().__init__(message, error_code, details, 500)


class StorageError(InfrastructureError):
    """Exception raised when an attachment cannot be stored or removed"""

    def __init__(self, message: str = "File storage failed", tracking_number: Optional[str] = None):
        super().__init__(message, ErrorCode.STORAGE_ERROR, tracking_number)
