"""
Base service class and utilities for all services.
Provides common functionality like logging and the error taxonomy
shared by the service layer and the API envelope.
"""
import logging
from typing import Any, Dict, Optional


class BaseService:
    """
    Base service class that all other services should inherit from.
    Provides common functionality for logging and error handling.
    """

    def __init__(self):
        """Initialize the service with a logger."""
        self.logger = logging.getLogger(self.__class__.__name__)

    def log_info(self, message: str, **kwargs) -> None:
        """
        Log an info message with optional context.

        Args:
            message: The message to log
            **kwargs: Additional context to include in the log
        """
        self.logger.info(message, extra={'context': kwargs})

    def log_error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """
        Log an error message with optional exception and context.

        Args:
            message: The error message to log
            exception: Optional exception that caused the error
            **kwargs: Additional context to include in the log
        """
        self.logger.error(
            message,
            exc_info=exception,
            extra={'context': kwargs}
        )

    def log_warning(self, message: str, **kwargs) -> None:
        """
        Log a warning message with optional context.

        Args:
            message: The warning message to log
            **kwargs: Additional context to include in the log
        """
        self.logger.warning(message, extra={'context': kwargs})


class ServiceException(Exception):
    """Base exception for service layer errors."""

    status_code = 500
    default_code = 'INTERNAL_ERROR'

    def __init__(self, message: str, code: Optional[str] = None,
                 details: Optional[Dict] = None, status_code: Optional[int] = None):
        """
        Initialize service exception.

        Args:
            message: Error message
            code: Optional error code for categorization
            details: Optional dictionary with additional error details
            status_code: Optional HTTP status override
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceException):
    """Raised when an inbound payload is malformed or missing a field."""
    status_code = 400
    default_code = 'VALIDATION_ERROR'

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.details.setdefault('field', field)


class PreconditionFailed(ServiceException):
    """Raised when a lifecycle transition is not legal from the current state."""
    status_code = 400
    default_code = 'PRECONDITION_FAILED'


class AuthError(ServiceException):
    """Raised for bad credentials (401) or a caller lacking the role (403)."""
    status_code = 401
    default_code = 'AUTH_ERROR'


class NotFoundError(ServiceException):
    """Raised when a referenced record does not exist."""
    status_code = 404
    default_code = 'NOT_FOUND'


class ConflictError(ServiceException):
    """Raised for duplicate registrations and already-processed payments."""
    status_code = 409
    default_code = 'CONFLICT'


class PayloadTooLarge(ServiceException):
    """Raised when an upload exceeds the configured size ceiling."""
    status_code = 413
    default_code = 'PAYLOAD_TOO_LARGE'


class UpstreamError(ServiceException):
    """Raised when the gateway, mail transport or database is unavailable."""
    status_code = 503
    default_code = 'UPSTREAM_ERROR'


class ServiceResult:
    """
    A wrapper for service method results that includes success/failure status.
    Useful for operations that might fail but shouldn't raise exceptions.
    """

    def __init__(self, success: bool, data: Optional[Any] = None,
                 error: Optional[str] = None, error_code: Optional[str] = None,
                 status_code: Optional[int] = None, details: Optional[Dict] = None):
        """
        Initialize service result.

        Args:
            success: Whether the operation succeeded
            data: The result data if successful
            error: Error message if failed
            error_code: Optional error code for categorization
            status_code: HTTP status the failure maps to
            details: Optional extra error details
        """
        self.success = success
        self.data = data
        self.error = error
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    @classmethod
    def ok(cls, data: Any = None) -> 'ServiceResult':
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            A successful ServiceResult instance
        """
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_code: Optional[str] = None,
             status_code: int = 400) -> 'ServiceResult':
        """
        Create a failed result.

        Args:
            error: Error message
            error_code: Optional error code
            status_code: HTTP status for the failure

        Returns:
            A failed ServiceResult instance
        """
        return cls(success=False, error=error, error_code=error_code,
                   status_code=status_code)

    @classmethod
    def from_exception(cls, exc: ServiceException) -> 'ServiceResult':
        """Create a failed result from a service exception."""
        return cls(
            success=False,
            error=exc.message,
            error_code=exc.code,
            status_code=exc.status_code,
            details=exc.details
        )

    def __bool__(self) -> bool:
        """Allow ServiceResult to be used in boolean context."""
        return self.success

    def __repr__(self) -> str:
        """String representation of the result."""
        if self.success:
            return f"<ServiceResult: Success, data={self.data}>"
        return f"<ServiceResult: Failure, error={self.error}, code={self.error_code}>"
