"""
Custom exceptions and error handling for the application.
"""

from typing import Any, Dict, Optional


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize API exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            error_code: Machine-readable error code
            details: Additional error details (logged, never returned to clients)
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(APIException):
    """Raised when requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        message = f"{resource_type} not found"
        if resource_id:
            message += f": {resource_id}"
        super().__init__(
            message=message,
            status_code=404,
            error_code="RESOURCE_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class DataAccessError(APIException):
    """Raised when the data store rejects or fails to serve a query."""

    def __init__(
        self,
        message: str = "Failed to load products. Please try again later.",
        original_error: Optional[BaseException] = None,
        operation: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if original_error is not None:
            details["original_error"] = str(original_error)
            details["error_type"] = type(original_error).__name__
        super().__init__(
            message=message,
            status_code=500,
            error_code="DATA_ACCESS_ERROR",
            details=details,
        )
        self.original_error = original_error


class ConfigurationError(APIException):
    """Raised when configuration is invalid."""

    def __init__(self, message: str = "Invalid configuration", config_key: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details={"config_key": config_key} if config_key else {},
        )


class ExternalServiceError(APIException):
    """Raised when external service call fails."""

    def __init__(
        self,
        message: str = "External service unavailable",
        service_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        http_status: Optional[int] = None,
    ):
        details: Dict[str, Any] = {}
        if service_name:
            details["service_name"] = service_name
        if original_error:
            details["original_error"] = str(original_error)
        if http_status:
            details["http_status"] = http_status
        super().__init__(
            message=message,
            status_code=503,
            error_code="EXTERNAL_SERVICE_ERROR",
            details=details,
        )
