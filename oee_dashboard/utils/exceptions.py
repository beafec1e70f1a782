"""
OEE Floor Dashboard - Custom Exception Classes

This module defines custom exception classes for the OEE Floor Dashboard API.
These exceptions provide structured error handling with proper HTTP status codes
and detailed error information for better API responses.

Three signals reach callers: NotFoundError (valid request, nothing to report),
ValidationError (malformed input) and TelemetryUnavailableError (the telemetry
store or machine catalog could not be reached). Division by zero and absent
metric fields are not errors; the computation engine resolves them to zero.
"""

from typing import Any, Dict, Optional

from fastapi import status
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError


class DashboardException(Exception):
    """Base exception class for OEE Floor Dashboard."""

    def __init__(
        self,
        message: str,
        error_code: str = "DASHBOARD_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DashboardException):
    """Exception raised for validation failures."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class NotFoundError(DashboardException):
    """Exception raised when a resource is not found."""

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message += f" with ID: {resource_id}"

        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "resource_id": resource_id}
        )


class TelemetryUnavailableError(DashboardException):
    """Exception raised when the telemetry store or machine catalog is unreachable."""

    def __init__(self, source: str = "telemetry", message: str = "Upstream store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{source}: {message}",
            error_code="TRANSIENT_FAILURE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"source": source, **(details or {})}
        )


# Utility functions for exception handling
def is_transient_database_error(e: BaseException) -> bool:
    """Whether a database exception is worth retrying."""
    if isinstance(e, (OperationalError, InterfaceError)):
        return True
    return isinstance(e, DBAPIError) and e.connection_invalidated


def handle_database_exception(e: Exception, source: str = "telemetry") -> DashboardException:
    """Convert database exceptions to DashboardException."""
    if isinstance(e, DashboardException):
        return e
    if isinstance(e, OSError) or is_transient_database_error(e):
        return TelemetryUnavailableError(source, "Store unreachable", {"original_error": str(e)})
    return TelemetryUnavailableError(source, "Store query failed", {"original_error": str(e)})
