"""Custom exception classes for the Flame API client."""

from typing import Any, Optional


class FlameError(Exception):
    """Base exception class for all Flame client errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(FlameError):
    """Raised when there are configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.config_file = config_file
        self.field = field


class TransportError(FlameError):
    """Raised when a transport cannot deliver a request to the service."""


class NetworkError(TransportError):
    """Raised when network-related errors occur."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(f"Network error: {message}", cause)


class TimeoutError(FlameError):
    """Raised when requests timeout."""

    def __init__(
        self, message: str = "Request timed out", timeout_seconds: Optional[float] = None
    ):
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class ResponseValidationError(FlameError):
    """Raised when a service response does not have the expected shape."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        response_data: Optional[Any] = None,
        field_errors: Optional[dict[str, str]] = None,
        status: Optional[int] = None,
    ):
        """Initialize ResponseValidationError with field-level details.

        Args:
          message: Primary error message
          operation: Name of the operation whose response failed validation
          response_data: Raw response data that failed validation
          field_errors: Dictionary mapping field paths to specific error messages
          status: HTTP status when the failure came from a rejected request
        """
        super().__init__(message)
        self.operation = operation
        self.response_data = response_data
        self.field_errors = field_errors or {}
        self.status = status

    def add_field_error(self, field_name: str, error_message: str) -> None:
        """Add a field-specific validation error."""
        self.field_errors[field_name] = error_message

    def has_field_errors(self) -> bool:
        return bool(self.field_errors)

    def get_detailed_message(self) -> str:
        """Get an error message including all field errors.

        Returns:
          Detailed error message, one field error per line
        """
        details = [str(self)]

        if self.operation:
            details.append(f"Operation: {self.operation}")

        if self.status is not None:
            details.append(f"HTTP status: {self.status}")

        if self.field_errors:
            details.append("Field validation errors:")
            for field, error in self.field_errors.items():
                details.append(f"  - {field}: {error}")

        return "\n".join(details)


class FaultError(FlameError):
    """Raised by ``Result.unwrap()`` when the result carries a fault."""

    def __init__(self, fault: Any):
        super().__init__(f"[{fault.kind.value}] {fault.message}", fault.cause)
        self.fault = fault
