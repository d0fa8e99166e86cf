"""Structured exception classes for courier."""

import json
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .models.response import Response


class CourierError(Exception):
    """Base exception for all courier errors.

    This exception serves as the parent class for every error the
    library raises, providing a consistent interface for error
    handling across request building, execution and middleware.

    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with message, code, and details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict())


class ValidationError(CourierError):
    """Raised when a request cannot be built.

    Raised synchronously while constructing a request, for example when
    the URL is empty or uses a scheme other than http/https. Validation
    errors happen before any network activity and are never retried.

    :param message: Description of the validation failure
    :param field: Optional name of the field that failed validation
    :param value: Optional value that caused the validation failure
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        """Initialize validation error with message and optional field/value."""
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)
        self.field = field


class TransportError(CourierError):
    """Raised when the transport could not produce an HTTP status.

    This is the generic transport-level failure. The engine retries it
    according to the request's retry policy and raises it only once all
    attempts are used up.

    :param message: Description of the transport failure
    :param errno: Optional transport-specific error identifier
    """

    def __init__(self, message: str, errno: Optional[str] = None):
        """Initialize transport error with message and optional errno."""
        details = {}
        if errno:
            details["errno"] = errno
        super().__init__(message=message, code="TRANSPORT_ERROR", details=details)
        self.errno = errno


class TransportTimeoutError(TransportError):
    """Raised when the connect or total timeout is exceeded."""

    def __init__(self, message: str, errno: Optional[str] = None):
        super().__init__(message, errno=errno)
        self.code = "TIMEOUT_ERROR"


class TransportConnectionError(TransportError):
    """Raised when a connection to the server cannot be established.

    Covers DNS resolution failures, refused connections, proxy failures
    and peers that close the connection without sending a response.
    """

    def __init__(self, message: str, errno: Optional[str] = None):
        super().__init__(message, errno=errno)
        self.code = "CONNECTION_ERROR"


class HTTPError(CourierError):
    """Raised when a completed response has a non-2xx status.

    Only raised for requests built with ``with_throw_on_error()``. The
    full response is kept on the exception so callers can inspect the
    status code, headers and body.

    :param response: The response that triggered the error
    :param message: Optional message; derived from the response if omitted
    """

    def __init__(self, response: "Response", message: Optional[str] = None):
        """Initialize HTTP error from the failed response."""
        if message is None:
            message = (
                f"HTTP Error {response.status_code}: "
                f"{response.body or 'No response body'}"
            )
        details: Dict[str, Any] = {"status_code": response.status_code}
        if response.body:
            details["response_body"] = response.body
        super().__init__(message=message, code="HTTP_ERROR", details=details)
        self.response = response
        self.status_code = response.status_code


class ConfigurationError(CourierError):
    """Raised for configuration-related errors.

    :param message: Description of the configuration error
    :param setting: Optional name of the problematic setting
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error with message and optional setting."""
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)
