"""Fluent asynchronous HTTP client built on httpx.

Requests are immutable descriptors built with a fluent API and executed
by a :class:`Client` that retries transport failures with exponential
backoff and runs a chain of middlewares around every send.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"

from .client import Client
from .exceptions import (
    ConfigurationError,
    CourierError,
    HTTPError,
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
    ValidationError,
)
from .middleware import (
    BasicAuthMiddleware,
    BearerAuthMiddleware,
    HeadersMiddleware,
    LoggingMiddleware,
    Middleware,
    RetryOnUnauthorizedMiddleware,
)
from .models import FileAttachment, Headers, HTTPMethod, Request, Response
from .outcome import SendOutcome
from .service import ApiService
from .utils.security import setup_secure_logging

__all__ = [
    "ApiService",
    "BasicAuthMiddleware",
    "BearerAuthMiddleware",
    "Client",
    "ConfigurationError",
    "CourierError",
    "FileAttachment",
    "HTTPError",
    "HTTPMethod",
    "Headers",
    "HeadersMiddleware",
    "LoggingMiddleware",
    "Middleware",
    "Request",
    "Response",
    "RetryOnUnauthorizedMiddleware",
    "SendOutcome",
    "TransportConnectionError",
    "TransportError",
    "TransportTimeoutError",
    "ValidationError",
    "setup_secure_logging",
    "__version__",
]
