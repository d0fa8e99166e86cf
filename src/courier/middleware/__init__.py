"""Middlewares wrapping the client's execution engine."""

from .auth import BasicAuthMiddleware, BearerAuthMiddleware
from .base import Handler, Middleware, MiddlewareChain, MiddlewareLike
from .headers import HeadersMiddleware
from .logging import LoggingMiddleware
from .unauthorized import RetryOnUnauthorizedMiddleware

__all__ = [
    "BasicAuthMiddleware",
    "BearerAuthMiddleware",
    "Handler",
    "HeadersMiddleware",
    "LoggingMiddleware",
    "Middleware",
    "MiddlewareChain",
    "MiddlewareLike",
    "RetryOnUnauthorizedMiddleware",
]
