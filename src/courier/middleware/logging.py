"""Request/response logging middleware."""

import json
import logging
import time
from typing import Any, Mapping, Optional, Union

from ..exceptions import CourierError
from ..models.request import Request
from ..models.response import Response
from ..utils.security import sanitize_headers, sanitize_string, sanitize_url
from .base import Handler, Middleware

TRUNCATION_SUFFIX = "... [truncated]"

Level = Union[int, str]


def _coerce_level(level: Level) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, marking the cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_SUFFIX


class LoggingMiddleware(Middleware):
    """Log every request and its response.

    The request is logged as ``HTTP Request: <METHOD> <url>`` before it is
    sent and the response as ``HTTP Response: <status> (<ms>ms)`` once it
    arrives. Structured context (method, url, status, duration, optional
    body and headers) is passed to the logger as ``extra``. 2xx and 3xx
    responses are logged at ``response_level``, everything else at
    ``error_level``. Credentials in URLs, headers and bodies are redacted.

    :param logger: Logger to write to; defaults to this module's logger.
        Any object with ``log(level, msg, extra=...)`` works.
    :param request_level: Level for request lines
    :param response_level: Level for successful and redirect responses
    :param error_level: Level for error responses and transport failures
    :param log_body: Include request and response bodies in the context
    :param log_headers: Include request and response headers in the context
    :param body_max_length: Bodies longer than this are truncated
    """

    def __init__(
        self,
        logger: Optional[Any] = None,
        request_level: Level = logging.INFO,
        response_level: Level = logging.INFO,
        error_level: Level = logging.WARNING,
        log_body: bool = False,
        log_headers: bool = False,
        body_max_length: int = 500,
    ):
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.request_level = _coerce_level(request_level)
        self.response_level = _coerce_level(response_level)
        self.error_level = _coerce_level(error_level)
        self.log_body = log_body
        self.log_headers = log_headers
        self.body_max_length = body_max_length

    def _body_text(self, body: Any) -> str:
        if isinstance(body, bytes):
            text = body.decode("utf-8", errors="replace")
        elif isinstance(body, str):
            text = body
        elif isinstance(body, Mapping):
            text = json.dumps(dict(body), default=str)
        else:
            text = json.dumps(body, default=str)
        return truncate(sanitize_string(text), self.body_max_length)

    async def handle(self, request: Request, call_next: Handler) -> Response:
        started = time.perf_counter()
        method = request.method.value
        url = sanitize_url(request.url)

        context = {"method": method, "url": url}
        if self.log_body and request.body is not None:
            context["body"] = self._body_text(request.body)
        if self.log_headers:
            context["headers"] = sanitize_headers(request.headers.to_dict())
        self.logger.log(
            self.request_level, f"HTTP Request: {method} {url}", extra=context
        )

        try:
            response = await call_next(request)
        except CourierError as e:
            duration = round((time.perf_counter() - started) * 1000, 2)
            self.logger.log(
                self.error_level,
                f"HTTP Request failed: {method} {url} ({duration}ms): {e.message}",
                extra={
                    "method": method,
                    "url": url,
                    "duration_ms": duration,
                    "error_code": e.code,
                },
            )
            raise

        duration = round((time.perf_counter() - started) * 1000, 2)
        level = (
            self.response_level
            if response.is_success() or response.is_redirection()
            else self.error_level
        )
        response_context = {
            "status": response.status_code,
            "duration_ms": duration,
            "method": method,
            "url": url,
        }
        if self.log_body and response.body is not None:
            response_context["body"] = self._body_text(response.body)
        if self.log_headers:
            response_context["headers"] = sanitize_headers(
                {
                    name: value if isinstance(value, str) else ", ".join(value)
                    for name, value in response.headers.items()
                }
            )
        self.logger.log(
            level,
            f"HTTP Response: {response.status_code} ({duration}ms)",
            extra=response_context,
        )
        return response
