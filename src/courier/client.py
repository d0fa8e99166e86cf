"""Execution engine and middleware host.

:class:`Client` turns a :class:`~courier.models.request.Request` into a
:class:`~courier.models.response.Response`. Each send runs the registered
middleware chain around the engine; the engine performs one or more
transport attempts, retrying failures that produced no HTTP status.

.. example::
   >>> client = Client(default_timeout=15)
   >>> client.add_middleware(LoggingMiddleware())
   >>> response = await client.send(Request.get("https://api.example.com/users"))
"""

import asyncio
import logging
from contextvars import ContextVar
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import ConfigurationError, CourierError, HTTPError
from .middleware.base import MiddlewareChain, MiddlewareLike
from .models.request import Request
from .models.response import HeaderValue, Response
from .outcome import SendOutcome
from .retry import RETRYABLE_EXCEPTIONS, classify_transport_error, compute_backoff_delay
from .transport import HttpxTransport, Transport, TransportCall, TransportResult
from .utils.query import encode_params
from .utils.security import sanitize_url

logger = logging.getLogger(__name__)

# Transport options applied before client and request options.
ENGINE_DEFAULT_OPTIONS: Dict[str, Any] = {
    "follow_redirects": True,
    "max_redirects": 10,
}

# Attempts made by the most recent engine run in the current context.
_last_attempts: ContextVar[int] = ContextVar("courier_last_attempts", default=0)


def _fold_headers(raw: List[Tuple[str, str]]) -> Dict[str, HeaderValue]:
    headers: Dict[str, HeaderValue] = {}
    names: Dict[str, str] = {}
    for name, value in raw:
        key = names.setdefault(name.lower(), name)
        if key not in headers:
            headers[key] = value
            continue
        existing = headers[key]
        if isinstance(existing, tuple):
            headers[key] = existing + (value,)
        else:
            headers[key] = (existing, value)
    return headers


class Client:
    """HTTP client executing requests through a middleware chain.

    A client holds no connections between sends and is safe to share
    across tasks. Register middlewares before sending; changing the chain
    while sends are in flight is not supported.

    :param default_timeout: Total timeout in seconds for requests without one
    :param default_connect_timeout: Connect timeout in seconds for requests without one
    :param default_transport_options: ``httpx.AsyncClient`` keyword arguments
        applied to every request before request-level options
    :param transport: Transport performing round trips; defaults to
        :class:`~courier.transport.HttpxTransport`
    """

    def __init__(
        self,
        default_timeout: float = 10,
        default_connect_timeout: float = 5,
        default_transport_options: Optional[Mapping[str, Any]] = None,
        transport: Optional[Transport] = None,
    ):
        if default_timeout <= 0:
            raise ConfigurationError(
                "default_timeout must be positive", setting="default_timeout"
            )
        if default_connect_timeout <= 0:
            raise ConfigurationError(
                "default_connect_timeout must be positive",
                setting="default_connect_timeout",
            )
        self.default_timeout = default_timeout
        self.default_connect_timeout = default_connect_timeout
        self.default_transport_options: Dict[str, Any] = dict(
            default_transport_options or {}
        )
        self._transport: Transport = transport or HttpxTransport()
        self._chain = MiddlewareChain()

    @classmethod
    def from_settings(cls, settings=None, **kwargs) -> "Client":
        """Create a client configured from :class:`~courier.config.Settings`.

        :param settings: Settings to use; defaults to :func:`get_settings`
        :param kwargs: Extra constructor arguments, e.g. ``transport``
        :return: Configured client
        """
        if settings is None:
            from .config import get_settings

            settings = get_settings()
        return cls(
            default_timeout=settings.default_timeout,
            default_connect_timeout=settings.default_connect_timeout,
            default_transport_options={
                "follow_redirects": settings.follow_redirects,
                "max_redirects": settings.max_redirects,
                "verify": settings.verify_ssl,
                "http2": settings.http2,
            },
            **kwargs,
        )

    @property
    def middleware(self) -> Tuple[MiddlewareLike, ...]:
        """Registered middlewares, in registration order."""
        return self._chain.snapshot()

    def add_middleware(self, middleware: MiddlewareLike) -> "Client":
        """Register a middleware.

        :param middleware: :class:`~courier.middleware.Middleware` instance
            or async callable ``(request, call_next)``
        :return: This client, for chaining
        """
        self._chain.add(middleware)
        return self

    async def send(self, request: Request) -> Response:
        """Send a request through the middleware chain and the engine.

        :param request: Request to send
        :return: The response, whatever its status unless ``throw_on_error`` is set
        :raises TransportError: When every attempt failed at transport level
        :raises HTTPError: When ``throw_on_error`` is set and the status is not 2xx
        """
        handler = self._chain.wrap(self._dispatch)
        return await handler(request)

    async def try_send(self, request: Request) -> SendOutcome:
        """Like :meth:`send`, but capture courier errors in the outcome."""
        token = _last_attempts.set(0)
        try:
            response = await self.send(request)
        except CourierError as e:
            return SendOutcome(error=e, attempts=_last_attempts.get())
        else:
            return SendOutcome(response=response, attempts=_last_attempts.get())
        finally:
            _last_attempts.reset(token)

    async def _dispatch(self, request: Request) -> Response:
        return (await self.execute(request)).unwrap()

    async def execute(self, request: Request) -> SendOutcome:
        """Run the engine for one request, without middleware.

        Transport failures are retried according to the request's retry
        policy. Errors are returned in the outcome, never raised.

        :param request: Request to execute
        :return: Outcome holding the response or the error
        """
        call = self._build_call(request)
        safe_url = sanitize_url(request.url)
        attempt = 0
        while True:
            attempt += 1
            _last_attempts.set(attempt)
            logger.debug(
                f"Attempt {attempt}/{request.retry_count}: "
                f"{request.method.value} {safe_url}",
                extra={"method": request.method.value, "url": safe_url, "attempt": attempt},
            )
            try:
                result = await self._transport.send(call)
            except RETRYABLE_EXCEPTIONS as e:
                error = classify_transport_error(e)
                error.__cause__ = e
                if attempt >= request.retry_count:
                    logger.error(
                        f"Request failed after {attempt} attempt(s): {error.message}",
                        extra={
                            "method": request.method.value,
                            "url": safe_url,
                            "attempts": attempt,
                            "error_code": error.code,
                        },
                    )
                    return SendOutcome(error=error, attempts=attempt)
                delay = compute_backoff_delay(
                    attempt - 1, request.retry_delay_ms, request.exponential_backoff
                )
                logger.warning(
                    f"Transport failure on attempt {attempt}, "
                    f"retrying in {delay:.3f}s: {error.message}",
                    extra={
                        "method": request.method.value,
                        "url": safe_url,
                        "attempt": attempt,
                        "delay": delay,
                        "error_code": error.code,
                    },
                )
                await asyncio.sleep(delay)
                continue

            response = self._build_response(result)
            if request.throw_on_error and not response.is_success():
                return SendOutcome(error=HTTPError(response), attempts=attempt)
            return SendOutcome(response=response, attempts=attempt)

    def _build_call(self, request: Request) -> TransportCall:
        options: Dict[str, Any] = dict(ENGINE_DEFAULT_OPTIONS)
        options.update(self.default_transport_options)
        options.update(request.options)

        headers = request.headers.items()
        content: Optional[Union[str, bytes]] = None
        multipart = None
        if request.is_multipart and isinstance(request.body, Mapping):
            multipart = list(request.body.items())
            headers = [(n, v) for n, v in headers if n.lower() != "content-type"]
        elif isinstance(request.body, Mapping):
            content = encode_params(request.body)
        else:
            content = request.body

        return TransportCall(
            method=request.method.value,
            url=request.url,
            headers=headers,
            content=content,
            multipart=multipart,
            timeout=(
                request.timeout_seconds
                if request.timeout_seconds is not None
                else self.default_timeout
            ),
            connect_timeout=(
                request.connect_timeout_seconds
                if request.connect_timeout_seconds is not None
                else self.default_connect_timeout
            ),
            max_response_size=request.max_response_size,
            options=options,
        )

    @staticmethod
    def _build_response(result: TransportResult) -> Response:
        return Response(
            status_code=result.status_code,
            body=result.text,
            headers=_fold_headers(result.headers),
            transport_info=result.info,
        )
