"""Middleware contract and onion composition.

A middleware receives the outgoing request and a ``call_next`` coroutine
that runs the rest of the chain. It may change the request before
calling ``call_next``, inspect or replace the response afterwards, call
``call_next`` several times, or not call it at all.

Middlewares run in registration order on the way in and in reverse order
on the way out::

    before 1 -> before 2 -> engine -> after 2 -> after 1
"""

import inspect
from abc import ABC, abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

from ..models.request import Request
from ..models.response import Response

Handler = Callable[[Request], Awaitable[Response]]
MiddlewareCallable = Callable[[Request, Handler], Awaitable[Response]]


class Middleware(ABC):
    """Base class for request/response middleware."""

    @abstractmethod
    async def handle(self, request: Request, call_next: Handler) -> Response:
        """Process a request.

        :param request: The outgoing request
        :param call_next: Coroutine running the remaining chain
        :return: The response to hand back to the previous layer
        """


MiddlewareLike = Union[Middleware, MiddlewareCallable]


async def call_provider(provider: Callable[[], Any]) -> Any:
    """Call a sync or async zero-argument provider and return its value."""
    value = provider()
    if inspect.isawaitable(value):
        value = await value
    return value


def _bind(middleware: MiddlewareLike, call_next: Handler) -> Handler:
    handle = middleware.handle if isinstance(middleware, Middleware) else middleware

    async def handler(request: Request) -> Response:
        return await handle(request, call_next)

    return handler


class MiddlewareChain:
    """Ordered collection of middlewares.

    :param middleware: Initial middlewares, in registration order
    """

    def __init__(self, middleware: Optional[Iterable[MiddlewareLike]] = None):
        self._middleware: List[MiddlewareLike] = []
        for item in middleware or ():
            self.add(item)

    def add(self, middleware: MiddlewareLike) -> "MiddlewareChain":
        """Append a middleware; it runs after those already registered."""
        if not isinstance(middleware, Middleware) and not callable(middleware):
            raise TypeError(
                f"Middleware must be a Middleware instance or an async callable, "
                f"got {type(middleware).__name__}"
            )
        self._middleware.append(middleware)
        return self

    def snapshot(self) -> Tuple[MiddlewareLike, ...]:
        return tuple(self._middleware)

    def wrap(self, endpoint: Handler) -> Handler:
        """Compose the chain around ``endpoint``.

        The chain is captured at call time; later registrations do not
        affect the returned handler.
        """
        handler = endpoint
        for middleware in reversed(self.snapshot()):
            handler = _bind(middleware, handler)
        return handler

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[MiddlewareLike]:
        return iter(self.snapshot())
