"""Static or computed headers added to every request."""

from typing import Awaitable, Callable, Mapping, Union

from ..models.headers import Headers
from ..models.request import Request
from ..models.response import Response
from .base import Handler, Middleware, call_provider

HeaderSource = Union[
    Headers,
    Mapping[str, str],
    Callable[[], Union[Mapping[str, str], Awaitable[Mapping[str, str]]]],
]


class HeadersMiddleware(Middleware):
    """Merge a set of headers into every request.

    Headers set here win over request headers of the same name; all other
    request headers are kept.

    :param headers: A :class:`Headers` builder, a mapping, or a sync/async
        callable returning one. Callables are evaluated per request.
    """

    def __init__(self, headers: HeaderSource):
        if isinstance(headers, Headers):
            headers = headers.copy()
        elif isinstance(headers, Mapping):
            headers = dict(headers)
        self._headers = headers

    async def resolve_headers(self) -> Headers:
        source = self._headers
        if callable(source) and not isinstance(source, Headers):
            source = await call_provider(source)
        return Headers(source)

    async def handle(self, request: Request, call_next: Handler) -> Response:
        extra = await self.resolve_headers()
        return await call_next(request.with_headers(request.headers.copy().update(extra)))
