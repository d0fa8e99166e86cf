"""Authorization header middlewares."""

from typing import Awaitable, Callable, Union

from ..models.request import Request
from ..models.response import Response
from .base import Handler, Middleware, call_provider

TokenProvider = Callable[[], Union[str, Awaitable[str]]]


class BearerAuthMiddleware(Middleware):
    """Add ``Authorization: Bearer <token>`` to every request.

    :param token: A fixed token, or a sync/async callable returning the
        current token. Providers are called once per request.

    .. example::
       >>> client.add_middleware(BearerAuthMiddleware(token_store.current))
    """

    def __init__(self, token: Union[str, TokenProvider]):
        self._token = token

    async def get_token(self) -> str:
        if callable(self._token):
            return await call_provider(self._token)
        return self._token

    async def handle(self, request: Request, call_next: Handler) -> Response:
        token = await self.get_token()
        return await call_next(
            request.with_headers(request.headers.copy().auth_bearer(token))
        )


class BasicAuthMiddleware(Middleware):
    """Add HTTP basic credentials to every request."""

    def __init__(self, username: str, password: str):
        self.username = username
        self._password = password

    async def handle(self, request: Request, call_next: Handler) -> Response:
        headers = request.headers.copy().auth_basic(self.username, self._password)
        return await call_next(request.with_headers(headers))
