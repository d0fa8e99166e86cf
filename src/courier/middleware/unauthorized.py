"""Refresh the bearer token and retry when a request comes back 401."""

import logging
from typing import Awaitable, Callable, Optional, Tuple, Union

from ..exceptions import HTTPError
from ..models.request import Request
from ..models.response import Response
from ..utils.security import sanitize_url
from .base import Handler, Middleware, call_provider

logger = logging.getLogger(__name__)

TokenRefresher = Callable[[], Union[str, Awaitable[str]]]


class RetryOnUnauthorizedMiddleware(Middleware):
    """Re-issue a request with a fresh token after a 401 response.

    When the downstream chain returns 401, ``token_refresher`` is called
    and the request is sent again with ``Authorization: Bearer <new token>``.
    This repeats while the status stays 401, at most ``max_retries``
    times. If the refresher raises, the failure is logged and the last
    401 response is returned.

    Register this after any auth middleware, so the refreshed header is
    set closest to the engine and is not overwritten.

    :param token_refresher: Sync or async callable returning a new token
    :param max_retries: Maximum number of refresh-and-retry cycles
    """

    def __init__(self, token_refresher: TokenRefresher, max_retries: int = 1):
        self.token_refresher = token_refresher
        self.max_retries = max(0, max_retries)

    @staticmethod
    async def _call(
        request: Request, call_next: Handler
    ) -> Tuple[Response, Optional[HTTPError]]:
        # Requests built with throw_on_error surface a 401 as HTTPError
        try:
            return await call_next(request), None
        except HTTPError as e:
            if e.status_code != 401:
                raise
            return e.response, e

    async def handle(self, request: Request, call_next: Handler) -> Response:
        response, error = await self._call(request, call_next)

        retries = 0
        while response.status_code == 401 and retries < self.max_retries:
            retries += 1
            try:
                token = await call_provider(self.token_refresher)
            except Exception as e:
                logger.warning(
                    f"Token refresh failed, returning 401 response: {e}",
                    extra={"url": sanitize_url(request.url), "retry": retries},
                )
                break

            logger.debug(f"Retrying after 401 with refreshed token ({retries})")
            retry_request = request.with_header("Authorization", f"Bearer {token}")
            response, error = await self._call(retry_request, call_next)

        if error is not None:
            raise error
        return response
