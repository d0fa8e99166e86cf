"""Module-level shortcuts around a shared global client.

The global client is created lazily from :func:`courier.config.get_settings`
the first time it is needed and can be replaced with
:func:`set_global_client`, for example to register middlewares that every
shortcut should use.

.. example::
   >>> from courier import facade
   >>> request = facade.get("https://api.example.com/users", {"page": 1})
   >>> response = await facade.send_get("https://api.example.com/users")
"""

import logging
import threading
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union

from .client import Client
from .models.request import Request
from .models.response import Response
from .utils.query import Params

logger = logging.getLogger(__name__)

_global_client: Optional[Client] = None
_global_client_lock = threading.Lock()


def get_global_client() -> Client:
    """Return the shared client, creating it on first use."""
    global _global_client

    if _global_client is None:
        with _global_client_lock:
            if _global_client is None:
                _global_client = Client.from_settings()
                logger.debug("Created global courier client")
    return _global_client


def set_global_client(client: Client) -> None:
    """Replace the shared client."""
    global _global_client

    with _global_client_lock:
        _global_client = client


def reset_global_client() -> None:
    """Drop the shared client; the next use creates a fresh one."""
    global _global_client

    with _global_client_lock:
        _global_client = None


# Request builders

def get(url: str, params: Optional[Params] = None) -> Request:
    return Request.get(url, params)


def post(url: str, params: Optional[Params] = None) -> Request:
    return Request.post(url, params)


def put(url: str, params: Optional[Params] = None) -> Request:
    return Request.put(url, params)


def patch(url: str, params: Optional[Params] = None) -> Request:
    return Request.patch(url, params)


def delete(url: str, params: Optional[Params] = None) -> Request:
    return Request.delete(url, params)


def head(url: str, params: Optional[Params] = None) -> Request:
    return Request.head(url, params)


# Send shortcuts

async def send_get(url: str, params: Optional[Params] = None) -> Response:
    return await get_global_client().send(get(url, params))


async def send_post(url: str, params: Optional[Params] = None) -> Response:
    return await get_global_client().send(post(url, params))


async def send_put(url: str, params: Optional[Params] = None) -> Response:
    return await get_global_client().send(put(url, params))


async def send_patch(url: str, params: Optional[Params] = None) -> Response:
    return await get_global_client().send(patch(url, params))


async def send_delete(url: str, params: Optional[Params] = None) -> Response:
    return await get_global_client().send(delete(url, params))


async def send_head(url: str, params: Optional[Params] = None) -> Response:
    return await get_global_client().send(head(url, params))


Builder = Callable[[str, Optional[Params]], Request]

# Facade name -> (request builder, send immediately through the global client)
VERBS: Dict[str, Tuple[Builder, bool]] = {
    "get": (Request.get, False),
    "post": (Request.post, False),
    "put": (Request.put, False),
    "patch": (Request.patch, False),
    "delete": (Request.delete, False),
    "head": (Request.head, False),
    "send_get": (Request.get, True),
    "send_post": (Request.post, True),
    "send_put": (Request.put, True),
    "send_patch": (Request.patch, True),
    "send_delete": (Request.delete, True),
    "send_head": (Request.head, True),
}


async def _send(request: Request) -> Response:
    return await get_global_client().send(request)


def call(
    name: str, url: str, params: Optional[Params] = None
) -> Union[Request, Awaitable[Response]]:
    """Dispatch a facade operation by name.

    Builder names (``"get"``, ``"post"``, ...) return a :class:`Request`;
    ``send_*`` names return an awaitable resolving to the response.

    :param name: Facade operation name, as listed in :data:`VERBS`
    :param url: Request URL
    :param params: Optional query parameters
    :return: Request or awaitable response
    :raises ValueError: If ``name`` is not a facade operation
    """
    try:
        builder, send_immediately = VERBS[name]
    except KeyError:
        raise ValueError(
            f"Unknown facade operation: {name!r}. "
            f"Expected one of: {', '.join(sorted(VERBS))}"
        ) from None
    request = builder(url, params)
    if send_immediately:
        return _send(request)
    return request


__all__ = [
    "VERBS",
    "call",
    "delete",
    "get",
    "get_global_client",
    "head",
    "patch",
    "post",
    "put",
    "reset_global_client",
    "send_delete",
    "send_get",
    "send_head",
    "send_patch",
    "send_post",
    "send_put",
    "set_global_client",
]
