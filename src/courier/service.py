"""Base class for typed wrappers around one remote HTTP API.

Subclasses describe the API once (base URL, default headers) and expose
one classmethod per endpoint:

.. example::
   >>> class UserApi(ApiService):
   ...     @classmethod
   ...     def base_url(cls):
   ...         return "https://api.example.com/v1"
   ...
   ...     @classmethod
   ...     def headers(cls):
   ...         return Headers.instance().json().auth_bearer(TOKEN)
   ...
   ...     @classmethod
   ...     async def find(cls, user_id):
   ...         response = await cls.client().send(cls.get(f"users/{user_id}"))
   ...         return cls.try_result(response)
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional, Type

from .client import Client
from .exceptions import HTTPError
from .models.headers import Headers
from .models.request import HTTPMethod, Request
from .models.response import Response

ERROR_MESSAGE_KEYS = ("message", "error", "error_message", "msg", "detail")


class ApiService(ABC):
    """Base class for API service wrappers.

    Each subclass owns one lazily created :class:`Client`, so middlewares
    registered for one API never leak into another.
    """

    _clients: ClassVar[Dict[Type["ApiService"], Client]] = {}
    _clients_lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    @abstractmethod
    def base_url(cls) -> str:
        """Base URL every path is joined to."""

    @classmethod
    @abstractmethod
    def headers(cls) -> Headers:
        """Headers attached to every request of this service."""

    # Client management

    @classmethod
    def client(cls) -> Client:
        """Return this service's client, creating it on first use."""
        client = ApiService._clients.get(cls)
        if client is None:
            with ApiService._clients_lock:
                client = ApiService._clients.get(cls)
                if client is None:
                    client = cls.create_client()
                    ApiService._clients[cls] = client
        return client

    @classmethod
    def create_client(cls) -> Client:
        """Build the client for this service; override to add middlewares."""
        return Client.from_settings()

    @classmethod
    def set_client(cls, client: Optional[Client]) -> None:
        """Replace this service's client; ``None`` forgets it."""
        with ApiService._clients_lock:
            if client is None:
                ApiService._clients.pop(cls, None)
            else:
                ApiService._clients[cls] = client

    # Request builders

    @classmethod
    def url(cls, path: str) -> str:
        """Join the base URL and ``path`` with exactly one slash."""
        return f"{cls.base_url().rstrip('/')}/{path.lstrip('/')}"

    @classmethod
    def request(cls, method: HTTPMethod, path: str) -> Request:
        return Request(method=method, url=cls.url(path)).with_headers(cls.headers())

    @classmethod
    def get(cls, path: str) -> Request:
        return cls.request(HTTPMethod.GET, path)

    @classmethod
    def post(cls, path: str) -> Request:
        return cls.request(HTTPMethod.POST, path)

    @classmethod
    def put(cls, path: str) -> Request:
        return cls.request(HTTPMethod.PUT, path)

    @classmethod
    def patch(cls, path: str) -> Request:
        return cls.request(HTTPMethod.PATCH, path)

    @classmethod
    def delete(cls, path: str) -> Request:
        return cls.request(HTTPMethod.DELETE, path)

    @classmethod
    def head(cls, path: str) -> Request:
        return cls.request(HTTPMethod.HEAD, path)

    # Response handling

    @classmethod
    def try_result(cls, response: Response, data_key: str = "data") -> Any:
        """Unwrap a JSON API response.

        :param response: Response to unwrap
        :param data_key: Envelope key holding the payload
        :return: ``body[data_key]`` if present, else the whole decoded body
        :raises HTTPError: If the response is not 2xx
        """
        body = response.json()
        if not response.is_success():
            raise HTTPError(
                response, cls.extract_error_message(body, response.status_code)
            )
        if isinstance(body, dict) and data_key in body:
            return body[data_key]
        return body

    @classmethod
    def extract_error_message(cls, body: Any, status_code: int) -> str:
        """Find a human-readable error message in an error body.

        :param body: Decoded JSON body, or ``None``
        :param status_code: Response status code
        :return: The message, or ``"HTTP Error <status>"``
        """
        if isinstance(body, dict):
            for key in ERROR_MESSAGE_KEYS:
                value = body.get(key)
                if isinstance(value, str):
                    return value
            error = body.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"]
        return f"HTTP Error {status_code}"
