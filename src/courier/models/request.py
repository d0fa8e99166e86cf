"""Immutable HTTP request descriptor.

A :class:`Request` describes one HTTP call. Every configuration method
returns a new request and leaves the receiver untouched, so a configured
request can be kept as a template and sent any number of times, from any
number of tasks.

.. example::
   >>> request = (
   ...     Request.post("https://api.example.com/users")
   ...     .with_headers(Headers.instance().json().auth_bearer(token))
   ...     .with_json_body({"name": "John"})
   ...     .with_retry(3, 500)
   ...     .with_throw_on_error()
   ... )
   >>> response = await request.send()
"""

import dataclasses
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel

from ..exceptions import ValidationError
from ..utils.query import Params, encode_params, merge_query
from .headers import FrozenHeaders, Headers

if TYPE_CHECKING:
    from ..client import Client
    from .response import Response

DEFAULT_MAX_RESPONSE_SIZE = 10_485_760  # 10 MiB
ALLOWED_SCHEMES = ("http", "https")


class HTTPMethod(str, Enum):
    """HTTP methods a request can use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"


@dataclass(frozen=True)
class FileAttachment:
    """A file to upload as part of a multipart body.

    Either ``path`` or ``content`` must be given. When ``filename`` is
    omitted the name of ``path`` is used.

    :param path: Path of a file to read at send time
    :param content: In-memory file content
    :param filename: File name reported to the server
    :param content_type: MIME type of the part
    """

    path: Optional[Union[str, Path]] = None
    content: Optional[Union[str, bytes]] = None
    filename: Optional[str] = None
    content_type: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.path is None) == (self.content is None):
            raise ValidationError(
                "FileAttachment requires exactly one of path or content",
                field="file",
            )

    @property
    def name(self) -> str:
        if self.filename:
            return self.filename
        if self.path is not None:
            return Path(self.path).name
        return "upload"

    def read(self) -> bytes:
        """Return the attachment bytes, reading ``path`` if needed."""
        if self.content is not None:
            if isinstance(self.content, str):
                return self.content.encode("utf-8")
            return self.content
        return Path(self.path).read_bytes()


Body = Union[None, str, bytes, Mapping[str, Any]]


def _validate_url(url: str) -> str:
    if not url:
        raise ValidationError("URL cannot be empty", field="url")
    scheme = urlsplit(url).scheme
    if not scheme:
        raise ValidationError(
            "Invalid URL format: missing or invalid protocol", field="url", value=url
        )
    scheme = scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise ValidationError(
            f"Only HTTP and HTTPS protocols are allowed, got: {scheme}",
            field="url",
            value=url,
        )
    return url


def _coerce_method(method: Union[HTTPMethod, str]) -> HTTPMethod:
    if isinstance(method, HTTPMethod):
        return method
    try:
        return HTTPMethod(str(method).upper())
    except ValueError:
        raise ValidationError(
            f"Unsupported HTTP method: {method}", field="method", value=method
        ) from None


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return dataclasses.asdict(data)
    return data


@dataclass(frozen=True)
class Request:
    """Immutable description of an HTTP request.

    Build requests with the verb factories (:meth:`get`, :meth:`post`, ...)
    and refine them with the ``with_*`` methods. The URL is validated at
    construction and always holds the effective URL, query included.

    :param method: HTTP method
    :param url: Absolute http(s) URL
    :param headers: Request headers, stored as a read-only snapshot
    :param body: Raw body, or a field mapping for multipart requests
    :param is_multipart: Whether ``body`` is sent as multipart/form-data
    :param timeout_seconds: Total timeout; ``None`` uses the client default
    :param connect_timeout_seconds: Connect timeout; ``None`` uses the client default
    :param retry_count: Total number of attempts, at least 1
    :param retry_delay_ms: Base delay between attempts in milliseconds
    :param exponential_backoff: Double the delay on each retry, with jitter
    :param max_response_size: Body size ceiling in bytes; ``None`` disables it
    :param throw_on_error: Raise :class:`~courier.exceptions.HTTPError` on non-2xx
    :param options: Extra ``httpx.AsyncClient`` keyword arguments

    Headers, options and mapping bodies are frozen at construction;
    derive a new request to change them.
    """

    method: HTTPMethod
    url: str
    headers: Headers = field(default_factory=Headers)
    body: Body = None
    is_multipart: bool = False
    timeout_seconds: Optional[float] = None
    connect_timeout_seconds: Optional[float] = None
    retry_count: int = 1
    retry_delay_ms: int = 500
    exponential_backoff: bool = True
    max_response_size: Optional[int] = DEFAULT_MAX_RESPONSE_SIZE
    throw_on_error: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", _coerce_method(self.method))
        object.__setattr__(self, "url", _validate_url(self.url))
        object.__setattr__(self, "headers", FrozenHeaders(self.headers))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))
        if isinstance(self.body, Mapping):
            object.__setattr__(self, "body", MappingProxyType(dict(self.body)))

    # Factories

    @classmethod
    def create(
        cls,
        method: Union[HTTPMethod, str],
        url: str,
        params: Optional[Params] = None,
    ) -> "Request":
        """Create a request, appending ``params`` to the URL query.

        :param method: HTTP method
        :param url: Absolute http(s) URL
        :param params: Optional query parameters
        :return: New request
        :raises ValidationError: If the URL or method is invalid
        """
        if params and url:
            url = merge_query(url, params)
        return cls(method=method, url=url)

    @classmethod
    def get(cls, url: str, params: Optional[Params] = None) -> "Request":
        return cls.create(HTTPMethod.GET, url, params)

    @classmethod
    def post(cls, url: str, params: Optional[Params] = None) -> "Request":
        return cls.create(HTTPMethod.POST, url, params)

    @classmethod
    def put(cls, url: str, params: Optional[Params] = None) -> "Request":
        return cls.create(HTTPMethod.PUT, url, params)

    @classmethod
    def patch(cls, url: str, params: Optional[Params] = None) -> "Request":
        return cls.create(HTTPMethod.PATCH, url, params)

    @classmethod
    def delete(cls, url: str, params: Optional[Params] = None) -> "Request":
        return cls.create(HTTPMethod.DELETE, url, params)

    @classmethod
    def head(cls, url: str, params: Optional[Params] = None) -> "Request":
        return cls.create(HTTPMethod.HEAD, url, params)

    # Headers

    def with_headers(
        self, headers: Union[Headers, Mapping[str, str]]
    ) -> "Request":
        """Replace the header set."""
        return dataclasses.replace(self, headers=Headers(headers))

    def with_header(self, name: str, value: str) -> "Request":
        """Set a single header, keeping the others."""
        return dataclasses.replace(self, headers=self.headers.copy().set(name, value))

    def without_header(self, name: str) -> "Request":
        return dataclasses.replace(self, headers=self.headers.copy().remove(name))

    # Body

    def with_body(self, body: Optional[Union[str, bytes]]) -> "Request":
        """Use ``body`` as the raw request body.

        Headers are left alone; set ``Content-Type`` yourself if needed.
        """
        return dataclasses.replace(self, body=body, is_multipart=False)

    def with_json_body(self, data: Any) -> "Request":
        """Serialize ``data`` as compact JSON and set the JSON content type.

        :param data: Mapping, sequence, pydantic model or dataclass instance
        :return: New request
        """
        encoded = json.dumps(_jsonable(data), separators=(",", ":"))
        headers = self.headers.copy().set("Content-Type", "application/json")
        return dataclasses.replace(
            self, headers=headers, body=encoded, is_multipart=False
        )

    def with_form_params(self, data: Params) -> "Request":
        """Send ``data`` as an ``application/x-www-form-urlencoded`` body."""
        headers = self.headers.copy().set(
            "Content-Type", "application/x-www-form-urlencoded"
        )
        return dataclasses.replace(
            self, headers=headers, body=encode_params(data), is_multipart=False
        )

    def with_multipart_body(self, fields: Mapping[str, Any]) -> "Request":
        """Send ``fields`` as multipart/form-data.

        Values are plain strings/numbers or :class:`FileAttachment`
        instances. Any ``Content-Type`` header is dropped so the transport
        can generate the boundary.
        """
        headers = self.headers.copy().remove("Content-Type")
        return dataclasses.replace(
            self, headers=headers, body=fields, is_multipart=True
        )

    # Execution policy

    def with_timeout(self, seconds: float) -> "Request":
        return dataclasses.replace(self, timeout_seconds=seconds)

    def with_connect_timeout(self, seconds: float) -> "Request":
        return dataclasses.replace(self, connect_timeout_seconds=seconds)

    def with_retry(
        self, count: int, delay_ms: int = 500, exponential_backoff: bool = True
    ) -> "Request":
        """Configure the retry policy for transport failures.

        With exponential backoff a 500 ms base gives roughly
        500 ms, 1000 ms, 2000 ms (each with up to 30% jitter).

        :param count: Total attempts; values below 1 become 1
        :param delay_ms: Base delay in milliseconds; negatives become 0
        :param exponential_backoff: Double the delay on each retry
        :return: New request
        """
        return dataclasses.replace(
            self,
            retry_count=max(1, int(count)),
            retry_delay_ms=max(0, int(delay_ms)),
            exponential_backoff=exponential_backoff,
        )

    def with_max_response_size(self, size: Optional[int]) -> "Request":
        """Cap the response body size; ``None`` removes the cap."""
        return dataclasses.replace(
            self, max_response_size=None if size is None else max(0, int(size))
        )

    def with_throw_on_error(self, flag: bool = True) -> "Request":
        return dataclasses.replace(self, throw_on_error=flag)

    # Query

    def with_query_param(self, name: str, value: Any) -> "Request":
        """Append one query parameter to the URL."""
        return dataclasses.replace(self, url=merge_query(self.url, [(name, value)]))

    def with_query_params(self, params: Params) -> "Request":
        """Append several query parameters to the URL."""
        return dataclasses.replace(self, url=merge_query(self.url, params))

    def with_options(self, options: Mapping[str, Any]) -> "Request":
        """Merge extra transport options; later values win."""
        merged: Dict[str, Any] = dict(self.options)
        merged.update(options)
        return dataclasses.replace(self, options=merged)

    async def send(self, client: Optional["Client"] = None) -> "Response":
        """Send the request through ``client`` or the global client.

        :param client: Client to use; defaults to the shared global client
        :return: The response
        :raises TransportError: When every attempt failed at transport level
        :raises HTTPError: When ``throw_on_error`` is set and the status is not 2xx
        """
        if client is None:
            from ..facade import get_global_client

            client = get_global_client()
        return await client.send(self)
