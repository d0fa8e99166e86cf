"""Immutable HTTP response descriptor."""

import json
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

HeaderValue = Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class Response:
    """Result of one completed HTTP round trip.

    Responses are created by the client after the transport returns a
    status line. ``headers`` keeps the names as sent by the server; a name
    that appeared more than once maps to a tuple of values.
    ``transport_info`` holds diagnostics such as the effective URL and the
    total time.

    A status code of ``0`` means no HTTP exchange took place; such
    responses are only synthesized from a transport failure.

    :param status_code: HTTP status code
    :param body: Decoded response body, ``None`` if nothing was received
    :param headers: Response headers in wire order
    :param transport_info: Transport diagnostics
    """

    status_code: int
    body: Optional[str] = None
    headers: Mapping[str, Union[str, Sequence[str]]] = field(default_factory=dict)
    transport_info: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        headers = {
            name: value if isinstance(value, str) else tuple(value)
            for name, value in self.headers.items()
        }
        object.__setattr__(self, "headers", MappingProxyType(headers))
        object.__setattr__(
            self, "transport_info", MappingProxyType(dict(self.transport_info))
        )

    @classmethod
    def connection_error(cls, error: BaseException) -> "Response":
        """Build a status-0 response describing a transport failure.

        :param error: The transport error
        :return: Response with ``status_code`` 0 and the error in ``transport_info``
        """
        return cls(
            status_code=0,
            transport_info={
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )

    @property
    def status(self) -> Optional[HTTPStatus]:
        """The status as :class:`http.HTTPStatus`, ``None`` if non-standard."""
        try:
            return HTTPStatus(self.status_code)
        except ValueError:
            return None

    def header(self, name: str) -> Optional[str]:
        """Get a header value by case-insensitive name.

        Repeated headers are joined with ``", "``.

        :param name: Header name
        :return: Header value, or ``None`` if absent
        """
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return ", ".join(value) if isinstance(value, tuple) else value
        return None

    def info(self, key: str) -> Any:
        return self.transport_info.get(key)

    def json(self) -> Any:
        """Decode the body as JSON.

        :return: Decoded value, or ``None`` for an empty or invalid body
        """
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None

    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def is_redirection(self) -> bool:
        return 300 <= self.status_code < 400

    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def is_connection_error(self) -> bool:
        return self.status_code == 0
