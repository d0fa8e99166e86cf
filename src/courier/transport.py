"""Transport layer performing single HTTP round trips over httpx.

The client never talks to httpx directly. It describes one attempt as a
:class:`TransportCall` and hands it to a :class:`Transport`, which returns
a :class:`TransportResult` or raises. Retries, error classification and
response building all happen in the client.

:class:`HttpxTransport` opens a fresh ``httpx.AsyncClient`` per call and
closes it before returning, so no connection outlives a send.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

import httpx

from .models.request import FileAttachment

logger = logging.getLogger(__name__)

MultipartFields = List[Tuple[str, Union[str, FileAttachment]]]


class ResponseTooLargeError(Exception):
    """Raised when a response body exceeds the configured ceiling.

    :param limit: Configured maximum size in bytes
    :param received: Bytes received, or declared by ``Content-Length``
    """

    def __init__(self, limit: int, received: int):
        super().__init__(
            f"Response body exceeds maximum size of {limit} bytes "
            f"(received {received})"
        )
        self.limit = limit
        self.received = received


@dataclass
class TransportCall:
    """Everything the transport needs for one attempt."""

    method: str
    url: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    content: Optional[Union[str, bytes]] = None
    multipart: Optional[MultipartFields] = None
    timeout: float = 10.0
    connect_timeout: float = 5.0
    max_response_size: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransportResult:
    """Raw outcome of a round trip that produced a status line."""

    status_code: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    encoding: str = "utf-8"
    info: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> Optional[str]:
        if not self.body:
            return None
        return self.body.decode(self.encoding, errors="replace")


class Transport(Protocol):
    """Performs exactly one HTTP round trip."""

    async def send(self, call: TransportCall) -> TransportResult:
        ...


def _multipart_files(fields: MultipartFields) -> List[Tuple[str, Any]]:
    # Plain fields go through ``files`` too, without a filename, so the
    # body is always multipart even when no file is attached.
    files: List[Tuple[str, Any]] = []
    for name, value in fields:
        if isinstance(value, FileAttachment):
            files.append((name, (value.name, value.read(), value.content_type)))
        else:
            files.append((name, (None, str(value))))
    return files


def _primary_ip(response: httpx.Response) -> Optional[str]:
    stream = response.extensions.get("network_stream")
    if stream is None:
        return None
    address = stream.get_extra_info("server_addr")
    if not address:
        return None
    return address[0]


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    :param transport: Optional httpx transport passed to every client,
        for example an ``httpx.MockTransport`` in tests
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def send(self, call: TransportCall) -> TransportResult:
        """Perform one round trip.

        The total timeout bounds the whole exchange, body included; the
        connect timeout bounds connection establishment only.

        :param call: Description of the attempt
        :return: Status, headers, body and diagnostics
        :raises httpx.TransportError: On network failures
        :raises asyncio.TimeoutError: When the total timeout expires
        :raises ResponseTooLargeError: When the body exceeds the ceiling
        """
        options = dict(call.options)
        if self._transport is not None:
            options.setdefault("transport", self._transport)
        timeout = httpx.Timeout(call.timeout, connect=call.connect_timeout)

        started = time.perf_counter()
        async with httpx.AsyncClient(timeout=timeout, **options) as client:
            request = client.build_request(
                call.method,
                call.url,
                headers=call.headers,
                content=call.content,
                files=_multipart_files(call.multipart) if call.multipart else None,
            )
            return await asyncio.wait_for(
                self._exchange(client, request, call, started),
                timeout=call.timeout,
            )

    async def _exchange(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        call: TransportCall,
        started: float,
    ) -> TransportResult:
        response = await client.send(request, stream=True)
        try:
            limit = call.max_response_size
            declared = response.headers.get("Content-Length", "")
            if (
                limit is not None
                and call.method != "HEAD"
                and declared.isdigit()
                and int(declared) > limit
            ):
                raise ResponseTooLargeError(limit, int(declared))

            chunks: List[bytes] = []
            received = 0
            async for chunk in response.aiter_bytes():
                received += len(chunk)
                if limit is not None and received > limit:
                    raise ResponseTooLargeError(limit, received)
                chunks.append(chunk)
        finally:
            await response.aclose()

        encoding = response.headers.encoding
        headers = [
            (name.decode(encoding), value.decode(encoding))
            for name, value in response.headers.raw
        ]
        info = {
            "url": str(response.url),
            "http_version": response.http_version,
            "reason_phrase": response.reason_phrase,
            "total_time": time.perf_counter() - started,
            "redirect_count": len(response.history),
            "size_download": received,
        }
        primary_ip = _primary_ip(response)
        if primary_ip:
            info["primary_ip"] = primary_ip

        logger.debug(
            "Transport round trip complete",
            extra={
                "method": call.method,
                "url": info["url"],
                "status": response.status_code,
                "size_download": received,
            },
        )
        return TransportResult(
            status_code=response.status_code,
            headers=headers,
            body=b"".join(chunks),
            encoding=response.encoding or "utf-8",
            info=info,
        )
