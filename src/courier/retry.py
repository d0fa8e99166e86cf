"""Backoff computation and transport error classification.

The client retries only failures that never produced an HTTP status.
Each such failure is mapped onto the courier error taxonomy before it is
surfaced, so callers can catch :class:`TransportTimeoutError` or
:class:`TransportConnectionError` without knowing about httpx.
"""

import asyncio
import random
from typing import Any

import httpx

from .exceptions import TransportConnectionError, TransportError, TransportTimeoutError
from .transport import ResponseTooLargeError

JITTER_RATIO = 0.3

_CONNECTION_ERRORS = (
    httpx.ConnectError,
    httpx.ProxyError,
    httpx.RemoteProtocolError,
)

# Exceptions the client treats as transport failures (no status obtained).
RETRYABLE_EXCEPTIONS = (
    httpx.TransportError,
    httpx.RequestError,
    asyncio.TimeoutError,
    ResponseTooLargeError,
)


def compute_backoff_delay(
    retry_index: int,
    base_delay_ms: int,
    exponential: bool = True,
    rng: Any = random,
) -> float:
    """Compute the delay before the next attempt.

    Exponential backoff doubles the base delay for each retry and applies
    a random jitter of up to 30% either way. Fixed backoff always returns
    the base delay.

    :param retry_index: Zero-based index of the retry about to happen
    :param base_delay_ms: Base delay in milliseconds
    :param exponential: Whether to use exponential backoff with jitter
    :param rng: Source of randomness exposing ``uniform``
    :return: Delay in seconds
    """
    base = max(0, base_delay_ms) / 1000.0
    if not exponential:
        return base
    jitter = rng.uniform(-JITTER_RATIO, JITTER_RATIO)
    return max(0.0, base * (2**retry_index) * (1 + jitter))


def classify_transport_error(error: BaseException) -> TransportError:
    """Map a raw transport exception onto the courier taxonomy.

    :param error: Exception raised by the transport
    :return: A :class:`TransportTimeoutError`, :class:`TransportConnectionError`
        or generic :class:`TransportError`
    """
    errno = type(error).__name__
    message = str(error) or errno
    if isinstance(error, ResponseTooLargeError):
        return TransportError(message, errno=errno)
    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
        return TransportTimeoutError(
            message if str(error) else "Request timed out", errno=errno
        )
    if isinstance(error, _CONNECTION_ERRORS):
        return TransportConnectionError(message, errno=errno)
    return TransportError(message, errno=errno)
