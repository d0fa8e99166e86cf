"""Request, response and header models."""

from .headers import FrozenHeaders, Headers
from .request import FileAttachment, HTTPMethod, Request
from .response import Response

__all__ = [
    "FileAttachment",
    "FrozenHeaders",
    "HTTPMethod",
    "Headers",
    "Request",
    "Response",
]
