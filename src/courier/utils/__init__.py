"""Utility helpers for query encoding and log sanitization."""

from .query import encode_params, flatten_params, merge_query
from .security import (
    SanitizingFormatter,
    sanitize_headers,
    sanitize_string,
    sanitize_url,
    setup_secure_logging,
)

__all__ = [
    "SanitizingFormatter",
    "encode_params",
    "flatten_params",
    "merge_query",
    "sanitize_headers",
    "sanitize_string",
    "sanitize_url",
    "setup_secure_logging",
]
