"""Log sanitization and secure logging setup.

Request URLs, headers and bodies routinely carry credentials. The helpers
here redact bearer and basic credentials, JWTs, long API keys and
sensitive query parameters before they reach a log handler.
"""

import copy
import logging
import re
import sys
from typing import Any, Dict, Optional, Union

from ..config import get_settings

# Patterns for sensitive data detection
SENSITIVE_PATTERNS = {
    "jwt_token": re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    "bearer_token": re.compile(r"Bearer\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    "basic_auth": re.compile(r"Basic\s+[A-Za-z0-9+/=]+", re.IGNORECASE),
    "api_key": re.compile(r"\b[A-Za-z0-9]{32,}\b"),
}

# Headers that should never be logged
SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "x-api-key",
    "x-auth-token",
    "cookie",
    "set-cookie",
    "x-csrf-token",
    "x-access-token",
    "x-refresh-token",
}

SENSITIVE_QUERY_PARAMS = (
    "access_token",
    "refresh_token",
    "client_secret",
    "api_key",
    "apikey",
    "password",
    "secret",
    "token",
    "key",
    "auth",
)

_SENSITIVE_PARAM_RE = re.compile(
    r"([?&](?:%s)=)[^&#\s]*" % "|".join(SENSITIVE_QUERY_PARAMS), re.IGNORECASE
)


def sanitize_string(value: str, partial: bool = False) -> str:
    """Redact sensitive data embedded in a string.

    Each match is replaced in place, the rest of the string is kept.

    :param value: String to sanitize
    :param partial: If True, show the secret length instead of a plain marker
    :return: Sanitized string
    """
    if not value:
        return value
    for pattern_name, pattern in SENSITIVE_PATTERNS.items():
        if partial:
            value = pattern.sub(
                lambda m, n=pattern_name: f"<{n}:length={len(m.group(0))}>", value
            )
        else:
            value = pattern.sub(f"<{pattern_name}:REDACTED>", value)
    return value


def sanitize_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize HTTP headers for logging.

    :param headers: Header mapping
    :return: Copy with sensitive headers redacted
    """
    if not headers:
        return headers
    sanitized = copy.deepcopy(dict(headers))
    for key, value in sanitized.items():
        if key.lower() in SENSITIVE_HEADERS:
            if isinstance(value, str) and value:
                sanitized[key] = f"<REDACTED:length={len(value)}>"
            else:
                sanitized[key] = "<REDACTED>"
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
    return sanitized


def sanitize_url(url: str) -> str:
    """Redact credentials in a URL.

    Values of sensitive query parameters and any ``user:password@``
    userinfo are replaced with ``<REDACTED>``.

    :param url: URL to sanitize
    :return: Sanitized URL
    """
    if not url:
        return url
    url = re.sub(r"(://)[^/@\s]+@", r"\1<REDACTED>@", url)
    return _SENSITIVE_PARAM_RE.sub(r"\1<REDACTED>", url)


class SanitizingFormatter(logging.Formatter):
    """Formatter that redacts sensitive data from every record."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the record after sanitizing its message.

        :param record: Log record to format
        :return: Sanitized log line
        """
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Arguments do not match the format string
            message = str(record.msg)
        record.msg = sanitize_string(message)
        record.args = None
        return super().format(record)


# Global flag to track if logging has been set up
_LOGGING_CONFIGURED = False


def setup_secure_logging(
    level: Optional[Union[str, int]] = None, force: bool = False
) -> None:
    """Configure root logging with automatic sanitization.

    Only the first call installs the handler, unless ``force`` is set.

    :param level: Logging level name or number; defaults to the
        ``COURIER_LOG_LEVEL`` setting
    :param force: Reinstall the handler even if already configured
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED and not force:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping duplicate setup"
        )
        return

    if level is None:
        level = get_settings().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        SanitizingFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    # httpx logs full request lines at INFO; route them through our handler
    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).propagate = True

    _LOGGING_CONFIGURED = True
