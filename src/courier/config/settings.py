"""Configuration settings for courier clients.

Settings are read from ``COURIER_``-prefixed environment variables and an
optional ``.env`` file. They only provide defaults for clients built with
:meth:`courier.Client.from_settings`, including the facade's global
client; requests can still override timeouts and transport options.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client defaults loaded from environment variables.

    :param default_timeout: Total request timeout in seconds
    :type default_timeout: float
    :param default_connect_timeout: Connection timeout in seconds
    :type default_connect_timeout: float
    :param follow_redirects: Whether redirects are followed
    :type follow_redirects: bool
    :param max_redirects: Maximum number of redirects to follow
    :type max_redirects: int
    :param verify_ssl: Whether TLS certificates are verified
    :type verify_ssl: bool
    :param http2: Enable HTTP/2 (requires the ``h2`` package)
    :type http2: bool
    :param log_level: Level used by :func:`setup_secure_logging`
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_prefix="COURIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )

    default_timeout: float = Field(10.0, description="Total timeout in seconds")
    default_connect_timeout: float = Field(
        5.0, description="Connection timeout in seconds"
    )
    follow_redirects: bool = Field(True, description="Follow HTTP redirects")
    max_redirects: int = Field(10, ge=0, description="Maximum redirects to follow")
    verify_ssl: bool = Field(True, description="Verify TLS certificates")
    http2: bool = Field(False, description="Enable HTTP/2")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator("default_timeout", "default_connect_timeout")
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        """Reject zero or negative timeouts.

        :param v: Timeout value in seconds
        :return: The unchanged timeout
        :raises ValueError: If the timeout is not positive
        """
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded on first use."""
    return Settings()
