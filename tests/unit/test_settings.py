"""Unit tests for environment-driven settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from courier.config import Settings, get_settings


def test_defaults():
    settings = Settings()
    assert settings.default_timeout == 10
    assert settings.default_connect_timeout == 5
    assert settings.follow_redirects is True
    assert settings.max_redirects == 10
    assert settings.verify_ssl is True
    assert settings.http2 is False
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("COURIER_DEFAULT_TIMEOUT", "30")
    monkeypatch.setenv("COURIER_VERIFY_SSL", "false")
    monkeypatch.setenv("courier_log_level", "debug")
    settings = Settings()
    assert settings.default_timeout == 30
    assert settings.verify_ssl is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("field", ["default_timeout", "default_connect_timeout"])
@pytest.mark.parametrize("value", [0, -1])
def test_non_positive_timeouts_are_rejected(field, value):
    with pytest.raises(PydanticValidationError):
        Settings(**{field: value})


def test_get_settings_is_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("COURIER_DEFAULT_TIMEOUT", "99")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().default_timeout == 99
