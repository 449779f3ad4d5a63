"""Settings tests."""

import pytest
import structlog
from pydantic import ValidationError

from qstash_client import Settings
from qstash_client.log import configure_logging


def test_settings_read_prefixed_env(monkeypatch):
    monkeypatch.setenv("QSTASH_TOKEN", "env-token")
    monkeypatch.setenv("QSTASH_URL", "https://qstash.example.com")
    monkeypatch.setenv("QSTASH_VERSION", "v1")

    settings = Settings(_env_file=None)

    assert settings.token.get_secret_value() == "env-token"
    assert settings.url == "https://qstash.example.com"
    assert settings.version == "v1"
    assert "env-token" not in repr(settings)


def test_settings_defaults(monkeypatch):
    for name in ("QSTASH_TOKEN", "QSTASH_URL", "QSTASH_VERSION", "QSTASH_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.url == "https://qstash.upstash.io"
    assert settings.version == "v2"
    assert settings.timeout_seconds == 30.0
    assert settings.log_format == "console"


def test_settings_reject_non_positive_timeout():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, timeout_seconds=0)


def test_configure_logging_json():
    try:
        configure_logging(Settings(_env_file=None, log_format="json", log_level="debug"))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
    finally:
        structlog.reset_defaults()
