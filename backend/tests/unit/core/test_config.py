# backend/tests/unit/core/test_config.py
import tempfile

import pytest
from pydantic import ValidationError

from deepl_wrapper.core.config import Settings


def make(**values) -> Settings:
    return Settings(_env_file=None, **values)


def test_defaults_match_deepl_document_workflow(monkeypatch):
    for name in ("POLL_INTERVAL_SECONDS", "POLL_MAX_ATTEMPTS", "PORT", "SERVER_PORT"):
        monkeypatch.delenv(name, raising=False)
    app_settings = make()
    assert app_settings.POLL_INTERVAL_SECONDS == 1.0
    assert app_settings.POLL_MAX_ATTEMPTS == 60
    assert app_settings.SERVER_PORT == 3001
    assert app_settings.DEEPL_FREE_API_URL == "https://api-free.deepl.com/v2"
    assert app_settings.DEEPL_PRO_API_URL == "https://api.deepl.com/v2"
    assert app_settings.DEEPL_FREE_KEY_SUFFIX == ":fx"


def test_port_alias_from_environment(monkeypatch):
    monkeypatch.delenv("SERVER_PORT", raising=False)
    monkeypatch.setenv("PORT", "8080")
    assert make().SERVER_PORT == 8080


def test_app_env_alias(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setenv("APP_ENV", "production")
    assert make().ENVIRONMENT == "production"


def test_blank_api_key_is_treated_as_missing():
    assert make(DEEPL_API_KEY="   ").DEEPL_API_KEY is None


def test_debug_forces_debug_log_level():
    assert make(DEBUG=True, LOG_LEVEL="WARNING").LOG_LEVEL == "DEBUG"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('["*"]', ["*"]),
        ('["http://a.test", "http://b.test"]', ["http://a.test", "http://b.test"]),
        ("http://a.test, http://b.test", ["http://a.test", "http://b.test"]),
        ("", []),
    ],
)
def test_cors_origins_parsing(raw, expected):
    assert make(BACKEND_CORS_ORIGINS=raw).BACKEND_CORS_ORIGINS == expected


def test_temp_dir_falls_back_to_system_temp():
    assert make(TEMP_DIR=None).temp_dir == tempfile.gettempdir()
    assert make(TEMP_DIR="/srv/tmp").temp_dir == "/srv/tmp"


@pytest.mark.parametrize(
    "field, value",
    [
        ("POLL_MAX_ATTEMPTS", 0),
        ("POLL_INTERVAL_SECONDS", -1),
        ("CREDENTIAL_MODE", "anonymous"),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        make(**{field: value})
