"""
Tests for environment-driven settings.
"""
from datetime import timedelta

import pytest

from core.settings import ConfigurationError, Settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in [
        "LANGUAGE_ENDPOINT", "LANGUAGE_KEY", "ANALYSIS_TIMEOUT_SECONDS",
        "SESSION_TTL_MINUTES", "SESSION_SWEEP_INTERVAL_SECONDS", "SESSION_MAX_COUNT",
        "API_HOST", "API_PORT", "BOT_APP_ID", "BOT_APP_PASSWORD",
    ]:
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("")
    return str(env_file)


def test_defaults(clean_env):
    settings = Settings.from_env(clean_env)

    assert settings.session_ttl == timedelta(minutes=45)
    assert settings.session_sweep_interval_seconds == 300
    assert settings.analysis_timeout_seconds == 10.0
    assert settings.api_port == 3978


def test_values_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv("LANGUAGE_ENDPOINT", "https://example.cognitiveservices.azure.com/")
    monkeypatch.setenv("LANGUAGE_KEY", "secret")
    monkeypatch.setenv("SESSION_TTL_MINUTES", "10")
    monkeypatch.setenv("ANALYSIS_TIMEOUT_SECONDS", "2.5")

    settings = Settings.from_env(clean_env)
    settings.validate()

    assert settings.session_ttl == timedelta(minutes=10)
    assert settings.analysis_timeout_seconds == 2.5


def test_missing_credentials_fail_validation(clean_env):
    settings = Settings.from_env(clean_env)

    with pytest.raises(ConfigurationError, match="LANGUAGE_ENDPOINT, LANGUAGE_KEY"):
        settings.validate()


def test_malformed_number_is_a_configuration_error(clean_env, monkeypatch):
    monkeypatch.setenv("SESSION_TTL_MINUTES", "forty")

    with pytest.raises(ConfigurationError, match="SESSION_TTL_MINUTES"):
        Settings.from_env(clean_env)


def test_non_positive_values_fail_validation():
    settings = Settings(language_endpoint="https://x", language_key="k", session_ttl_minutes=0)

    with pytest.raises(ConfigurationError, match="SESSION_TTL_MINUTES"):
        settings.validate()


def test_zero_session_cap_fails_validation():
    settings = Settings(language_endpoint="https://x", language_key="k", session_max_count=0)

    with pytest.raises(ConfigurationError, match="SESSION_MAX_COUNT"):
        settings.validate()


def test_bot_credentials_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv("BOT_APP_ID", "app-id")
    monkeypatch.setenv("BOT_APP_PASSWORD", "app-secret")

    settings = Settings.from_env(clean_env)

    assert settings.bot_app_id == "app-id"
    assert settings.bot_app_password == "app-secret"
