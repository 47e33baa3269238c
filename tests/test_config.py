import logging

import pytest

from authapi.config import DEFAULT_USERS_PATH, Settings, load_settings, validate_settings
from authapi.errors import ConfigurationError


def test_defaults(clean_env):
    s = load_settings()
    assert s.session_ttl == 60
    assert s.cookie_name == "sid"
    assert s.user_store == "yaml"
    assert s.users_path == DEFAULT_USERS_PATH.resolve()
    assert s.secret_key is None
    assert not s.is_production


def test_env_overrides(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("AUTH_SECRET_KEY", "k")
    monkeypatch.setenv("AUTH_SESSION_TTL", "3600")
    monkeypatch.setenv("AUTH_COOKIE_NAME", "auth_sid")
    monkeypatch.setenv("AUTH_COOKIE_SECURE", "yes")
    monkeypatch.setenv("AUTH_USER_STORE", "Memory")
    monkeypatch.setenv("AUTH_USERS_PATH", str(tmp_path / "u.yml"))
    monkeypatch.setenv("AUTH_HASH_TIME_COST", "4")
    monkeypatch.setenv("AUTH_STORE_TIMEOUT", "0.5")
    s = load_settings()
    assert s.secret_key == "k"
    assert s.session_ttl == 3600
    assert s.cookie_name == "auth_sid"
    assert s.cookie_secure is True
    assert s.user_store == "memory"
    assert s.users_path == (tmp_path / "u.yml").resolve()
    assert s.hash_time_cost == 4
    assert s.store_timeout == 0.5


def test_bad_number_is_a_configuration_error(clean_env, monkeypatch):
    monkeypatch.setenv("AUTH_SESSION_TTL", "one minute")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_missing_secret_in_production_is_fatal():
    with pytest.raises(ConfigurationError):
        validate_settings(Settings(env="production"))


def test_missing_secret_in_development_generates_one(caplog):
    with caplog.at_level(logging.WARNING, logger="authapi.config"):
        s = validate_settings(Settings())
    assert s.secret_key
    assert "SECRET_KEY" in caplog.text


@pytest.mark.parametrize(
    "settings",
    [
        Settings(secret_key="k", user_store="mongo"),
        Settings(secret_key="k", session_ttl=0),
        Settings(secret_key="k", hash_timeout=0),
    ],
)
def test_invalid_settings(settings):
    with pytest.raises(ConfigurationError):
        validate_settings(settings)
