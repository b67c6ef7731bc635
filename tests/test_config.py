from datetime import timedelta

import pytest
from pydantic import ValidationError

from blogsite.core.config import Environment, Settings
from tests.conftest import OLD_SECRET, SECRET

DB_URL = "sqlite+aiosqlite:///./test.db"


def _settings(**overrides) -> Settings:
    values = {"database_url": DB_URL, "session_secrets": SECRET}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_session_secrets_are_split_on_commas():
    settings = _settings(session_secrets=f"{SECRET}, {OLD_SECRET}")

    assert [s.get_secret_value() for s in settings.session_secrets] == [SECRET, OLD_SECRET]


def test_short_session_secret_is_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        _settings(session_secrets="too-short")


def test_placeholder_session_secret_is_rejected():
    with pytest.raises(ValidationError, match="placeholder"):
        _settings(session_secrets="changeme")


def test_sync_database_driver_is_rejected():
    with pytest.raises(ValidationError, match="async driver"):
        _settings(database_url="postgresql://user:pw@localhost/blog")


def test_session_config_carries_explicit_values():
    settings = _settings(
        session_secrets=f"{SECRET},{OLD_SECRET}",
        session_expiration_days=30,
        session_renewal_window_days=7,
        magic_link_expiration_minutes=10,
        environment=Environment.PRODUCTION,
    )

    config = settings.session_config()

    assert config.secrets == [SECRET, OLD_SECRET]
    assert config.session_max_age == timedelta(days=30)
    assert config.renewal_window == timedelta(days=7)
    assert config.magic_link_max_age == timedelta(minutes=10)
    assert config.secure_cookies is True


def test_site_url_trailing_slash_is_removed():
    assert _settings(site_url="https://blog.example.com/").site_url == "https://blog.example.com"
