"""
Unit tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from shared.config import get_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("RATES_CACHE_EXPIRE_SECONDS", "RATES_CACHE_BACKEND", "RATES_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = get_config("rates", 5000)

    assert config.service_name == "rates"
    assert config.port == 5000
    assert config.cache_expire_seconds == 300
    assert config.cache_backend == "redis"
    assert config.user_store_backend == "postgres"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RATES_CACHE_EXPIRE_SECONDS", "60")
    monkeypatch.setenv("RATES_CACHE_BACKEND", "memory")

    config = get_config("rates", 5000)

    assert config.cache_expire_seconds == 60
    assert config.cache_backend == "memory"


def test_explicit_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("RATES_CACHE_EXPIRE_SECONDS", "60")

    assert get_config("rates", 5000, cache_expire_seconds=10).cache_expire_seconds == 10


@pytest.mark.parametrize("value", ["0", "-30"])
def test_non_positive_expiry_is_rejected(monkeypatch, value):
    monkeypatch.setenv("RATES_CACHE_EXPIRE_SECONDS", value)

    with pytest.raises(ValidationError):
        get_config("rates", 5000)


def test_unknown_backend_is_rejected():
    with pytest.raises(ValidationError):
        get_config("rates", 5000, cache_backend="memcached")


def test_env_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("RATES_LOG_FORMAT=console\n")

    assert get_config("rates", 5000).log_format == "console"
