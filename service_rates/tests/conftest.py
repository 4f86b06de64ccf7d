"""
Shared fixtures for Rates Service tests.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from service_rates.app.adapters.exchange_rates_client import ExchangeRatesClient
from service_rates.app.caching import InMemoryCacheStore
from service_rates.app.main import RatesService
from service_rates.app.models import UserProfile
from service_rates.app.persistence import InMemoryUserStore


SAMPLE_RATES = {
    "rates": {
        "btc": {"name": "Bitcoin", "unit": "BTC", "value": 1.0, "type": "crypto"},
        "usd": {"name": "US Dollar", "unit": "$", "value": 67187.339, "type": "fiat"},
        "eur": {"name": "Euro", "unit": "€", "value": 62034.112, "type": "fiat"},
    }
}


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_store(clock):
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def user_store():
    return InMemoryUserStore([
        UserProfile(id="1", username="alice", email="alice@example.com", bio="Original bio"),
        UserProfile(id="2", username="bob", email=None, bio=""),
    ])


@pytest.fixture
def rates_client():
    """Exchange-rate client whose upstream call is mocked."""
    client = ExchangeRatesClient("https://rates.test/api/v3/exchange_rates")
    client.get_exchange_rates = AsyncMock(return_value=SAMPLE_RATES)
    return client


@pytest.fixture
def config():
    return get_config(
        "rates",
        5000,
        cache_backend="memory",
        user_store_backend="memory",
        cache_expire_seconds=300,
        log_format="console",
    )


@pytest.fixture
def rates_service(config, cache_store, user_store, rates_client):
    return RatesService(
        config,
        cache_store=cache_store,
        user_store=user_store,
        rates_client=rates_client,
    )


@pytest.fixture
def client(rates_service):
    """Test client with the application lifespan running."""
    with TestClient(rates_service.app) as test_client:
        yield test_client


@pytest.fixture
def sample_rates():
    return SAMPLE_RATES
