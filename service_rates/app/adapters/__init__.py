"""
Adapters package for the Rates Service.

Contains HTTP client wrappers for external data sources. Adapters own
their timeouts, retry policy and circuit breaker, and map every failure
to a shared error.
"""

from .exchange_rates_client import ExchangeRatesClient

__all__ = [
    "ExchangeRatesClient",
]
