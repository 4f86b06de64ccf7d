"""
Exchange-rate API client.
"""

import time
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.errors import UpstreamUnavailable
from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from shared.retry import retry_on_exception, RetryConfig, RetryError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


UPSTREAM_NAME = "exchange_rates"


class ExchangeRatesClient:
    """Client for the external exchange-rate API (CoinGecko-compatible)."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional["MetricsCollector"] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics
        self.logger = get_logger("rates.exchange_rates_client")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.circuit_breaker = CircuitBreaker(
            UPSTREAM_NAME,
            failure_threshold=3,
            recovery_timeout=30.0
        )

        retry = retry_on_exception(
            (httpx.TransportError,),
            config=retry_config or RetryConfig(max_attempts=3, base_delay=0.5)
        )
        self._fetch_with_retry = retry(self._fetch)

    async def start(self):
        """Open the pooled HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )

    async def stop(self):
        """Close the pooled HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_exchange_rates(self) -> Dict[str, Any]:
        """Fetch the current exchange rates.

        Raises UpstreamUnavailable on transport errors, timeouts, non-200
        responses, unparseable bodies or while the circuit breaker is open.
        """
        start = time.perf_counter()
        result = "error"
        try:
            data = await self.circuit_breaker.call(self._fetch_with_retry)
            result = "ok"
            return data
        except UpstreamUnavailable:
            raise
        except CircuitBreakerOpenException as exc:
            result = "circuit_open"
            self.logger.warning("Exchange-rate API circuit open", url=self.url)
            raise UpstreamUnavailable(UPSTREAM_NAME, details={"reason": "circuit_open"}) from exc
        except RetryError as exc:
            self.logger.error(
                "Exchange-rate API unreachable",
                url=self.url,
                attempts=exc.attempts,
                error=str(exc.last_exception)
            )
            raise UpstreamUnavailable(UPSTREAM_NAME, details={"reason": "unreachable"}) from exc
        except httpx.HTTPError as exc:
            self.logger.error("Exchange-rate API error", url=self.url, error=str(exc))
            raise UpstreamUnavailable(UPSTREAM_NAME, details={"reason": "http_error"}) from exc
        finally:
            self._record(result, time.perf_counter() - start)

    async def _fetch(self) -> Dict[str, Any]:
        await self.start()
        response = await self._client.get(self.url)

        if response.status_code != 200:
            self.logger.error(
                "Exchange-rate API request failed",
                url=self.url,
                status_code=response.status_code,
                response=response.text[:500]
            )
            raise UpstreamUnavailable(
                UPSTREAM_NAME,
                details={"reason": "bad_status", "status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as exc:
            self.logger.error("Exchange-rate API returned invalid JSON", url=self.url)
            raise UpstreamUnavailable(UPSTREAM_NAME, details={"reason": "invalid_json"}) from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailable(UPSTREAM_NAME, details={"reason": "unexpected_shape"})

        self.logger.debug("Exchange rates retrieved", url=self.url)
        return data

    def _record(self, result: str, duration: float) -> None:
        if self.metrics is None:
            return
        self.metrics.increment_counter("upstream_requests_total", upstream=UPSTREAM_NAME, result=result)
        self.metrics.observe_histogram("upstream_request_duration_seconds", duration, upstream=UPSTREAM_NAME)
