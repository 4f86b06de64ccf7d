"""
Rates service: greeting, cached exchange rates and user profiles.
"""

from typing import Dict, Optional

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.circuit_breaker import CircuitBreakerState
from shared.config import ServiceConfig
from shared.errors import NotFound

from .adapters.exchange_rates_client import ExchangeRatesClient
from .caching import (
    CachedPayload,
    CacheOptions,
    CacheStore,
    InMemoryCacheStore,
    RedisCacheStore,
    ResponseCache,
    cached_route_class,
)
from .models import BioUpdateRequest, ExchangeRatesResponse, UserProfile, UserUpdateResponse
from .persistence import InMemoryUserStore, PostgresUserStore, UserStore

SERVICE_NAME = "rates"
DEFAULT_PORT = 5000


def mark_served_from_cache(payload: CachedPayload) -> CachedPayload:
    """Rewrite a cached exchange-rate envelope so it reports ``source: cache``."""
    if payload.kind != "json":
        return payload
    data = payload.data()
    if not isinstance(data, dict) or "source" not in data:
        return payload
    return payload.with_data({**data, "source": "cache"})


class RatesService(BaseService):
    """Rates service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        cache_store: Optional[CacheStore] = None,
        user_store: Optional[UserStore] = None,
        rates_client: Optional[ExchangeRatesClient] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config)

        self.cache_store = cache_store if cache_store is not None else self._build_cache_store()
        self.user_store = user_store if user_store is not None else self._build_user_store()
        if rates_client is None:
            rates_client = ExchangeRatesClient(
                self.config.exchange_rates_url,
                self.config.upstream_timeout_seconds,
                metrics=self.metrics,
            )
        self.rates_client = rates_client

        self.rates_cache = ResponseCache(
            self.cache_store,
            CacheOptions(
                expire_seconds=self.config.cache_expire_seconds,
                on_hit=mark_served_from_cache,
            ),
            name="exchange_rates",
            metrics=self.metrics,
        )

        self._setup_rates_routes()

    def _build_cache_store(self) -> CacheStore:
        if self.config.cache_backend == "memory":
            return InMemoryCacheStore()
        return RedisCacheStore(self.config.redis_url, self.config.cache_timeout_seconds)

    def _build_user_store(self) -> UserStore:
        if self.config.user_store_backend == "memory":
            return InMemoryUserStore()
        return PostgresUserStore(self.config.postgres_dsn)

    def _setup_rates_routes(self):
        """Set up rates-specific routes."""

        @self.app.get("/", response_class=PlainTextResponse)
        async def root():
            """Static greeting."""
            return "Hello, World!"

        cached = APIRouter(route_class=cached_route_class(self.rates_cache))

        @cached.get("/btc-exchange-rate/", response_model=ExchangeRatesResponse)
        async def get_btc_exchange_rate():
            """Exchange rates from the upstream API, cached by URL."""
            data = await self.rates_client.get_exchange_rates()
            return ExchangeRatesResponse(source="API", data=data)

        self.app.include_router(cached)

        @self.app.get("/users/{user_id}", response_model=UserProfile)
        async def get_user(user_id: str):
            """Get a user profile."""
            user = await self.user_store.fetch_user(user_id)
            if user is None:
                raise NotFound("User not found", details={"user_id": user_id})
            return user

        @self.app.put("/users/{user_id}/bio", response_model=UserUpdateResponse)
        async def update_user_bio(user_id: str, request: BioUpdateRequest):
            """Replace a user's bio with the trimmed value."""
            user = await self.user_store.update_bio(user_id, request.bio.strip())
            if user is None:
                raise NotFound("User not found", details={"user_id": user_id})

            self.logger.info("User profile updated", user_id=user_id)
            return UserUpdateResponse(user=user)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check rates service dependencies."""
        dependencies = {
            "cache": "ok" if await self.cache_store.ping() else "error",
            "user_store": "ok" if await self.user_store.health_check() else "error",
        }

        breaker = self.rates_client.circuit_breaker
        dependencies["exchange_rates"] = "circuit_open" if breaker.state == CircuitBreakerState.OPEN else "ok"
        return dependencies

    async def start(self):
        """Start rates service components."""
        await self.cache_store.start()
        await self.user_store.start()
        await self.rates_client.start()

    async def stop(self):
        """Stop rates service components."""
        await self.rates_client.stop()
        await self.user_store.stop()
        await self.cache_store.stop()


def create_app(config: Optional[ServiceConfig] = None):
    """Create rates service application."""
    service = RatesService(config)
    return service.app


if __name__ == "__main__":
    service = RatesService()
    service.run()
