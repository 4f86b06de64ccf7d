"""
Unit tests for user profile stores.
"""

from unittest.mock import AsyncMock

import asyncpg
import pytest

from shared.errors import StoreUnavailable
from service_rates.app.models import UserProfile
from service_rates.app.persistence import InMemoryUserStore, PostgresUserStore, UserStore


class FakePool:
    """Stand-in for an asyncpg pool handing out a single mocked connection."""

    def __init__(self):
        self.conn = AsyncMock()
        self.close = AsyncMock()

    def acquire(self):
        return self

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc, tb):
        return False


ROW = {"id": "1", "username": "alice", "email": None, "bio": None}


class TestInMemoryUserStore:
    """Test cases for InMemoryUserStore."""

    def test_satisfies_store_protocol(self, user_store):
        assert isinstance(user_store, UserStore)

    @pytest.mark.asyncio
    async def test_fetch_returns_copy(self, user_store):
        user = await user_store.fetch_user("1")
        user.bio = "mutated"

        assert (await user_store.fetch_user("1")).bio == "Original bio"

    @pytest.mark.asyncio
    async def test_update_bio(self, user_store):
        updated = await user_store.update_bio("1", "New bio")

        assert updated.bio == "New bio"
        assert (await user_store.fetch_user("1")).bio == "New bio"

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        store = InMemoryUserStore([UserProfile(id="1", username="alice")])

        assert await store.fetch_user("2") is None
        assert await store.update_bio("2", "x") is None


class TestPostgresUserStore:
    """Test cases for PostgresUserStore against a fake pool."""

    @pytest.fixture
    def pool(self):
        return FakePool()

    @pytest.fixture
    def store(self, pool):
        store = PostgresUserStore("postgresql://localhost/rates")
        store.pool = pool
        return store

    @pytest.mark.asyncio
    async def test_fetch_user_maps_row(self, store, pool):
        pool.conn.fetchrow.return_value = ROW

        user = await store.fetch_user("1")

        assert user == UserProfile(id="1", username="alice", email=None, bio="")
        assert pool.conn.fetchrow.await_args.args[1] == "1"

    @pytest.mark.asyncio
    async def test_fetch_missing_user(self, store, pool):
        pool.conn.fetchrow.return_value = None

        assert await store.fetch_user("9") is None

    @pytest.mark.asyncio
    async def test_update_bio_returns_updated_row(self, store, pool):
        pool.conn.fetchrow.return_value = {**ROW, "bio": "Hello"}

        user = await store.update_bio("1", "Hello")

        assert user.bio == "Hello"
        assert pool.conn.fetchrow.await_args.args[1:] == ("1", "Hello")
        assert "UPDATE users" in pool.conn.fetchrow.await_args.args[0]

    @pytest.mark.asyncio
    async def test_update_missing_user(self, store, pool):
        pool.conn.fetchrow.return_value = None

        assert await store.update_bio("9", "x") is None

    @pytest.mark.asyncio
    async def test_query_failure_is_store_unavailable(self, store, pool):
        pool.conn.fetchrow.side_effect = asyncpg.PostgresError("boom")

        with pytest.raises(StoreUnavailable):
            await store.fetch_user("1")

    @pytest.mark.asyncio
    async def test_not_started_is_store_unavailable(self):
        store = PostgresUserStore("postgresql://localhost/rates")

        with pytest.raises(StoreUnavailable):
            await store.fetch_user("1")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check(self, store, pool):
        pool.conn.fetchval.return_value = 1
        assert await store.health_check() is True

        pool.conn.fetchval.side_effect = OSError("connection refused")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_stop_closes_pool(self, store, pool):
        await store.stop()

        pool.close.assert_awaited_once()
        assert store.pool is None
