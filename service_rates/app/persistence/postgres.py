"""
PostgreSQL persistence layer for user profiles.
"""

from typing import Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import StoreUnavailable
from ..models import UserProfile


class PostgresUserStore:
    """PostgreSQL-backed user profile store."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("rates.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the connection pool and ensure the users table exists."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=1,
                max_size=10,
                command_timeout=10
            )
            await self._create_tables()
            self.logger.info("PostgreSQL user store started")

        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error("Failed to start PostgreSQL user store", error=str(e))
            raise StoreUnavailable(str(e)) from e

    async def stop(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL user store stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id VARCHAR(255) PRIMARY KEY,
                    username VARCHAR(255) NOT NULL,
                    email VARCHAR(255),
                    bio TEXT NOT NULL DEFAULT ''
                );
            """)

    async def fetch_user(self, user_id: str) -> Optional[UserProfile]:
        """Load a user profile by ID."""
        row = await self._fetchrow("""
            SELECT id, username, email, bio FROM users WHERE id = $1
        """, user_id)
        return self._row_to_user(row) if row else None

    async def update_bio(self, user_id: str, bio: str) -> Optional[UserProfile]:
        """Update a user's bio, returning the updated profile."""
        row = await self._fetchrow("""
            UPDATE users SET bio = $2 WHERE id = $1
            RETURNING id, username, email, bio
        """, user_id, bio)

        if not row:
            self.logger.warning("User not found for bio update", user_id=user_id)
            return None

        self.logger.info("User bio updated", user_id=user_id)
        return self._row_to_user(row)

    async def health_check(self) -> bool:
        """Check that the database answers a trivial query."""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error("PostgreSQL health check failed", error=str(e))
            return False

    async def _fetchrow(self, query: str, *args) -> Optional[asyncpg.Record]:
        if self.pool is None:
            raise StoreUnavailable("PostgreSQL user store is not started")
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchrow(query, *args)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error("PostgreSQL query failed", error=str(e))
            raise StoreUnavailable(str(e)) from e

    @staticmethod
    def _row_to_user(row) -> UserProfile:
        return UserProfile(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            bio=row["bio"] or ""
        )
