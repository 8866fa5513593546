"""
Database connection and initialization.
"""

import asyncpg
import redis.asyncio as redis
from typing import Optional
import logging

from homesearch.config import DatabaseConfig

logger = logging.getLogger(__name__)


class Database:
    """
    PostgreSQL pool and Redis client for one application instance.

    Constructed at startup and handed to the components that need it.
    ``connect()`` must complete before ``pool``/``redis`` are used, and
    ``close()`` releases both connections.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._pg_pool: Optional[asyncpg.Pool] = None
        self._redis: Optional[redis.Redis] = None

    async def connect(self):
        """Initialize database connections"""
        # PostgreSQL
        try:
            self._pg_pool = await asyncpg.create_pool(
                self.config.database_url,
                min_size=self.config.pool_min_size,
                max_size=self.config.pool_max_size
            )
            logger.info("PostgreSQL connection pool created")

            await self.create_tables()
        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise

        # Redis
        try:
            self._redis = redis.from_url(self.config.redis_url, decode_responses=True)
            await self._redis.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    async def close(self):
        """Close database connections"""
        if self._pg_pool:
            await self._pg_pool.close()
            self._pg_pool = None
            logger.info("PostgreSQL connection pool closed")

        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis connection closed")

    async def create_tables(self):
        """Create database tables if they don't exist"""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS searches (
                    id TEXT PRIMARY KEY,
                    mode TEXT NOT NULL,
                    query TEXT NOT NULL,
                    query_key TEXT,
                    source TEXT NOT NULL,
                    result_count INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    retrieved_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_searches_created_at ON searches(created_at DESC);
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_searches_query_key ON searches(mode, query_key);
            """)

            # Listings per search; deleted explicitly before their search
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS search_properties (
                    search_id TEXT NOT NULL REFERENCES searches(id),
                    source_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    source TEXT NOT NULL,
                    address TEXT NOT NULL DEFAULT '',
                    price DOUBLE PRECISION,
                    beds DOUBLE PRECISION,
                    baths DOUBLE PRECISION,
                    sqft DOUBLE PRECISION,
                    photos TEXT[] NOT NULL DEFAULT '{}',
                    retrieved_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    PRIMARY KEY (search_id, source_id)
                )
            """)

            logger.info("Database tables created/verified")

    async def ping(self):
        """Round-trip both stores; raises when either is unreachable"""
        async with self.pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        await self.redis.ping()

    @property
    def pool(self) -> asyncpg.Pool:
        """Get PostgreSQL connection pool"""
        if self._pg_pool is None:
            raise RuntimeError("Database not initialized")
        return self._pg_pool

    @property
    def redis(self) -> redis.Redis:
        """Get Redis client"""
        if self._redis is None:
            raise RuntimeError("Redis not initialized")
        return self._redis
