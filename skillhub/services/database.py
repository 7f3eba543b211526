"""Database service for integration instance storage."""

import logging
from typing import Optional, List, Dict, Any

import asyncpg

from ..config import Settings, get_settings
from ..errors import DatabaseError

logger = logging.getLogger(__name__)


class DatabaseService:
    """Thin wrapper around an asyncpg connection pool."""

    def __init__(self, pool: Optional[asyncpg.Pool] = None):
        self.pool = pool

    @classmethod
    async def create(cls, settings: Optional[Settings] = None) -> "DatabaseService":
        """Create a new database service with connection pool."""
        settings = settings or get_settings()
        try:
            pool = await asyncpg.create_pool(
                settings.database_url,
                min_size=settings.database_min_pool_size,
                max_size=settings.database_max_pool_size
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Error creating database pool: {e}")
            raise DatabaseError("Could not connect to the database", operation="connect", original_error=e)
        return cls(pool=pool)

    async def close(self):
        """Close the database connection pool."""
        if self.pool:
            await self.pool.close()

    def _require_pool(self) -> asyncpg.Pool:
        if not self.pool:
            raise DatabaseError("Database pool not initialized")
        return self.pool

    async def execute(self, query: str, *args) -> str:
        """Execute a query and return the status."""
        pool = self._require_pool()
        try:
            return await pool.execute(query, *args)
        except asyncpg.PostgresError as e:
            logger.error(f"Database execution error: {e}")
            raise DatabaseError("Database execution failed", operation="execute", original_error=e)

    async def fetch(self, query: str, *args) -> List[Dict[str, Any]]:
        """Execute a query and return all results."""
        pool = self._require_pool()
        try:
            rows = await pool.fetch(query, *args)
        except asyncpg.PostgresError as e:
            logger.error(f"Database fetch error: {e}")
            raise DatabaseError("Database fetch failed", operation="fetch", original_error=e)
        return [dict(row) for row in rows]

    async def fetchrow(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """Execute a query and return the first result."""
        pool = self._require_pool()
        try:
            row = await pool.fetchrow(query, *args)
        except asyncpg.PostgresError as e:
            logger.error(f"Database fetchrow error: {e}")
            raise DatabaseError("Database fetch failed", operation="fetchrow", original_error=e)
        return dict(row) if row else None
