"""
Database Module

Provides asyncpg connection pool management for the PostgreSQL
credential store.
"""

from typing import Optional

import asyncpg
from asyncpg.pool import Pool

from .logging import get_logger

logger = get_logger(__name__)

# Global asyncpg pool for direct queries
_db_pool: Optional[Pool] = None


async def init_db_pool(database_url: str, max_size: int = 10) -> Pool:
    """Create the global connection pool"""
    global _db_pool

    if _db_pool is not None:
        logger.warning("Database pool already initialized")
        return _db_pool

    _db_pool = await asyncpg.create_pool(
        dsn=database_url,
        min_size=1,
        max_size=max_size,
        command_timeout=30,
    )
    logger.info("Database pool initialized", max_size=max_size)
    return _db_pool


async def close_db_pool() -> None:
    """Close the global connection pool"""
    global _db_pool

    if _db_pool is not None:
        await _db_pool.close()
        _db_pool = None
        logger.info("Database pool closed")


def get_db_pool() -> Pool:
    """Get the global connection pool"""
    if _db_pool is None:
        raise RuntimeError("Database pool not initialized. Call init_db_pool() first.")
    return _db_pool
