import logging
from .sql import (
    Base,
    engine,
    AsyncSessionLocal,
    init_db,
    close_db,
)

logger = logging.getLogger(__name__)


async def init_databases():
    """Initialize the relational store"""
    try:
        await init_db()
        logger.info("All databases initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def close_databases():
    """Close all database connections"""
    try:
        await close_db()
        logger.info("All database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "init_databases",
    "close_databases",
]
