from __future__ import annotations

"""Process-wide Motor client for the accounts store.

One client per process; every request borrows the same database handle
through the `get_db` dependency, which tests replace via
`app.dependency_overrides`.
"""

import logging
import os
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)

DEFAULT_MONGO_URL = "mongodb://localhost:27017"
DEFAULT_DB_NAME = "renthub"

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


async def connect_mongo() -> None:
    """Open the client once; later calls are no-ops."""

    global _client, _database

    if _database is not None:
        return

    db_name = os.environ.get("DB_NAME", DEFAULT_DB_NAME)
    _client = AsyncIOMotorClient(os.environ.get("MONGO_URL", DEFAULT_MONGO_URL))
    _database = _client[db_name]
    logger.info("Mongo client ready (db=%s)", db_name)


async def close_mongo() -> None:
    global _client, _database

    if _client is not None:
        _client.close()
    _client = None
    _database = None


async def get_db() -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the accounts database, connecting lazily."""

    if _database is None:
        await connect_mongo()
    assert _database is not None
    return _database
