"""
Generic async MongoDB connection manager.

Provides Motor connectivity that works with any database, plus a helper for
running several writes as one multi-document transaction (requires a replica
set or sharded cluster).

Example:
    from common.database import MongoDB, start_transaction

    db = MongoDB()
    await db.connect(uri="mongodb://localhost:27017/?replicaSet=rs0", database_name="salon")

    async with start_transaction(db.db) as session:
        await db.db["users"].insert_one(user, session=session)
        await db.db["customerProfiles"].insert_one(profile, session=session)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)

logger = logging.getLogger(__name__)


class MongoDB:
    """Generic MongoDB connection manager - works with any database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None
        self._initialized: bool = False

    async def connect(self, uri: str, database_name: str) -> None:
        """
        Connect to MongoDB and verify the server is reachable.

        Args:
            uri: MongoDB connection string
            database_name: Name of the database to use
        """
        # Mask the URI for logging (hide credentials)
        masked_uri = uri.split("@")[-1] if "@" in uri else uri
        logger.info(f"Connecting to MongoDB: {masked_uri}")
        logger.debug(f"Database name: {database_name}")

        try:
            self._client = AsyncIOMotorClient(uri, tz_aware=True)
            self._database_name = database_name
            await self._client.admin.command("ping")
            self._initialized = True
            logger.info(f"Successfully connected to MongoDB database: {database_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self) -> None:
        """Close the MongoDB connection."""
        if self._client:
            logger.info(f"Disconnecting from MongoDB database: {self._database_name}")
            self._client.close()
            self._client = None
            self._database_name = None
            self._initialized = False
            logger.debug("MongoDB connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._initialized

    @property
    def client(self) -> Optional[AsyncIOMotorClient]:
        """Get the underlying Motor client."""
        return self._client

    @property
    def database_name(self) -> Optional[str]:
        return self._database_name

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get the underlying Motor database instance."""
        if not self._client or not self._database_name:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]


@asynccontextmanager
async def start_transaction(
    db: AsyncIOMotorDatabase,
) -> AsyncIterator[AsyncIOMotorClientSession]:
    """
    Run the enclosed writes atomically.

    Yields a session that must be passed as ``session=`` to every operation
    inside the block. The transaction commits when the block exits normally
    and aborts if it raises.
    """
    async with await db.client.start_session() as session:
        async with session.start_transaction():
            yield session
