"""Database Connection Manager: async MongoDB client with connect-time ping and health checks.

Invariants:
    - connect() either returns with a verified connection or raises DatabaseConnectionError
    - PyMongo exceptions and URI parse errors (ValueError) mapped to DatabaseConnectionError (core/errors.py)
    - Credentials never appear in log output (URI redacted before logging)
    - No retries: the first failure is reported to the caller

Design Decisions:
    - Singleton db_manager set by connect_db(): the startup sequencer owns the
      lifecycle, the app lifespan closes it (ADR: no global import side effects)
    - Client created inside the running loop: the server serves on the same loop
"""

import logging

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from authapi.core.env_validation import redact_database_uri
from authapi.core.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)


class DatabaseConnectionManager:
    """Owns one AsyncMongoClient for the lifetime of the process."""

    def __init__(self, database_uri: str):
        self.database_uri = database_uri
        self.client: AsyncMongoClient | None = None

    async def connect(self) -> None:
        """Create the client and confirm the server answers a ping."""
        try:
            self.client = AsyncMongoClient(self.database_uri)
            await self.client.admin.command("ping")
        except (PyMongoError, ValueError) as e:
            await self.close()
            raise DatabaseConnectionError(str(e)) from e
        logger.info(
            f"MongoDB connected: {redact_database_uri(self.database_uri)}",
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"DB health check failed: {e}")
            return False


# Singleton (set on startup)
db_manager: DatabaseConnectionManager | None = None


async def connect_db(database_uri: str) -> DatabaseConnectionManager:
    global db_manager
    manager = DatabaseConnectionManager(database_uri)
    await manager.connect()
    db_manager = manager
    return manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.close()
        db_manager = None
